"""Lexical token extraction from the plain text of one statement page.

Text extraction from a PDF loses the table geometry, so a page is reduced to
three independent, ordered token streams:

- dates (``DD/MM/YYYY``) inside the dialect's plausibility window,
  de-duplicated in first-seen order;
- references (``<prefix>`` + digits) with the non-whitespace run glued to
  them, which usually holds a smeared description;
- amounts (thousands-grouped decimals with two fraction digits) that follow
  whitespace, so digits inside reference numbers never match.

Re-pairing these streams is the job of :mod:`statement_import.pdf.alignment`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache

from ..config import StatementDialect

_DATE_RE = re.compile(r"(\d{2}/\d{2}/\d{4})")
_AMOUNT_RE = re.compile(r"(?<=\s)(-?\d[\d,]*\.\d{2})(?!\d)")


@dataclass(frozen=True, slots=True)
class ReferenceToken:
    reference: str
    attached_text: str


@dataclass(frozen=True, slots=True)
class PageTokens:
    """Token streams of a single page.

    ``amount_offset`` is 1 when the first amount is the opening balance; the
    amount stays in ``amounts`` so ordinals match the page text.
    """

    page_number: int
    dates: tuple[date, ...]
    references: tuple[ReferenceToken, ...]
    amounts: tuple[Decimal, ...]
    amount_offset: int = 0


@lru_cache(maxsize=16)
def _reference_re(prefix: str, min_digits: int) -> re.Pattern[str]:
    return re.compile(rf"({re.escape(prefix)}\d{{{min_digits},}})(\S*)", re.IGNORECASE)


def parse_statement_date(token: str, *, min_year: int, max_year: int) -> date | None:
    """Parse a ``DD/MM/YYYY`` token; ``None`` if malformed or outside the window."""

    try:
        parsed = datetime.strptime(token, "%d/%m/%Y").date()
    except ValueError:
        return None
    if not (min_year <= parsed.year <= max_year):
        return None
    return parsed


def extract_dates(text: str, dialect: StatementDialect) -> tuple[date, ...]:
    seen: set[date] = set()
    out: list[date] = []
    for token in _DATE_RE.findall(text):
        d = parse_statement_date(token, min_year=dialect.min_year, max_year=dialect.max_year)
        if d is None or d in seen:
            continue
        seen.add(d)
        out.append(d)
    return tuple(out)


def extract_references(text: str, dialect: StatementDialect) -> tuple[ReferenceToken, ...]:
    pattern = _reference_re(dialect.reference_prefix, dialect.reference_min_digits)
    return tuple(ReferenceToken(m.group(1), m.group(2)) for m in pattern.finditer(text))


def extract_amounts(text: str) -> tuple[Decimal, ...]:
    return tuple(Decimal(m.replace(",", "")) for m in _AMOUNT_RE.findall(text))


def has_opening_balance(text: str, dialect: StatementDialect) -> bool:
    folded = text.casefold()
    return any(marker.casefold() in folded for marker in dialect.opening_balance_markers)


def extract_tokens(text: str, page_number: int, dialect: StatementDialect) -> PageTokens:
    """Extract the three token streams from one page of statement text."""

    amounts = extract_amounts(text)
    offset = 0
    if page_number == 1 and amounts and has_opening_balance(text, dialect):
        offset = 1
    return PageTokens(
        page_number=page_number,
        dates=extract_dates(text, dialect),
        references=extract_references(text, dialect),
        amounts=amounts,
        amount_offset=offset,
    )


__all__ = [
    "ReferenceToken",
    "PageTokens",
    "parse_statement_date",
    "extract_dates",
    "extract_references",
    "extract_amounts",
    "has_opening_balance",
    "extract_tokens",
]
