"""Re-pair statement token streams into canonical records.

Pairing references with amounts is a positional heuristic with no ground
truth, so it sits behind :class:`PairingPolicy`. The default
:class:`OrdinalPairing` hands each reference the next two unconsumed amounts
(transaction magnitude, then running balance). Direction classification,
description cleanup and date assignment are independent of the policy.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Literal, Protocol

from ..config import StatementDialect
from ..logging_setup import get_logger
from ..models import CanonicalTransactionRecord, make_record
from .lexer import PageTokens, ReferenceToken, extract_tokens

logger = get_logger(__name__)

type Direction = Literal["credit", "debit"]

_CAMEL_RE = re.compile(r"([a-z])([A-Z])")
_TRANSFER_RE = re.compile(r"chuyen\s*ti\s*en", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PairedReference:
    """A reference with the amounts a pairing policy assigned to it.

    ``amount`` and ``balance`` are ``None`` when the policy ran out of
    amounts for this reference.
    """

    ordinal: int
    token: ReferenceToken
    amount: Decimal | None = None
    balance: Decimal | None = None


class PairingPolicy(Protocol):
    def pair(self, tokens: PageTokens) -> list[PairedReference]: ...


class OrdinalPairing:
    """Consume amounts two at a time, in page order, per reference."""

    def pair(self, tokens: PageTokens) -> list[PairedReference]:
        amounts = tokens.amounts
        cursor = tokens.amount_offset
        out: list[PairedReference] = []
        for ordinal, token in enumerate(tokens.references):
            if cursor + 1 < len(amounts):
                out.append(PairedReference(ordinal, token, amounts[cursor], amounts[cursor + 1]))
                cursor += 2
            else:
                out.append(PairedReference(ordinal, token))
        return out


class DateCursor:
    """Walks the page's date stream as references are emitted.

    The reference at ordinal ``i`` advances the cursor after it produces a
    record when ``(i + 1) % advance_every == 0``; the cursor never moves past
    the last date. Known to misassign dates on pages with irregular
    transaction density per date.
    """

    def __init__(
        self, dates: Sequence[date], *, advance_every: int, fallback: date | None = None
    ) -> None:
        self._dates = list(dates)
        self._advance_every = advance_every
        self._fallback = fallback
        self._index = 0

    @property
    def current(self) -> date | None:
        if self._dates:
            return self._dates[self._index]
        return self._fallback

    def emitted(self, ordinal: int) -> None:
        if (ordinal + 1) % self._advance_every == 0 and self._index < len(self._dates) - 1:
            self._index += 1


def clean_description(text: str, dialect: StatementDialect) -> str:
    """Undo the concatenation artifacts of extracted reference text."""

    for suffix in dialect.suffix_artifacts:
        if text.lower().endswith(suffix.lower()):
            text = text[: -len(suffix)]
            break
    text = _CAMEL_RE.sub(r"\1 \2", text).strip()
    upper = text.upper()
    if any(upper.startswith(prefix.upper()) for prefix in dialect.name_prefixes):
        text = _TRANSFER_RE.sub("chuyen tien", text)
    return text


def classify_direction(description: str, keywords: Iterable[str]) -> Direction:
    lowered = description.lower()
    for keyword in keywords:
        if keyword.lower() in lowered:
            return "credit"
    return "debit"


class StatementAligner:
    """Turn one page's token streams into ordered canonical records."""

    def __init__(
        self, dialect: StatementDialect, *, pairing: PairingPolicy | None = None
    ) -> None:
        self.dialect = dialect
        self.pairing = pairing or OrdinalPairing()

    def align(
        self, tokens: PageTokens, *, carry_date: date | None = None
    ) -> list[CanonicalTransactionRecord]:
        cursor = DateCursor(
            tokens.dates, advance_every=self.dialect.date_advance_every, fallback=carry_date
        )
        records: list[CanonicalTransactionRecord] = []
        for paired in self.pairing.pair(tokens):
            if paired.amount is None:
                logger.debug(
                    "Reference %s on page %d has no amount pair; skipped",
                    paired.token.reference,
                    tokens.page_number,
                )
                continue
            tx_date = cursor.current
            if tx_date is None:
                logger.warning(
                    "Reference %s on page %d has no plausible date; skipped",
                    paired.token.reference,
                    tokens.page_number,
                )
                continue

            description = clean_description(paired.token.attached_text, self.dialect)
            magnitude = abs(paired.amount)
            if classify_direction(description, self.dialect.credit_keywords) == "credit":
                record = make_record(
                    date=tx_date,
                    description=description,
                    credit=magnitude,
                    reference=paired.token.reference,
                    balance=paired.balance,
                )
            else:
                record = make_record(
                    date=tx_date,
                    description=description,
                    debit=magnitude,
                    reference=paired.token.reference,
                    balance=paired.balance,
                )
            if record is None:
                continue

            cursor.emitted(paired.ordinal)
            records.append(record)
        return records


def parse_statement_pages(
    page_texts: Iterable[str],
    dialect: StatementDialect,
    *,
    pairing: PairingPolicy | None = None,
) -> list[CanonicalTransactionRecord]:
    """Run extraction and alignment over page texts (pages numbered from 1).

    The last date seen on a page is carried to the next page for references
    printed before that page's first date header.
    """

    aligner = StatementAligner(dialect, pairing=pairing)
    records: list[CanonicalTransactionRecord] = []
    carry: date | None = None
    for page_number, text in enumerate(page_texts, start=1):
        tokens = extract_tokens(text or "", page_number, dialect)
        page_records = aligner.align(tokens, carry_date=carry)
        logger.debug(
            "Page %d: %d dates, %d references, %d amounts -> %d records",
            page_number,
            len(tokens.dates),
            len(tokens.references),
            len(tokens.amounts),
            len(page_records),
        )
        records.extend(page_records)
        if tokens.dates:
            carry = tokens.dates[-1]
    return records


__all__ = [
    "PairedReference",
    "PairingPolicy",
    "OrdinalPairing",
    "DateCursor",
    "StatementAligner",
    "clean_description",
    "classify_direction",
    "parse_statement_pages",
]
