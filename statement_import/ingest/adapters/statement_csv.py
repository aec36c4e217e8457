"""Adapter between canonical records and the bank-statement CSV format.

CSV header (exact, UTF-8 with BOM so spreadsheet tools detect the encoding):
Date, Remitter, Remitter Bank, Description, Transaction No, Debit, Credit,
Balance

Dates are written as ``DD/MM/YYYY``. Debit, credit and balance are written as
plain two-decimal strings when non-zero and left empty otherwise. The reader
accepts files from other tools too: headers are matched case-insensitively,
amounts may carry grouping separators or currency symbols, and dates may be
``DD/MM/YYYY``, ``YYYY-MM-DD`` or anything ``dateutil`` understands.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path

from dateutil import parser as dtparse

from ...config import StatementDialect
from ...errors import SourceNotFound
from ...logging_setup import get_logger
from ...models import CanonicalTransactionRecord, make_record

logger = get_logger(__name__)

HEADER: tuple[str, ...] = (
    "Date",
    "Remitter",
    "Remitter Bank",
    "Description",
    "Transaction No",
    "Debit",
    "Credit",
    "Balance",
)

_AMOUNT_JUNK_RE = re.compile(r"[^\d.,-]")


def _format_amount(value: Decimal | None) -> str:
    if value is None or value == 0:
        return ""
    return f"{value:.2f}"


def to_rows(
    records: Iterable[CanonicalTransactionRecord], dialect: StatementDialect
) -> Iterator[list[str]]:
    """Map records to CSV rows (without the header) in input order."""

    for r in records:
        yield [
            r.date.strftime("%d/%m/%Y"),
            "",
            dialect.bank_name,
            r.description or dialect.default_description,
            r.reference or "",
            _format_amount(r.debit),
            _format_amount(r.credit),
            _format_amount(r.balance),
        ]


def write_statement_csv(
    records: Iterable[CanonicalTransactionRecord],
    path: str | PathLike[str],
    dialect: StatementDialect,
) -> int:
    """Write ``records`` to ``path``; returns the number of data rows written."""

    p = Path(path)
    count = 0
    with p.open("w", encoding="utf-8-sig", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)
        for row in to_rows(records, dialect):
            writer.writerow(row)
            count += 1
    logger.debug("Wrote %d rows to %s", count, p)
    return count


def parse_csv_amount(value: str | None) -> Decimal:
    """Signed amount from a loosely formatted cell; empty or junk is zero."""

    if value is None:
        return Decimal("0")
    cleaned = _AMOUNT_JUNK_RE.sub("", value).replace(",", "")
    if not cleaned:
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def parse_csv_date(value: str | None) -> date | None:
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    for fmt in ("%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    try:
        return dtparse.parse(s, dayfirst=True).date()
    except (dtparse.ParserError, ValueError, OverflowError):
        return None


def _pick(row: Mapping[str, str | None], key: str) -> str:
    return (row.get(key) or "").strip()


def from_rows(rows: Iterable[Mapping[str, str | None]]) -> Iterator[CanonicalTransactionRecord]:
    """Convert dict rows keyed by lower-cased header names to records.

    Rows are skipped when they have fewer than three populated cells, no date,
    an unparseable date, or neither a debit nor a credit. A row with both
    sides populated is read as a credit.
    """

    for line_no, row in enumerate(rows, start=2):
        if sum(1 for v in row.values() if v not in (None, "")) < 3:
            continue
        raw_date = _pick(row, "date")
        if not raw_date:
            continue
        debit = abs(parse_csv_amount(row.get("debit")))
        credit = abs(parse_csv_amount(row.get("credit")))
        if debit == 0 and credit == 0:
            continue
        tx_date = parse_csv_date(raw_date)
        if tx_date is None:
            logger.warning("Line %d: unparseable date %r; skipped", line_no, raw_date)
            continue

        description = _pick(row, "description")
        remitter = _pick(row, "remitter")
        if remitter and remitter not in description:
            description = f"{description} - {remitter}" if description else remitter

        balance_raw = _pick(row, "balance")
        balance = parse_csv_amount(balance_raw) if balance_raw else None

        if credit > 0:
            record = make_record(
                date=tx_date,
                description=description,
                credit=credit,
                reference=_pick(row, "transaction no") or None,
                balance=balance,
            )
        else:
            record = make_record(
                date=tx_date,
                description=description,
                debit=debit,
                reference=_pick(row, "transaction no") or None,
                balance=balance,
            )
        if record is not None:
            yield record


def read_statement_csv(path: str | PathLike[str]) -> list[CanonicalTransactionRecord]:
    """Read a statement CSV (BOM tolerated) into canonical records."""

    p = Path(path)
    if not p.is_file():
        raise SourceNotFound(p)
    with p.open(encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if not header:
            raise csv.Error(f"CSV appears to have no header row: {p}")
        keys = [h.strip().lower() for h in header]
        rows = (dict(zip(keys, cells, strict=False)) for cells in reader)
        records = list(from_rows(rows))
    logger.info("Read %d transactions from %s", len(records), p.name)
    return records


__all__ = [
    "HEADER",
    "to_rows",
    "write_statement_csv",
    "parse_csv_amount",
    "parse_csv_date",
    "from_rows",
    "read_statement_csv",
]
