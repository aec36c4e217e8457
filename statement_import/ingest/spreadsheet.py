"""Structural parser for multi-sheet spreadsheet ledgers.

Each sheet is scanned for a header row (a cell equal to the layout's
``header_marker`` within the first ``header_scan_rows`` rows), header cells
are mapped to column roles, and every following row with a usable amount
becomes a canonical record. Sheet-level problems (no header, missing required
columns) are logged and the sheet is skipped; row-level date failures skip
only the row.
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..config import ColumnRole, SheetLayout, fold_header
from ..errors import ColumnMappingFailure, DateResolutionFailure, SourceNotFound, UnsupportedFormat
from ..logging_setup import get_logger
from ..models import CanonicalTransactionRecord, make_record
from .dates import classify_date_cell, resolve_date

logger = get_logger(__name__)

_REQUIRED_ROLES: tuple[ColumnRole, ...] = ("date", "amount")


@dataclass(slots=True)
class SheetResult:
    name: str
    records: list[CanonicalTransactionRecord] = field(default_factory=list)
    rows_considered: int = 0
    warning: str | None = None


@dataclass(slots=True)
class WorkbookResult:
    """Per-sheet results in workbook order."""

    sheets: list[SheetResult] = field(default_factory=list)

    @property
    def records(self) -> list[CanonicalTransactionRecord]:
        return [r for s in self.sheets for r in s.records]

    @property
    def warnings(self) -> list[str]:
        return [s.warning for s in self.sheets if s.warning]

    def sorted_records(self) -> list[CanonicalTransactionRecord]:
        """All records ordered by date; ties keep workbook order."""

        return sorted(self.records, key=lambda r: r.date)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def find_header_row(rows: Sequence[Sequence[Any]], layout: SheetLayout) -> int | None:
    """Index of the first row holding the header marker, or ``None``."""

    for i, row in enumerate(rows[: layout.header_scan_rows]):
        for cell in row:
            if isinstance(cell, str) and fold_header(cell) == layout.header_marker:
                return i
    return None


def map_columns(header: Sequence[Any], layout: SheetLayout) -> dict[ColumnRole, int]:
    """Map column roles to header positions.

    For each header cell the first matching rule assigns its role; when
    several columns match the same role, the right-most one wins.
    """

    mapping: dict[ColumnRole, int] = {}
    for idx, cell in enumerate(header):
        if cell is None:
            continue
        folded = fold_header(str(cell))
        if not folded:
            continue
        for rule in layout.rules:
            if rule.matches(folded):
                mapping[rule.role] = idx
                break
    return mapping


def require_columns(sheet: str, columns: dict[ColumnRole, int]) -> dict[ColumnRole, int]:
    if any(role not in columns for role in _REQUIRED_ROLES):
        raise ColumnMappingFailure(sheet, sorted(columns))
    return columns


def parse_amount(value: Any) -> Decimal | None:
    """Signed amount from a numeric cell or numeric string; ``None`` otherwise."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        d = Decimal(str(value))
    elif isinstance(value, Decimal):
        d = value
    else:
        text = str(value).strip()
        # Decimal() accepts digit grouping with underscores; ledgers never use it.
        if not text or "_" in text:
            return None
        try:
            d = Decimal(text)
        except InvalidOperation:
            return None
    if not d.is_finite():
        return None
    return d


def _get(row: Sequence[Any], idx: int | None) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def parse_sheet(name: str, rows: Iterable[Sequence[Any]], layout: SheetLayout) -> SheetResult:
    """Parse one sheet's rows (values only, top to bottom)."""

    materialized = [tuple(r) for r in rows]
    result = SheetResult(name=name)

    header_idx = find_header_row(materialized, layout)
    if header_idx is None:
        result.warning = f"No header row found in sheet: {name}"
        logger.warning(result.warning)
        return result

    try:
        columns = require_columns(name, map_columns(materialized[header_idx], layout))
    except ColumnMappingFailure as exc:
        result.warning = str(exc)
        logger.warning(result.warning)
        return result

    date_col = columns["date"]
    amount_col = columns["amount"]
    desc_col = columns.get("description")
    tag_col = columns.get("tag")

    for row_number, row in enumerate(materialized[header_idx + 1 :], start=header_idx + 2):
        amount = parse_amount(_get(row, amount_col))
        if amount is None:
            continue
        result.rows_considered += 1
        if amount == 0:
            continue

        try:
            tx_date = resolve_date(
                classify_date_cell(_get(row, date_col)), name, dayfirst=layout.dayfirst
            )
        except DateResolutionFailure as exc:
            logger.debug("Row %d skipped: %s", row_number, exc)
            continue

        description = _cell_text(_get(row, desc_col))
        tag = _cell_text(_get(row, tag_col)) or None
        magnitude = abs(amount)
        if amount >= 0:
            record = make_record(
                date=tx_date, description=description, credit=magnitude, tag=tag, source_sheet=name
            )
        else:
            record = make_record(
                date=tx_date, description=description, debit=magnitude, tag=tag, source_sheet=name
            )
        # Amounts that quantize to zero
        if record is None:
            continue
        result.records.append(record)

    logger.debug(
        "Sheet %s: %d rows considered, %d records", name, result.rows_considered, len(result.records)
    )
    return result


def parse_workbook(path: str | PathLike[str], layout: SheetLayout) -> WorkbookResult:
    """Parse every sheet of an ``.xlsx`` workbook."""

    p = Path(path)
    if not p.is_file():
        raise SourceNotFound(p)
    try:
        wb = load_workbook(p, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise UnsupportedFormat(f"Cannot read workbook {p}: {exc}") from exc

    out = WorkbookResult()
    try:
        for ws in wb.worksheets:
            out.sheets.append(parse_sheet(ws.title, ws.iter_rows(values_only=True), layout))
    finally:
        wb.close()

    logger.info(
        "Parsed %d transactions from %d sheets in %s",
        len(out.records),
        len(out.sheets),
        p.name,
    )
    return out


__all__ = [
    "SheetResult",
    "WorkbookResult",
    "find_header_row",
    "map_columns",
    "require_columns",
    "parse_amount",
    "parse_sheet",
    "parse_workbook",
]
