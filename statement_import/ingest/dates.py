"""Three-tier date resolution for spreadsheet ledger rows.

A raw date cell is classified into a tagged :data:`DateSource` and dispatched
to pure tier functions, each returning ``None`` when it cannot decide:

- ``BlankDate``  -> sheet name
- ``SerialDate`` -> Excel serial
- ``TextDate``   -> free-form text, or Excel serial for numeric text
- ``TimeOnly``   -> never resolves (a time-formatted cell has no day)
- ``NativeDate`` -> the cell's own date (``openpyxl`` already converted a
  date-formatted serial)

Only blank cells borrow the sheet month. When the applicable tier fails,
:func:`resolve_date` raises :class:`~statement_import.errors.DateResolutionFailure`
and the row is skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

from dateutil import parser as dtparse
from openpyxl.utils.datetime import from_excel

from ..errors import DateResolutionFailure

_SHEET_MONTH_RE = re.compile(r"(\d{1,2})\s*(\d{4})")
_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")


@dataclass(frozen=True, slots=True)
class BlankDate:
    pass


@dataclass(frozen=True, slots=True)
class SerialDate:
    number: float


@dataclass(frozen=True, slots=True)
class TextDate:
    text: str


@dataclass(frozen=True, slots=True)
class NativeDate:
    value: date


@dataclass(frozen=True, slots=True)
class TimeOnly:
    value: time


type DateSource = BlankDate | SerialDate | TextDate | NativeDate | TimeOnly


def classify_date_cell(value: Any) -> DateSource:
    """Tag a raw cell value as read by ``openpyxl``."""

    if value is None:
        return BlankDate()
    if isinstance(value, datetime):
        return NativeDate(value.date())
    if isinstance(value, date):
        return NativeDate(value)
    if isinstance(value, time):
        return TimeOnly(value)
    if isinstance(value, bool):
        return TextDate(str(value))
    if isinstance(value, int | float):
        return SerialDate(float(value))
    text = str(value).strip()
    if not text:
        return BlankDate()
    return TextDate(text)


def from_sheet_name(sheet_name: str) -> date | None:
    """First day of the month named by ``<month> <year>`` in the sheet title.

    ``"Tháng 5 2022"`` and ``"05/2022"`` -> ``2022-05-01``.
    """

    m = _SHEET_MONTH_RE.search(sheet_name)
    if not m:
        return None
    month, year = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        return None
    return date(year, month, 1)


def from_serial(number: float) -> date | None:
    """Convert an Excel serial day number (1900 epoch) to a date."""

    if number <= 0:
        return None
    try:
        converted = from_excel(number)
    except (OverflowError, ValueError):
        return None
    if isinstance(converted, datetime):
        return converted.date()
    if isinstance(converted, date):
        return converted
    # Serials below one day come back as ``time``
    return None


def from_text(text: str, *, dayfirst: bool = True) -> date | None:
    # Numeric text is left for the serial tier; dateutil would read it as a
    # day-of-month or a compact YYYYMMDD.
    if _NUMERIC_RE.match(text):
        return None
    try:
        return dtparse.parse(text, dayfirst=dayfirst).date()
    except (dtparse.ParserError, ValueError, OverflowError):
        return None


def resolve_date(source: DateSource, sheet_name: str, *, dayfirst: bool = True) -> date:
    resolved: date | None = None
    raw: Any = None
    if isinstance(source, NativeDate):
        return source.value
    if isinstance(source, BlankDate):
        resolved = from_sheet_name(sheet_name)
    elif isinstance(source, SerialDate):
        raw = source.number
        resolved = from_serial(source.number)
    elif isinstance(source, TextDate):
        raw = source.text
        if _NUMERIC_RE.match(source.text):
            resolved = from_serial(float(source.text))
        else:
            resolved = from_text(source.text, dayfirst=dayfirst)
    else:
        raw = source.value
    if resolved is None:
        raise DateResolutionFailure(raw, sheet_name)
    return resolved


__all__ = [
    "BlankDate",
    "SerialDate",
    "TextDate",
    "NativeDate",
    "TimeOnly",
    "DateSource",
    "classify_date_cell",
    "from_sheet_name",
    "from_serial",
    "from_text",
    "resolve_date",
]
