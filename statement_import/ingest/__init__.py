"""Spreadsheet ledger parsing and statement CSV adapters."""

from __future__ import annotations

from .spreadsheet import SheetResult, WorkbookResult, parse_sheet, parse_workbook

__all__ = ["SheetResult", "WorkbookResult", "parse_sheet", "parse_workbook"]
