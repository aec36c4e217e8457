"""Public interface for the ``statement_import`` package.

Symbol re-exports only: canonical models, the error taxonomy, configuration
loaders and the extract/post entry points.
"""

from .config import SheetLayout, StatementDialect, load_dialect, load_sheet_layout
from .errors import (
    AccountNotFound,
    ColumnMappingFailure,
    DateResolutionFailure,
    ImportTransactionFailure,
    InvalidRecord,
    SourceNotFound,
    StatementImportError,
    UnsupportedFormat,
)
from .ingest.spreadsheet import parse_workbook
from .models import AccountRef, CanonicalTransactionRecord, ImportOutcome, make_record
from .pdf.alignment import parse_statement_pages
from .pdf.reader import parse_statement_pdf
from .reconcile import import_records, resolve_account

__all__ = [
    # Extract / post
    "parse_statement_pdf",
    "parse_statement_pages",
    "parse_workbook",
    "resolve_account",
    "import_records",
    # Models
    "CanonicalTransactionRecord",
    "ImportOutcome",
    "AccountRef",
    "make_record",
    # Config
    "StatementDialect",
    "SheetLayout",
    "load_dialect",
    "load_sheet_layout",
    # Errors
    "StatementImportError",
    "InvalidRecord",
    "SourceNotFound",
    "UnsupportedFormat",
    "ColumnMappingFailure",
    "DateResolutionFailure",
    "AccountNotFound",
    "ImportTransactionFailure",
]
