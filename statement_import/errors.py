"""Error taxonomy for the ingestion and reconciliation pipeline.

Row- and sheet-level failures (``ColumnMappingFailure``,
``DateResolutionFailure``) are raised and caught inside the parsers, which log
them and continue. ``SourceNotFound``, ``UnsupportedFormat``,
``AccountNotFound`` and ``ImportTransactionFailure`` reach the caller and map
to a non-zero exit status in the CLI. Skipped duplicates are not errors; they
are tallied in ``ImportOutcome.skipped``.
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ImportOutcome


class StatementImportError(Exception):
    """Base class for all pipeline errors."""


class InvalidRecord(StatementImportError, ValueError):
    """A canonical record violates the debit-XOR-credit invariant."""


class SourceNotFound(StatementImportError, FileNotFoundError):
    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = str(path)
        super().__init__(f"File not found: {self.path}")


class UnsupportedFormat(StatementImportError):
    """Parsing finished but produced zero canonical records."""


class ColumnMappingFailure(StatementImportError):
    def __init__(self, sheet: str, found_roles: Iterable[str]) -> None:
        self.sheet = sheet
        self.found_roles = tuple(found_roles)
        found = ", ".join(self.found_roles) or "none"
        super().__init__(
            f"Could not determine required columns in sheet: {sheet} (found: {found})"
        )


class DateResolutionFailure(StatementImportError):
    def __init__(self, value: Any, sheet: str) -> None:
        self.value = value
        self.sheet = sheet
        super().__init__(f"Could not resolve date {value!r} in sheet {sheet!r}")


class AccountNotFound(StatementImportError, LookupError):
    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Account not found: {selector}")


class ImportTransactionFailure(StatementImportError):
    """Posting failed inside the atomic scope; nothing was committed."""

    def __init__(self, message: str, outcome: ImportOutcome) -> None:
        self.outcome = outcome
        super().__init__(message)


__all__ = [
    "StatementImportError",
    "InvalidRecord",
    "SourceNotFound",
    "UnsupportedFormat",
    "ColumnMappingFailure",
    "DateResolutionFailure",
    "AccountNotFound",
    "ImportTransactionFailure",
]
