"""PDF page text access via ``pdfplumber``."""

from __future__ import annotations

from collections.abc import Iterator
from os import PathLike
from pathlib import Path

import pdfplumber

from ..config import StatementDialect
from ..errors import SourceNotFound
from ..logging_setup import get_logger
from ..models import CanonicalTransactionRecord
from .alignment import PairingPolicy, parse_statement_pages

logger = get_logger(__name__)


def iter_page_texts(path: str | PathLike[str]) -> Iterator[str]:
    """Yield the extracted text of each page in order.

    Pages without a text layer yield an empty string.
    """

    p = Path(path)
    if not p.is_file():
        raise SourceNotFound(p)
    with pdfplumber.open(p) as pdf:
        logger.debug("Opened %s (%d pages)", p, len(pdf.pages))
        for page in pdf.pages:
            yield page.extract_text() or ""


def parse_statement_pdf(
    path: str | PathLike[str],
    dialect: StatementDialect,
    *,
    pairing: PairingPolicy | None = None,
) -> list[CanonicalTransactionRecord]:
    """Extract canonical records from a bank statement PDF."""

    p = Path(path)
    if not p.is_file():
        raise SourceNotFound(p)
    records = parse_statement_pages(iter_page_texts(p), dialect, pairing=pairing)
    logger.info("Parsed %d transactions from %s", len(records), p.name)
    return records


__all__ = ["iter_page_texts", "parse_statement_pdf"]
