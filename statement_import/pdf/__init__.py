"""Bank statement PDF extraction: lexical tokens, then stream alignment."""

from __future__ import annotations

from .alignment import (
    OrdinalPairing,
    PairingPolicy,
    StatementAligner,
    classify_direction,
    clean_description,
    parse_statement_pages,
)
from .lexer import PageTokens, extract_tokens
from .reader import iter_page_texts, parse_statement_pdf

__all__ = [
    "PageTokens",
    "extract_tokens",
    "PairingPolicy",
    "OrdinalPairing",
    "StatementAligner",
    "classify_direction",
    "clean_description",
    "parse_statement_pages",
    "iter_page_texts",
    "parse_statement_pdf",
]
