"""Configuration models for statement dialects and spreadsheet layouts.

Keyword lists, header phrases and heuristics knobs live in JSON seed files so
new statement dialects and sheet languages can be supported without code
changes. Matching logic elsewhere only ever receives these validated models.

Resolution order for both loaders: explicit ``path`` argument, then the
environment variable (``STATEMENT_IMPORT_DIALECT`` /
``STATEMENT_IMPORT_SHEET_LAYOUT``), then the bundled seed under
``statement_import/seeds``.
"""

from __future__ import annotations

import json
import os
import unicodedata
from os import PathLike
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

_SEEDS_DIR = Path(__file__).resolve().parent / "seeds"
DEFAULT_DIALECT_FILE = _SEEDS_DIR / "techcombank.v1.json"
DEFAULT_SHEET_LAYOUT_FILE = _SEEDS_DIR / "monthly_sheets_vi.v1.json"

ColumnRole = Literal["date", "description", "amount", "tag"]


def fold_header(text: str) -> str:
    """NFC-normalize, trim and lower-case a header cell for comparison."""

    return unicodedata.normalize("NFC", text).strip().lower()


def _clean_phrases(values: list[str]) -> list[str]:
    items = [v.strip() for v in values if isinstance(v, str) and v.strip()]
    if len(items) != len(values):
        raise ValueError("phrases must be non-empty strings")
    return items


class StatementDialect(BaseModel):
    """Lexical and heuristic settings for one bank's PDF statement."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    name: str
    bank_name: str
    reference_prefix: str = "FT"
    reference_min_digits: int = Field(default=11, ge=1)
    min_year: int = 2020
    max_year: int = 2030
    opening_balance_markers: list[str]
    credit_keywords: list[str]
    suffix_artifacts: list[str] = Field(default_factory=list)
    name_prefixes: list[str] = Field(default_factory=list)
    # Every N-th reference on a page advances the date cursor. Approximates
    # the visual grouping of rows under date headers.
    date_advance_every: int = Field(default=3, ge=1)
    default_description: str = "Transaction"

    @field_validator("opening_balance_markers", "credit_keywords")
    @classmethod
    def _non_empty_phrases(cls, v: list[str]) -> list[str]:
        items = _clean_phrases(v)
        if not items:
            raise ValueError("at least one phrase is required")
        return items

    @field_validator("suffix_artifacts", "name_prefixes")
    @classmethod
    def _phrases(cls, v: list[str]) -> list[str]:
        return _clean_phrases(v)

    @model_validator(mode="after")
    def _year_window(self) -> StatementDialect:
        if self.min_year > self.max_year:
            raise ValueError("min_year must not exceed max_year")
        return self


class HeaderRule(BaseModel):
    """Maps a header cell to a column role by equality or substring."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    role: ColumnRole
    equals: list[str] = Field(default_factory=list)
    contains: list[str] = Field(default_factory=list)

    @field_validator("equals", "contains")
    @classmethod
    def _lower(cls, v: list[str]) -> list[str]:
        return [fold_header(p) for p in _clean_phrases(v)]

    def matches(self, header: str) -> bool:
        return header in self.equals or any(p in header for p in self.contains)


class SheetLayout(BaseModel):
    """How to find the header row and column roles in ledger sheets."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    name: str
    header_marker: str
    header_scan_rows: int = Field(default=5, ge=1)
    rules: list[HeaderRule]
    dayfirst: bool = True

    @field_validator("header_marker")
    @classmethod
    def _marker_lower(cls, v: str) -> str:
        if not v:
            raise ValueError("header_marker must be non-empty")
        return fold_header(v)

    @model_validator(mode="after")
    def _required_roles(self) -> SheetLayout:
        roles = {r.role for r in self.rules}
        missing = sorted({"date", "amount"} - roles)
        if missing:
            raise ValueError(f"rules must cover required roles: {', '.join(missing)}")
        return self


def _resolve_path(path: str | PathLike[str] | None, env_var: str, default: Path) -> Path:
    if path is not None:
        return Path(path).expanduser()
    env_val = os.getenv(env_var)
    if env_val:
        return Path(env_val).expanduser()
    return default


def _load_model[M: BaseModel](model: type[M], file: Path) -> M:
    try:
        with file.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return model.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ValueError(f"invalid {model.__name__} config in {file}: {exc}") from exc


def load_dialect(path: str | PathLike[str] | None = None) -> StatementDialect:
    file = _resolve_path(path, "STATEMENT_IMPORT_DIALECT", DEFAULT_DIALECT_FILE)
    return _load_model(StatementDialect, file)


def load_sheet_layout(path: str | PathLike[str] | None = None) -> SheetLayout:
    file = _resolve_path(path, "STATEMENT_IMPORT_SHEET_LAYOUT", DEFAULT_SHEET_LAYOUT_FILE)
    return _load_model(SheetLayout, file)


# ISO 4217 minor-unit exponents below 2. Canonical records carry two decimals,
# so three-digit currencies (KWD, BHD, ...) are stored at two and are not listed.
_CURRENCY_EXPONENTS: dict[str, int] = {
    "BIF": 0,
    "CLP": 0,
    "DJF": 0,
    "GNF": 0,
    "ISK": 0,
    "JPY": 0,
    "KMF": 0,
    "KRW": 0,
    "PYG": 0,
    "RWF": 0,
    "UGX": 0,
    "VND": 0,
    "VUV": 0,
    "XAF": 0,
    "XOF": 0,
    "XPF": 0,
}


def currency_exponent(code: str) -> int:
    """Return the number of minor-unit digits stored for ``code`` (at most 2)."""

    return _CURRENCY_EXPONENTS.get(code.strip().upper(), 2)


__all__ = [
    "ColumnRole",
    "StatementDialect",
    "HeaderRule",
    "SheetLayout",
    "load_dialect",
    "load_sheet_layout",
    "currency_exponent",
    "DEFAULT_DIALECT_FILE",
    "DEFAULT_SHEET_LAYOUT_FILE",
]
