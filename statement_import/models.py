"""Canonical record and run-outcome models for ``statement_import``.

Both extractors (PDF statements and spreadsheet ledgers) emit
:class:`CanonicalTransactionRecord` values; the reconciliation engine only
consumes that shape and reports an :class:`ImportOutcome` per run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from .errors import InvalidRecord

type TransactionType = Literal["income", "expense"]

PREVIEW_LIMIT = 20

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def quantize_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize ``value`` to two decimals (half-up), going through ``str`` for floats."""

    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return d.quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class CanonicalTransactionRecord:
    """A single format-agnostic transaction.

    ``debit`` and ``credit`` are non-negative magnitudes and exactly one of
    them is non-zero. ``balance`` is the running balance printed by the source
    document and is advisory only. ``tag`` and ``source_sheet`` are set for
    spreadsheet rows; ``reference`` and ``balance`` for statement rows.
    """

    date: date
    description: str
    debit: Decimal
    credit: Decimal
    reference: str | None = None
    balance: Decimal | None = None
    tag: str | None = None
    source_sheet: str | None = None

    def __post_init__(self) -> None:
        if self.debit < 0 or self.credit < 0:
            raise InvalidRecord(
                f"debit/credit must be non-negative (debit={self.debit}, credit={self.credit})"
            )
        if (self.debit > 0) == (self.credit > 0):
            raise InvalidRecord(
                f"exactly one of debit/credit must be positive "
                f"(debit={self.debit}, credit={self.credit})"
            )

    @property
    def transaction_type(self) -> TransactionType:
        return "income" if self.credit > 0 else "expense"

    @property
    def amount(self) -> Decimal:
        return self.credit if self.credit > 0 else self.debit


def make_record(
    *,
    date: date,
    description: str,
    debit: Decimal | None = None,
    credit: Decimal | None = None,
    reference: str | None = None,
    balance: Decimal | None = None,
    tag: str | None = None,
    source_sheet: str | None = None,
) -> CanonicalTransactionRecord | None:
    """Build a record, returning ``None`` when both sides are zero.

    Producers use this to drop empty rows without tripping the invariant
    check in :class:`CanonicalTransactionRecord`.
    """

    d = quantize_money(debit) if debit is not None else _ZERO
    c = quantize_money(credit) if credit is not None else _ZERO
    if d == 0 and c == 0:
        return None
    return CanonicalTransactionRecord(
        date=date,
        description=description,
        debit=d,
        credit=c,
        reference=reference or None,
        balance=quantize_money(balance) if balance is not None else None,
        tag=tag or None,
        source_sheet=source_sheet,
    )


@dataclass(slots=True)
class ImportOutcome:
    """Aggregate counters for one import run.

    In dry-run mode ``records`` holds the full ordered list that would have
    been posted; ``preview`` is the bounded head shown to the operator.
    """

    imported: int = 0
    skipped: int = 0
    errors: int = 0
    dry_run: bool = False
    records: list[CanonicalTransactionRecord] = field(default_factory=list)

    @property
    def preview(self) -> list[CanonicalTransactionRecord]:
        return self.records[:PREVIEW_LIMIT]


@dataclass(frozen=True, slots=True)
class AccountRef:
    """Detached view of a ledger account used by the import engine."""

    id: int
    name: str
    user_id: int
    currency_code: str
    current_balance: int


__all__ = [
    "PREVIEW_LIMIT",
    "TransactionType",
    "CanonicalTransactionRecord",
    "ImportOutcome",
    "AccountRef",
    "make_record",
    "quantize_money",
]
