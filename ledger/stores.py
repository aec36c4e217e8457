"""Account and transaction store operations used by the import engine.

All functions take an active ``Session`` and never commit; the caller owns
the transaction boundary (normally ``ledger.client.session_scope``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime

from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session

from .models import LedgerAccount, LedgerTransaction


@dataclass(frozen=True, slots=True)
class DuplicateKey:
    """Composite natural key of a posted transaction."""

    account_id: int
    transaction_date: date
    amount: int
    transaction_type: str
    description: str | None


def find_account_by_id(session: Session, account_id: int) -> LedgerAccount | None:
    return session.get(LedgerAccount, account_id)


def find_account_by_name(session: Session, fragment: str) -> LedgerAccount | None:
    """Return the first account whose name contains ``fragment`` (case-insensitive)."""

    pattern = f"%{fragment.strip().lower()}%"
    stmt = (
        select(LedgerAccount)
        .where(func.lower(LedgerAccount.name).like(pattern))
        .order_by(LedgerAccount.id)
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def transaction_exists(session: Session, key: DuplicateKey) -> bool:
    if key.description is None:
        desc_cond = LedgerTransaction.description.is_(None)
    else:
        desc_cond = LedgerTransaction.description == key.description
    stmt = select(
        exists().where(
            LedgerTransaction.account_id == key.account_id,
            LedgerTransaction.transaction_date == key.transaction_date,
            LedgerTransaction.amount == key.amount,
            LedgerTransaction.transaction_type == key.transaction_type,
            desc_cond,
        )
    )
    return bool(session.execute(stmt).scalar())


def insert_transaction(
    session: Session,
    *,
    key: DuplicateKey,
    user_id: int,
    currency_code: str,
    reference: str | None = None,
    notes: str | None = None,
) -> LedgerTransaction:
    row = LedgerTransaction(
        account_id=key.account_id,
        user_id=user_id,
        transaction_type=key.transaction_type,
        amount=key.amount,
        currency_code=currency_code,
        transaction_date=key.transaction_date,
        description=key.description,
        reference=reference,
        notes=notes,
        reconciled_at=datetime.now(UTC),
    )
    session.add(row)
    # Flush so constraint violations surface on the failing record.
    session.flush()
    return row


def adjust_balance(session: Session, account_id: int, delta: int) -> None:
    """Increment (or decrement, for negative ``delta``) ``current_balance`` in SQL."""

    result = session.execute(
        update(LedgerAccount)
        .where(LedgerAccount.id == account_id)
        .values(
            current_balance=LedgerAccount.current_balance + delta,
            updated_at=func.now(),
        )
    )
    if result.rowcount != 1:
        raise LookupError(f"account {account_id} vanished during import")


__all__ = [
    "DuplicateKey",
    "find_account_by_id",
    "find_account_by_name",
    "transaction_exists",
    "insert_transaction",
    "adjust_balance",
]
