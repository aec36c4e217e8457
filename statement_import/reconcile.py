"""Reconciliation engine: post canonical records against a ledger account.

A run opens exactly one ``ledger.client.session_scope``. Inside it, each record
is checked against the composite natural key (when duplicate skipping is on),
inserted, and applied to the account balance with an in-SQL increment. Any
failure rolls the whole run back, so the ledger either reflects every accepted
record of the run or none of them.

Records are posted in the order given; callers sort when they need to.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from ledger import stores
from ledger.client import session_scope

from .config import currency_exponent
from .errors import AccountNotFound, ImportTransactionFailure
from .logging_setup import get_logger
from .models import AccountRef, CanonicalTransactionRecord, ImportOutcome

logger = get_logger(__name__)

PROGRESS_EVERY = 50

type ProgressCallback = Callable[[str], None]


def to_minor_units(amount: Decimal, currency_code: str) -> int:
    """Convert a major-unit amount to integer minor units (half-up).

    ``to_minor_units(Decimal("1500.50"), "VND") == 1501``;
    ``to_minor_units(Decimal("12.34"), "USD") == 1234``.
    """

    exponent = currency_exponent(currency_code)
    scaled = (amount * (Decimal(10) ** exponent)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(scaled)


def build_notes(record: CanonicalTransactionRecord) -> str | None:
    if record.tag:
        return f"Tag: {record.tag}"
    if record.reference:
        return f"Imported from statement (Ref: {record.reference})"
    return None


def duplicate_key(record: CanonicalTransactionRecord, account: AccountRef) -> stores.DuplicateKey:
    return stores.DuplicateKey(
        account_id=account.id,
        transaction_date=record.date,
        amount=to_minor_units(record.amount, account.currency_code),
        transaction_type=record.transaction_type,
        description=record.description or None,
    )


def resolve_account(selector: str, *, database_url: str | None = None) -> AccountRef:
    """Find an account by numeric id or by case-insensitive name fragment."""

    sel = selector.strip()
    if not sel:
        raise AccountNotFound(selector)
    with session_scope(database_url=database_url) as session:
        account = None
        if sel.isdigit():
            account = stores.find_account_by_id(session, int(sel))
        else:
            account = stores.find_account_by_name(session, sel)
        if account is None:
            raise AccountNotFound(selector)
        return AccountRef(
            id=account.id,
            name=account.name,
            user_id=account.user_id,
            currency_code=account.currency_code,
            current_balance=account.current_balance,
        )


def _notify(on_progress: ProgressCallback | None, message: str) -> None:
    if on_progress is None:
        return
    try:
        on_progress(message)
    except Exception:
        logger.warning("Progress callback failed; continuing", exc_info=True)


def import_records(
    records: Sequence[CanonicalTransactionRecord],
    *,
    account: AccountRef,
    actor_id: int | None = None,
    dry_run: bool = False,
    skip_duplicates: bool = False,
    database_url: str | None = None,
    on_progress: ProgressCallback | None = None,
) -> ImportOutcome:
    """Post ``records`` to ``account`` atomically.

    Parameters
    ----------
    records:
        Canonical records in posting order.
    account:
        Target account, usually from :func:`resolve_account`.
    actor_id:
        User recorded on each inserted row; defaults to the account owner.
    dry_run:
        Return the would-be postings without touching the database.
    skip_duplicates:
        Skip records whose natural key already exists on the account.
    database_url:
        Override for ``DATABASE_URL``.
    on_progress:
        Optional observer receiving short progress messages. Exceptions it
        raises are logged and otherwise ignored.

    Raises
    ------
    ImportTransactionFailure
        When any insert or balance update fails. Nothing from the run is
        committed and the attached outcome reports ``errors == 1``.
    """

    total = len(records)
    if dry_run:
        outcome = ImportOutcome(skipped=total, dry_run=True, records=list(records))
        logger.info("Dry run: %d transactions would be posted to %s", total, account.name)
        return outcome

    user_id = actor_id if actor_id is not None else account.user_id
    outcome = ImportOutcome()
    _notify(on_progress, f"Importing {total} transactions into {account.name}")
    try:
        with session_scope(database_url=database_url) as session:
            for i, record in enumerate(records, start=1):
                key = duplicate_key(record, account)
                if skip_duplicates and stores.transaction_exists(session, key):
                    outcome.skipped += 1
                else:
                    stores.insert_transaction(
                        session,
                        key=key,
                        user_id=user_id,
                        currency_code=account.currency_code,
                        reference=record.reference,
                        notes=build_notes(record),
                    )
                    delta = key.amount if record.transaction_type == "income" else -key.amount
                    stores.adjust_balance(session, account.id, delta)
                    outcome.imported += 1
                if i % PROGRESS_EVERY == 0:
                    _notify(on_progress, f"Processed {i}/{total}")
    except Exception as exc:
        outcome.imported = 0
        outcome.skipped = 0
        outcome.errors = 1
        logger.error("Import into %s rolled back", account.name, exc_info=True)
        raise ImportTransactionFailure(f"Import failed: {exc}", outcome) from exc

    _notify(
        on_progress,
        f"Done: {outcome.imported} imported, {outcome.skipped} skipped",
    )
    logger.info(
        "Imported %d transactions into %s (%d skipped)",
        outcome.imported,
        account.name,
        outcome.skipped,
    )
    return outcome


__all__ = [
    "PROGRESS_EVERY",
    "to_minor_units",
    "build_notes",
    "duplicate_key",
    "resolve_account",
    "import_records",
]
