from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from statement_import.errors import InvalidRecord
from statement_import.models import (
    PREVIEW_LIMIT,
    CanonicalTransactionRecord,
    ImportOutcome,
    make_record,
    quantize_money,
)

D = date(2024, 3, 1)


@pytest.mark.parametrize(
    ("debit", "credit"),
    [
        (Decimal("0"), Decimal("0")),
        (Decimal("1"), Decimal("1")),
        (Decimal("-1"), Decimal("0")),
        (Decimal("0"), Decimal("-5")),
    ],
)
def test_debit_xor_credit_is_enforced(debit, credit):
    with pytest.raises(InvalidRecord):
        CanonicalTransactionRecord(date=D, description="x", debit=debit, credit=credit)


def test_invalid_record_is_a_value_error():
    assert issubclass(InvalidRecord, ValueError)


def test_make_record_drops_empty_and_quantizes():
    assert make_record(date=D, description="x") is None
    assert make_record(date=D, description="x", debit=Decimal("0.004")) is None

    record = make_record(
        date=D, description="x", credit=Decimal("10.005"), balance=Decimal("3"), reference=""
    )

    assert record.credit == Decimal("10.01")
    assert record.debit == Decimal("0")
    assert record.balance == Decimal("3.00")
    assert record.reference is None
    assert record.transaction_type == "income"
    assert record.amount == Decimal("10.01")


def test_quantize_money_goes_through_str_for_floats():
    assert quantize_money(0.1 + 0.2) == Decimal("0.30")
    assert quantize_money(2.675) == Decimal("2.68")


def test_outcome_preview_is_bounded():
    records = [make_record(date=D, description=str(i), debit=Decimal(i + 1)) for i in range(25)]

    outcome = ImportOutcome(skipped=25, dry_run=True, records=records)

    assert len(outcome.preview) == PREVIEW_LIMIT == 20
    assert outcome.preview[0].description == "0"
