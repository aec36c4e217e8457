from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from statement_import.config import load_dialect
from statement_import.pdf.lexer import (
    extract_amounts,
    extract_dates,
    extract_references,
    extract_tokens,
    parse_statement_date,
)


@pytest.fixture()
def dialect():
    return load_dialect()


def test_dates_are_windowed_deduplicated_and_ordered(dialect):
    text = (
        "Statement period 01/03/2024 - 31/03/2024\n"
        "15/06/2019 old 15/06/2031 future 31/02/2024 bogus\n"
        "02/03/2024 01/03/2024 02/03/2024"
    )

    assert extract_dates(text, dialect) == (
        date(2024, 3, 1),
        date(2024, 3, 31),
        date(2024, 3, 2),
    )


def test_parse_statement_date_bounds():
    assert parse_statement_date("01/01/2020", min_year=2020, max_year=2030) == date(2020, 1, 1)
    assert parse_statement_date("31/12/2030", min_year=2020, max_year=2030) == date(2030, 12, 31)
    assert parse_statement_date("31/12/2019", min_year=2020, max_year=2030) is None
    assert parse_statement_date("30/02/2024", min_year=2020, max_year=2030) is None


def test_references_capture_attached_text(dialect):
    text = "FT24061234567NguyenVanAchuyen tien FT24061234568 ft240612345690\\BNK"

    refs = extract_references(text, dialect)

    assert [(r.reference, r.attached_text) for r in refs] == [
        ("FT24061234567", "NguyenVanAchuyen"),
        ("FT24061234568", ""),
        ("ft240612345690", "\\BNK"),
    ]


def test_short_reference_numbers_are_ignored(dialect):
    assert extract_references("FT1234567890 too short", dialect) == ()


def test_amounts_need_leading_whitespace_and_two_decimals():
    text = "FT00000000001 1,000,000.00 -2,500.50 12.5 x3.00 7,000.00\t99.99"

    assert extract_amounts(text) == (
        Decimal("1000000.00"),
        Decimal("-2500.50"),
        Decimal("7000.00"),
        Decimal("99.99"),
    )


def test_opening_balance_offsets_first_page_only(dialect):
    text = "Số dư đầu kỳ 25,000,000.00\nFT00000000001Nhan 1,000.00 25,001,000.00"

    first = extract_tokens(text, 1, dialect)
    later = extract_tokens(text, 2, dialect)

    assert first.amount_offset == 1
    assert first.amounts[0] == Decimal("25000000.00")
    assert later.amount_offset == 0


def test_opening_balance_marker_is_case_insensitive(dialect):
    tokens = extract_tokens("OPENING BALANCE 10.00", 1, dialect)

    assert tokens.amount_offset == 1


def test_page_without_references_has_empty_stream(dialect):
    tokens = extract_tokens("Page 3 of 3\nClosing balance 10,000.00", 3, dialect)

    assert tokens.references == ()
    assert tokens.amounts == (Decimal("10000.00"),)
