from __future__ import annotations

from datetime import date, datetime, time

import pytest

from statement_import.errors import DateResolutionFailure
from statement_import.ingest.dates import (
    BlankDate,
    NativeDate,
    SerialDate,
    TextDate,
    TimeOnly,
    classify_date_cell,
    from_serial,
    from_sheet_name,
    from_text,
    resolve_date,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Tháng 5 2022", date(2022, 5, 1)),
        ("Thang 12  2021", date(2021, 12, 1)),
        ("052023", date(2023, 5, 1)),
        ("Tháng 13 2022", None),
        ("Sheet1", None),
        ("Tổng kết", None),
    ],
)
def test_from_sheet_name(name, expected):
    assert from_sheet_name(name) == expected


def test_from_serial_uses_excel_epoch():
    assert from_serial(45000) == date(2023, 3, 15)
    assert from_serial(44927.75) == date(2023, 1, 1)


@pytest.mark.parametrize("value", [0, -3, 1e12])
def test_from_serial_rejects_out_of_range(value):
    assert from_serial(value) is None


def test_from_text_is_day_first_by_default():
    assert from_text("03/04/2022") == date(2022, 4, 3)
    assert from_text("03/04/2022", dayfirst=False) == date(2022, 3, 4)
    assert from_text("2022-05-15") == date(2022, 5, 15)


@pytest.mark.parametrize("text", ["not a date", "45000", "12.5"])
def test_from_text_declines(text):
    assert from_text(text) is None


def test_classify_date_cell():
    assert classify_date_cell(None) == BlankDate()
    assert classify_date_cell("   ") == BlankDate()
    assert classify_date_cell(datetime(2022, 5, 3, 10, 30)) == NativeDate(date(2022, 5, 3))
    assert classify_date_cell(date(2022, 5, 3)) == NativeDate(date(2022, 5, 3))
    assert classify_date_cell(45000) == SerialDate(45000.0)
    assert classify_date_cell(" 10/05/2022 ") == TextDate("10/05/2022")
    assert classify_date_cell(True) == TextDate("True")


def test_blank_date_falls_back_to_sheet_name():
    assert resolve_date(BlankDate(), "Tháng 5 2022") == date(2022, 5, 1)


def test_serial_date_does_not_borrow_sheet_month():
    assert resolve_date(SerialDate(45000), "Tháng 5 2022") == date(2023, 3, 15)
    with pytest.raises(DateResolutionFailure):
        resolve_date(SerialDate(-1), "Tháng 5 2022")


def test_text_date_tiers():
    assert resolve_date(TextDate("10/05/2022"), "Sheet1") == date(2022, 5, 10)
    assert resolve_date(TextDate("45000"), "Sheet1") == date(2023, 3, 15)


@pytest.mark.parametrize("text", ["chưa rõ", "-5", "0"])
def test_unparseable_text_does_not_borrow_sheet_month(text):
    with pytest.raises(DateResolutionFailure) as excinfo:
        resolve_date(TextDate(text), "Tháng 6 2022")

    assert excinfo.value.value == text


def test_time_only_cell_never_resolves():
    source = classify_date_cell(time(10, 30))

    assert source == TimeOnly(time(10, 30))
    with pytest.raises(DateResolutionFailure):
        resolve_date(source, "Tháng 6 2022")


def test_native_date_wins():
    assert resolve_date(NativeDate(date(2021, 1, 2)), "Tháng 5 2022") == date(2021, 1, 2)


def test_total_failure_raises():
    with pytest.raises(DateResolutionFailure) as excinfo:
        resolve_date(TextDate("chưa rõ"), "Sheet1")

    assert excinfo.value.value == "chưa rõ"
    assert excinfo.value.sheet == "Sheet1"


def test_blank_date_without_month_in_sheet_name_raises():
    with pytest.raises(DateResolutionFailure):
        resolve_date(BlankDate(), "Summary")
