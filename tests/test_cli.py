from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from ledger import stores
from statement_import.cli import app, default_csv_path
from statement_import.pdf import reader
from tests.helpers.db import account_balance, seed_account, transaction_count
from tests.helpers.workbooks import monthly_ledger, write_workbook

runner = CliRunner()


def _statement_page(n: int) -> str:
    lines = ["Sao ke tai khoan 01/03/2024"]
    balance = 10_000_000
    for i in range(1, n + 1):
        balance -= 1000 * i
        lines.append(f"FT{i:011d}PaymentShop{i} {1000 * i:,.2f} {balance:,.2f}")
    return "\n".join(lines) + "\n"


@pytest.fixture()
def fake_pdf(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """A placeholder PDF whose page text is supplied by the test."""

    path = tmp_path / "Statement.PDF"
    path.write_bytes(b"%PDF-1.4 placeholder")
    pages: list[str] = []
    monkeypatch.setattr(reader, "iter_page_texts", lambda _p: iter(pages))
    return path, pages


def test_default_csv_path():
    assert default_csv_path(Path("/tmp/March.PDF")) == Path("/tmp/March.csv")
    assert default_csv_path(Path("/tmp/march.pdf")) == Path("/tmp/march.csv")
    assert default_csv_path(Path("/tmp/march")) == Path("/tmp/march.csv")


def test_convert_pdf_writes_csv_and_preview(fake_pdf):
    path, pages = fake_pdf
    pages.append(_statement_page(7))

    result = runner.invoke(app, ["convert-pdf", str(path)])

    assert result.exit_code == 0, result.output
    out = path.with_name("Statement.csv")
    lines = out.read_text(encoding="utf-8-sig").splitlines()
    assert lines[0] == "Date,Remitter,Remitter Bank,Description,Transaction No,Debit,Credit,Balance"
    assert len(lines) == 8
    assert "Found 7 transactions" in result.output
    assert "... and 2 more transactions" in result.output


def test_convert_pdf_explicit_output(fake_pdf, tmp_path: Path):
    path, pages = fake_pdf
    pages.append(_statement_page(2))
    target = tmp_path / "out" / "converted.csv"
    target.parent.mkdir()

    result = runner.invoke(app, ["convert-pdf", str(path), str(target)])

    assert result.exit_code == 0, result.output
    assert target.exists()
    assert "more transactions" not in result.output


def test_convert_pdf_without_transactions_fails(fake_pdf):
    path, pages = fake_pdf
    pages.append("Nothing to see here")

    result = runner.invoke(app, ["convert-pdf", str(path)])

    assert result.exit_code == 1
    assert "No transactions found" in result.output
    assert not path.with_name("Statement.csv").exists()


def test_convert_pdf_missing_file(tmp_path: Path):
    result = runner.invoke(app, ["convert-pdf", str(tmp_path / "missing.pdf")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_import_spreadsheet_posts_sorted_records(tmp_path: Path, db_url: str):
    acct_id = seed_account(database_url=db_url, balance=1_000_000)
    book = monthly_ledger(tmp_path / "ledger.xlsx")

    result = runner.invoke(
        app,
        ["import-spreadsheet", str(book), "--account", "checking", "--database-url", db_url],
    )

    assert result.exit_code == 0, result.output
    assert "Warning:" in result.output
    assert transaction_count(database_url=db_url) == 4
    assert account_balance(database_url=db_url, account_id=acct_id) == (
        1_000_000 - 150_000 + 20_000_000 - 45_000 + 500
    )


def test_import_spreadsheet_dry_run(tmp_path: Path, db_url: str):
    acct_id = seed_account(database_url=db_url, balance=5)
    book = monthly_ledger(tmp_path / "ledger.xlsx")

    result = runner.invoke(
        app,
        [
            "import-spreadsheet",
            str(book),
            "--account",
            str(acct_id),
            "--dry-run",
            "--database-url",
            db_url,
        ],
    )

    assert result.exit_code == 0, result.output
    assert "DRY RUN" in result.output
    assert transaction_count(database_url=db_url) == 0
    assert account_balance(database_url=db_url, account_id=acct_id) == 5


def test_import_spreadsheet_skip_duplicates_twice(tmp_path: Path, db_url: str):
    acct_id = seed_account(database_url=db_url)
    book = monthly_ledger(tmp_path / "ledger.xlsx")
    args = [
        "import-spreadsheet",
        str(book),
        "--account",
        str(acct_id),
        "--skip-duplicates",
        "--database-url",
        db_url,
    ]

    assert runner.invoke(app, args).exit_code == 0
    second = runner.invoke(app, args)

    assert second.exit_code == 0, second.output
    assert transaction_count(database_url=db_url) == 4
    assert "Skipped: 4" in second.output


def test_import_spreadsheet_without_records_is_not_an_error(tmp_path: Path, db_url: str):
    seed_account(database_url=db_url)
    book = write_workbook(tmp_path / "empty.xlsx", {"Notes": [["hello"]]})

    result = runner.invoke(
        app, ["import-spreadsheet", str(book), "--account", "1", "--database-url", db_url]
    )

    assert result.exit_code == 0, result.output
    assert "No transactions found" in result.output


def test_import_spreadsheet_unknown_account(tmp_path: Path, db_url: str):
    seed_account(database_url=db_url)
    book = monthly_ledger(tmp_path / "ledger.xlsx")

    result = runner.invoke(
        app, ["import-spreadsheet", str(book), "--account", "savings", "--database-url", db_url]
    )

    assert result.exit_code == 1
    assert "Account not found: savings" in result.output


def test_import_spreadsheet_missing_file(tmp_path: Path, db_url: str):
    result = runner.invoke(
        app,
        [
            "import-spreadsheet",
            str(tmp_path / "nope.xlsx"),
            "--account",
            "1",
            "--database-url",
            db_url,
        ],
    )

    assert result.exit_code == 1


def test_import_statement_from_pdf(fake_pdf, db_url: str):
    path, pages = fake_pdf
    pages.append(_statement_page(3))
    acct_id = seed_account(database_url=db_url, balance=0)

    result = runner.invoke(
        app, ["import-statement", str(path), "--account", str(acct_id), "--database-url", db_url]
    )

    assert result.exit_code == 0, result.output
    assert account_balance(database_url=db_url, account_id=acct_id) == -(1000 + 2000 + 3000)


def test_convert_then_import_statement_csv(fake_pdf, db_url: str):
    path, pages = fake_pdf
    pages.append(_statement_page(4))
    acct_id = seed_account(database_url=db_url)

    assert runner.invoke(app, ["convert-pdf", str(path)]).exit_code == 0
    csv_path = path.with_name("Statement.csv")
    result = runner.invoke(
        app,
        ["import-statement", str(csv_path), "--account", str(acct_id), "--database-url", db_url],
    )

    assert result.exit_code == 0, result.output
    assert transaction_count(database_url=db_url) == 4


def test_import_statement_rejects_unknown_file_type(tmp_path: Path, db_url: str):
    other = tmp_path / "statement.txt"
    other.write_text("hello", encoding="utf-8")

    result = runner.invoke(
        app, ["import-statement", str(other), "--account", "1", "--database-url", db_url]
    )

    assert result.exit_code == 1
    assert "Unsupported statement file type" in result.output


def test_import_failure_exits_non_zero_and_rolls_back(
    fake_pdf, db_url: str, monkeypatch: pytest.MonkeyPatch
):
    path, pages = fake_pdf
    pages.append(_statement_page(3))
    acct_id = seed_account(database_url=db_url, balance=100)

    def broken_adjust(session, account_id, delta):
        raise RuntimeError("lock timeout")

    monkeypatch.setattr(stores, "adjust_balance", broken_adjust)

    result = runner.invoke(
        app, ["import-statement", str(path), "--account", str(acct_id), "--database-url", db_url]
    )

    assert result.exit_code == 1
    assert "lock timeout" in result.output
    assert "Errors: 1" in result.output
    assert transaction_count(database_url=db_url) == 0
    assert account_balance(database_url=db_url, account_id=acct_id) == 100


def test_init_db_creates_tables(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'fresh.sqlite3'}"

    result = runner.invoke(app, ["init-db", "--database-url", url])

    assert result.exit_code == 0, result.output
    assert seed_account(database_url=url) == 1


def test_invalid_dialect_file_exits_non_zero(fake_pdf, tmp_path: Path):
    path, pages = fake_pdf
    pages.append(_statement_page(1))
    bad = tmp_path / "dialect.json"
    bad.write_text("{}", encoding="utf-8")

    result = runner.invoke(app, ["convert-pdf", str(path), "--dialect", str(bad)])

    assert result.exit_code == 1
    assert "Error:" in result.output
