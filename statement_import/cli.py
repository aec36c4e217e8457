"""CLI for the ``statement_import`` package.

Commands
--------
- ``convert-pdf``: bank statement PDF -> statement CSV.
- ``import-spreadsheet``: post a multi-sheet ledger workbook to an account.
- ``import-statement``: post a statement PDF (or a CSV written by
  ``convert-pdf``) to an account.
- ``init-db``: create the ledger tables on a fresh database.

Environment variables are loaded from a local ``.env`` (without overriding
the process environment) and logging is configured in the root callback.
Business logic lives in :mod:`statement_import.pdf`,
:mod:`statement_import.ingest` and :mod:`statement_import.reconcile`.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .errors import ImportTransactionFailure, StatementImportError, UnsupportedFormat
from .logging_setup import configure_logging, get_logger
from .models import CanonicalTransactionRecord, ImportOutcome

logger = get_logger(__name__)
console = Console()

CONVERT_PREVIEW_ROWS = 5

_PDF_SUFFIX_RE = re.compile(r"\.pdf$", re.IGNORECASE)


# ---- Small module-level helpers ---------------------------------------------


def default_csv_path(input_path: Path) -> Path:
    """``statement.PDF`` -> ``statement.csv``; other names get ``.csv`` appended."""

    text = str(input_path)
    if _PDF_SUFFIX_RE.search(text):
        return Path(_PDF_SUFFIX_RE.sub(".csv", text))
    return Path(text + ".csv")


def _fmt(value: Decimal | None) -> str:
    if value is None or value == 0:
        return ""
    return f"{value:,.2f}"


def _records_table(records: Sequence[CanonicalTransactionRecord], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Reference")
    table.add_column("Description", overflow="fold")
    table.add_column("Debit", justify="right")
    table.add_column("Credit", justify="right")
    table.add_column("Balance / Tag", justify="right")
    for r in records:
        table.add_row(
            r.date.strftime("%d/%m/%Y"),
            r.reference or "",
            r.description,
            _fmt(r.debit),
            _fmt(r.credit),
            r.tag if r.tag else _fmt(r.balance),
        )
    return table


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def _print_outcome(outcome: ImportOutcome) -> None:
    if outcome.dry_run:
        preview = outcome.preview
        console.print("[yellow]DRY RUN - no changes were made[/yellow]")
        if preview:
            console.print(
                _records_table(preview, title=f"First {len(preview)} of {len(outcome.records)}")
            )
    console.print(
        f"[green]Imported:[/green] {outcome.imported}  "
        f"[yellow]Skipped:[/yellow] {outcome.skipped}  "
        f"[red]Errors:[/red] {outcome.errors}"
    )


def _post(
    records: Sequence[CanonicalTransactionRecord],
    *,
    account: str,
    user: int | None,
    dry_run: bool,
    skip_duplicates: bool,
    database_url: str | None,
) -> None:
    """Resolve the account, run the engine and report; raises ``typer.Exit`` on failure."""

    from .reconcile import import_records, resolve_account

    try:
        target = resolve_account(account, database_url=database_url)
    except StatementImportError as e:
        raise _fail(str(e)) from e
    except Exception as e:
        raise _fail(f"failed to look up account: {e}") from e

    console.print(f"[cyan]Account:[/cyan] {target.name} ({target.currency_code})")
    try:
        outcome = import_records(
            records,
            account=target,
            actor_id=user,
            dry_run=dry_run,
            skip_duplicates=skip_duplicates,
            database_url=database_url,
            on_progress=lambda msg: console.print(f"[cyan]{msg}[/cyan]"),
        )
    except ImportTransactionFailure as e:
        _print_outcome(e.outcome)
        raise _fail(str(e)) from e
    _print_outcome(outcome)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Convert bank statement PDFs and spreadsheet ledgers into canonical "
        "transactions and post them to a ledger account. Loads DATABASE_URL "
        "from a local .env before running."
    ),
)


@app.command("convert-pdf")
def convert_pdf_cmd(
    input_path: Path = typer.Argument(..., help="Bank statement PDF."),
    output_path: Path | None = typer.Argument(
        None, help="Output CSV (defaults to the input path with .pdf replaced by .csv)."
    ),
    dialect_file: Path | None = typer.Option(
        None, "--dialect", help="Statement dialect JSON (defaults to the bundled seed)."
    ),
) -> None:
    """Convert a bank statement PDF into a statement CSV."""

    from .config import load_dialect
    from .ingest.adapters.statement_csv import write_statement_csv
    from .pdf.reader import parse_statement_pdf

    src = input_path.expanduser()
    dest = output_path.expanduser() if output_path is not None else default_csv_path(src)

    try:
        dialect = load_dialect(dialect_file)
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e

    console.print(f"[cyan]Reading PDF:[/cyan] {src}")
    try:
        records = parse_statement_pdf(src, dialect)
        if not records:
            raise UnsupportedFormat(
                "No transactions found in PDF. The format might not be supported."
            )
    except StatementImportError as e:
        raise _fail(str(e)) from e
    except Exception as e:
        logger.error("PDF conversion failed", exc_info=True)
        raise _fail(f"failed to read PDF: {e}") from e

    try:
        write_statement_csv(records, dest, dialect)
    except OSError as e:
        raise _fail(f"failed to write CSV: {e}") from e

    console.print(f"[green]Found {len(records)} transactions[/green]")
    console.print(
        _records_table(records[:CONVERT_PREVIEW_ROWS], title="Sample transactions")
    )
    if len(records) > CONVERT_PREVIEW_ROWS:
        console.print(f"... and {len(records) - CONVERT_PREVIEW_ROWS} more transactions")
    console.print(f"[green]CSV written:[/green] {dest}")


@app.command("import-spreadsheet")
def import_spreadsheet_cmd(
    file: Path = typer.Argument(..., help="Ledger workbook (.xlsx)."),
    *,
    account: str = typer.Option(..., "--account", help="Account id or name fragment."),
    user: int | None = typer.Option(
        None, "--user", help="User id recorded on rows (defaults to the account owner)."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing."),
    skip_duplicates: bool = typer.Option(
        False, "--skip-duplicates", help="Skip rows already posted to the account."
    ),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    layout_file: Path | None = typer.Option(
        None, "--layout", help="Sheet layout JSON (defaults to the bundled seed)."
    ),
) -> None:
    """Import every sheet of a spreadsheet ledger into an account."""

    from .config import load_sheet_layout
    from .ingest.spreadsheet import parse_workbook

    src = file.expanduser()
    try:
        layout = load_sheet_layout(layout_file)
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e

    console.print(f"[cyan]Reading workbook:[/cyan] {src}")
    try:
        result = parse_workbook(src, layout)
    except StatementImportError as e:
        raise _fail(str(e)) from e
    except Exception as e:
        logger.error("Workbook parsing failed", exc_info=True)
        raise _fail(f"failed to read workbook: {e}") from e

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    records = result.sorted_records()
    if not records:
        console.print("[yellow]No transactions found in file[/yellow]")
        return
    console.print(f"[green]Found {len(records)} transactions[/green]")

    _post(
        records,
        account=account,
        user=user,
        dry_run=dry_run,
        skip_duplicates=skip_duplicates,
        database_url=database_url,
    )


@app.command("import-statement")
def import_statement_cmd(
    file: Path = typer.Argument(..., help="Statement PDF or statement CSV."),
    *,
    account: str = typer.Option(..., "--account", help="Account id or name fragment."),
    user: int | None = typer.Option(
        None, "--user", help="User id recorded on rows (defaults to the account owner)."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing."),
    skip_duplicates: bool = typer.Option(
        False, "--skip-duplicates", help="Skip rows already posted to the account."
    ),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    dialect_file: Path | None = typer.Option(
        None, "--dialect", help="Statement dialect JSON (defaults to the bundled seed)."
    ),
) -> None:
    """Import a bank statement (PDF or converted CSV) into an account."""

    from .config import load_dialect
    from .ingest.adapters.statement_csv import read_statement_csv
    from .pdf.reader import parse_statement_pdf

    src = file.expanduser()
    try:
        dialect = load_dialect(dialect_file)
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e

    console.print(f"[cyan]Reading statement:[/cyan] {src}")
    try:
        suffix = src.suffix.lower()
        if suffix == ".pdf":
            records = parse_statement_pdf(src, dialect)
        elif suffix == ".csv":
            records = read_statement_csv(src)
        else:
            raise UnsupportedFormat(f"Unsupported statement file type: {src.suffix or src.name}")
        if not records:
            raise UnsupportedFormat("No transactions found. The format might not be supported.")
    except StatementImportError as e:
        raise _fail(str(e)) from e
    except Exception as e:
        logger.error("Statement parsing failed", exc_info=True)
        raise _fail(f"failed to read statement: {e}") from e

    console.print(f"[green]Found {len(records)} transactions[/green]")
    _post(
        records,
        account=account,
        user=user,
        dry_run=dry_run,
        skip_duplicates=skip_duplicates,
        database_url=database_url,
    )


@app.command("init-db")
def init_db_cmd(
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create ledger tables from the ORM metadata (local databases)."""

    from ledger.schema import create_all

    try:
        create_all(database_url=database_url)
    except Exception as e:
        raise _fail(f"failed to create tables: {e}") from e
    console.print("[green]Ledger tables ready[/green]")


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, ...). Falls back to STATEMENT_IMPORT_LOG_LEVEL.",
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


if __name__ == "__main__":  # pragma: no cover
    app()
