"""Pytest configuration for test isolation.

The ledger client caches one engine per process and refuses to rebind it to
a different URL, the config loaders read override paths from the
environment, and the CLI configures the package logger once per process.
Each test starts from a fresh engine, a clean set of ``STATEMENT_IMPORT_*`` /
``DATABASE_URL`` variables and an unconfigured package logger.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from ledger.client import reset_engine
from statement_import import logging_setup
from tests.helpers.db import bootstrap_sqlite_db

_ENV_VARS = (
    "DATABASE_URL",
    "STATEMENT_IMPORT_DIALECT",
    "STATEMENT_IMPORT_SHEET_LAYOUT",
    "STATEMENT_IMPORT_LOG_LEVEL",
)


def _reset_package_logger() -> None:
    pkg_logger = logging.getLogger("statement_import")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
    logging_setup._CONFIGURED = False


@pytest.fixture(autouse=True)
def _isolate_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()
    _reset_package_logger()


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    """File-backed SQLite ledger with the ORM schema applied."""

    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
