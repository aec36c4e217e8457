"""Alembic revisions must build the same schema the ORM maps."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from ledger import Base

_ROOT = Path(__file__).resolve().parents[1]


def _alembic_config(url: str) -> Config:
    # No ini file: keeps alembic from reconfiguring logging for the test session.
    cfg = Config()
    cfg.set_main_option("script_location", str(_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_matches_orm_and_downgrade_cleans_up(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.sqlite3'}"
    cfg = _alembic_config(url)

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        insp = inspect(engine)
        for table in Base.metadata.sorted_tables:
            assert insp.has_table(table.name)
            got = {c["name"] for c in insp.get_columns(table.name)}
            assert got == {c.name for c in table.columns}, table.name
            got_indexes = {ix["name"] for ix in insp.get_indexes(table.name)}
            assert got_indexes == {ix.name for ix in table.indexes}, table.name

        fks = insp.get_foreign_keys("ledger_transactions")
        assert [fk["referred_table"] for fk in fks] == ["ledger_accounts"]

        command.downgrade(cfg, "base")

        insp = inspect(engine)
        assert not insp.has_table("ledger_transactions")
        assert not insp.has_table("ledger_accounts")
    finally:
        engine.dispose()
