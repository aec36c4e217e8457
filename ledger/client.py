"""Engine and session helpers for the ledger database.

One engine is cached per process and bound to the first URL it sees
(``database_url`` argument, else ``DATABASE_URL``). Import runs use
:func:`session_scope` as their single transaction boundary:

    from ledger.client import session_scope

    with session_scope(database_url=url) as session:
        ...  # every statement here commits or rolls back together
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; pass --database-url or export it")
    return url


def _build_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(url)

    # SQLite ships with foreign keys off; ledger rows rely on the CASCADE.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):  # pragma: no cover - tiny bridge
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Raises ``RuntimeError`` when called with a URL different from the bound
    one; call :func:`reset_engine` to switch databases.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is not None:
        if url != _DB_URL:
            raise RuntimeError(
                "ledger engine is bound to a different database; call reset_engine() first"
            )
        return _ENGINE

    _ENGINE = _build_engine(url)
    _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False)
    _DB_URL = url
    return _ENGINE


def reset_engine() -> None:
    """Dispose the cached engine so the next call may bind another URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = _SESSION_MAKER = _DB_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits on normal exit and rolls back on error.

    The session is closed on every exit path. Nothing inside the block is
    visible to other connections until the commit.
    """

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "get_engine",
    "get_session",
    "reset_engine",
    "session_scope",
]
