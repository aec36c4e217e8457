"""Create ledger tables straight from ORM metadata.

Alembic migrations (``migrations/versions``) are the production path; this helper
serves local SQLite databases and the ``init-db`` command.
"""

from __future__ import annotations

from .client import get_engine
from .models import Base


def create_all(*, database_url: str | None = None) -> None:
    engine = get_engine(database_url=database_url)
    Base.metadata.create_all(bind=engine)


__all__ = ["create_all"]
