"""ledger: account ledger store (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``ledger.models`` (re-exported for convenience)
- Engine/session helpers in ``ledger.client``
- Store operations in ``ledger.stores``
"""

from __future__ import annotations

from .models import Base, LedgerAccount, LedgerTransaction

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "LedgerAccount",
    "LedgerTransaction",
]
