"""
Storage subsystem for the leaderboard.

Provides the Store (async SQLAlchemy engine over SQLite, bounded pool,
scoped sessions), its bootstrap helpers, and the ORM models.
"""

from leaderboard.core.database.bootstrap import initialize_store, shutdown_store
from leaderboard.core.database.models import Base, ScoreEntry
from leaderboard.core.database.store import Store, StoreConfig

__all__ = [
    # ORM
    "Base",
    "ScoreEntry",
    # Store
    "Store",
    "StoreConfig",
    # Bootstrap
    "initialize_store",
    "shutdown_store",
]
