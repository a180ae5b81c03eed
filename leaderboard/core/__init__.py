"""
Core infrastructure layer for the leaderboard service.

Provides a single import surface for the infrastructure subsystems:

- Configuration (Config)
- Storage (Store, bootstrap helpers, ORM models)
- Logging (structured logging, logger factory, LogContext)
- Infrastructure exceptions (StorageError hierarchy)

Submodules hold the implementations; this package only re-exports them.
"""

from leaderboard.core.config.config import Config
from leaderboard.core.database.bootstrap import initialize_store, shutdown_store
from leaderboard.core.database.store import Store, StoreConfig
from leaderboard.core.exceptions import (
    ErrorSeverity,
    LeaderboardInfrastructureException,
    StorageError,
    StorageTimeoutError,
    StorageUnavailableError,
)
from leaderboard.core.logging.logger import LogContext, get_logger

__all__ = [
    # Config
    "Config",
    # Storage
    "Store",
    "StoreConfig",
    "initialize_store",
    "shutdown_store",
    # Exceptions
    "ErrorSeverity",
    "LeaderboardInfrastructureException",
    "StorageError",
    "StorageTimeoutError",
    "StorageUnavailableError",
    # Logging
    "get_logger",
    "LogContext",
]
