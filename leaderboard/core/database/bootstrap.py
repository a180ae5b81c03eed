"""
Store Bootstrap - Infrastructure Orchestration

Purpose
-------
Single entry point for opening and closing the process's Store with
health verification, for use by the transport layer's startup/shutdown
hooks.

Responsibilities
----------------
- Open the Store from Config (file, pool, schema)
- Optionally verify readiness via health check with timeout
- Emit structured logs for bootstrap lifecycle events
- Propagate failures as StorageUnavailableError with the cause attached

Non-Responsibilities
--------------------
- Holding the Store: the caller owns the returned handle
- Transaction management (handled by Store)
- Query execution (handled by services)

Usage Example
-------------
>>> store = await initialize_store(verify_health=True)
>>> service = LeaderboardService(store)
>>> # ... serve requests ...
>>> await shutdown_store(store)
"""

from __future__ import annotations

import asyncio
from typing import Optional

from leaderboard.core.config.config import Config
from leaderboard.core.database.store import Store
from leaderboard.core.exceptions import StorageUnavailableError
from leaderboard.core.logging.logger import get_logger

logger = get_logger(__name__)


async def initialize_store(
    path: Optional[str] = None,
    *,
    verify_health: bool = True,
) -> Store:
    """
    Open the Store and optionally confirm it answers queries.

    Parameters
    ----------
    path : str, optional
        Store file; defaults to Config.DATABASE_PATH.
    verify_health : bool, default=True
        Run a health check bounded by
        Config.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS after opening.

    Raises
    ------
    StorageUnavailableError
        If the store cannot be opened or fails its health check.
    """
    logger.info("Initializing store")

    store = await Store.open(path)

    if not verify_health:
        logger.info("Store initialized (health check skipped)")
        return store

    health_timeout = float(Config.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS)

    try:
        healthy = await asyncio.wait_for(store.health_check(), timeout=health_timeout)
    except asyncio.TimeoutError as exc:
        await store.close()
        logger.error(
            "Store health check timed out during bootstrap",
            extra={"timeout_seconds": health_timeout},
        )
        raise StorageUnavailableError(
            store.path,
            original_error=exc,
            reason=f"health check timed out after {health_timeout:g}s",
        ) from exc

    if not healthy:
        await store.close()
        logger.error("Store health check failed during bootstrap")
        raise StorageUnavailableError(
            store.path, reason="store is unreachable after initialization"
        )

    logger.info("Store initialized and healthy", extra={"path": store.path})
    return store


async def shutdown_store(store: Optional[Store]) -> None:
    """
    Close the Store, logging rather than raising on failure.

    Safe to call with None or an already closed store.
    """
    if store is None:
        return

    logger.info("Shutting down store")

    try:
        await store.close()
        logger.info("Store shutdown complete")
    except Exception as exc:
        # Shutdown continues so the remaining resources are released
        logger.error(
            "Error during store shutdown",
            extra={
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
