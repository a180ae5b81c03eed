"""
Store - Core Infrastructure Layer

Purpose
-------
Own the SQLite file that backs the leaderboard, expose a bounded pool of
async connections to it, and guarantee the schema exists before any query
runs.

Responsibilities
----------------
- Open (or create) the backing file and build one AsyncEngine over it
- Bound the connection pool; callers block when it is exhausted
- Idempotently create the schema on every open (never destructive)
- Provide async context managers for read sessions and atomic transactions
- Translate driver and pool failures into StorageError kinds
- Expose health checks and pool metrics for infrastructure monitoring

Non-Responsibilities
--------------------
- Ranking, validation or any other domain logic (LeaderboardService)
- Retry policies: failures propagate, callers decide
- Cross-connection locking: SQLite's own single-writer/multi-reader
  locking governs ordering between connections

Architecture Notes
------------------
**Ownership**:
- A Store is an explicit handle. Whoever opens it passes it to the services
  that need it and closes it on shutdown; there is no process-wide instance.

**Connection Pooling**:
- AsyncAdaptedQueuePool with ``max_overflow=0`` so the number of physical
  connections never exceeds ``pool_size``
- Checkout waits up to ``pool_timeout`` seconds, then raises
  StorageTimeoutError
- Each new connection enables WAL journaling and a busy timeout so that
  readers proceed while a writer commits

**Transaction Model**:
- ``transaction()`` commits on success and rolls back on any exception
- ``acquire()`` never commits; use it for reads
- Both release the connection on every exit path, including cancellation

Usage Example
-------------
>>> store = await Store.open("data/score.db")
>>> async with store.transaction("submit") as session:
>>>     session.add(ScoreEntry(name="alice", score=100))
>>>     # Automatic commit on exit
>>> async with store.acquire("top_n") as session:
>>>     rows = (await session.execute(select(ScoreEntry))).scalars().all()
>>> await store.close()
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from leaderboard.core.config.config import Config
from leaderboard.core.database.models import Base
from leaderboard.core.exceptions import (
    StorageError,
    StorageTimeoutError,
    StorageUnavailableError,
)
from leaderboard.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Configuration Snapshot
# ============================================================================


@dataclass(frozen=True)
class StoreConfig:
    """
    Immutable settings for one Store.

    Built from Config unless the caller overrides individual values.
    """

    path: str
    pool_size: int
    pool_timeout: float
    busy_timeout_ms: int
    echo: bool

    @property
    def url(self) -> str:
        return f"sqlite+aiosqlite:///{self.path}"

    @classmethod
    def from_config(
        cls,
        path: Optional[str] = None,
        *,
        pool_size: Optional[int] = None,
        pool_timeout: Optional[float] = None,
        busy_timeout_ms: Optional[int] = None,
        echo: Optional[bool] = None,
    ) -> "StoreConfig":
        return cls(
            path=str(path if path is not None else Config.DATABASE_PATH),
            pool_size=int(pool_size if pool_size is not None else Config.DATABASE_POOL_SIZE),
            pool_timeout=float(
                pool_timeout if pool_timeout is not None else Config.DATABASE_POOL_TIMEOUT
            ),
            busy_timeout_ms=int(
                busy_timeout_ms
                if busy_timeout_ms is not None
                else Config.DATABASE_BUSY_TIMEOUT_MS
            ),
            echo=bool(echo if echo is not None else Config.DATABASE_ECHO),
        )


# ============================================================================
# Store
# ============================================================================


class Store:
    """
    Handle to the leaderboard's SQLite file and its connection pool.

    Public API
    ----------
    **Lifecycle**:
    - open() -> Open or create the file, build the pool, ensure schema
    - close() -> Dispose the engine and all pooled connections

    **Sessions**:
    - acquire() -> Scoped read session
    - transaction() -> Scoped atomic write session

    **Utilities**:
    - health_check() -> Fast reachability check
    - get_pool_metrics() -> Current pool statistics
    """

    def __init__(
        self,
        engine: AsyncEngine,
        config: StoreConfig,
    ) -> None:
        self._engine: Optional[AsyncEngine] = engine
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = (
            async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        )
        self._config = config

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    async def open(
        cls,
        path: Optional[str] = None,
        *,
        pool_size: Optional[int] = None,
        pool_timeout: Optional[float] = None,
        busy_timeout_ms: Optional[int] = None,
        echo: Optional[bool] = None,
    ) -> "Store":
        """
        Open the store at ``path``, creating the file and schema if absent.

        Safe to call on every startup: schema creation is checked first and
        never touches existing rows.

        Raises
        ------
        StorageUnavailableError
            If the file cannot be created/opened or the schema cannot be
            ensured.
        """
        config = StoreConfig.from_config(
            path,
            pool_size=pool_size,
            pool_timeout=pool_timeout,
            busy_timeout_ms=busy_timeout_ms,
            echo=echo,
        )

        if config.path in ("", ":memory:"):
            # Every pooled connection would see its own private database
            raise StorageUnavailableError(
                config.path, reason="a file-backed path is required"
            )

        logger.info(
            "Opening store",
            extra={
                "path": config.path,
                "pool_size": config.pool_size,
                "pool_timeout": config.pool_timeout,
            },
        )

        try:
            Path(config.path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(
                "Cannot create store directory",
                extra={"path": config.path, "error": str(exc)},
            )
            raise StorageUnavailableError(config.path, original_error=exc) from exc

        engine = create_async_engine(
            config.url,
            echo=config.echo,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=config.pool_size,
            max_overflow=0,
            pool_timeout=config.pool_timeout,
        )
        cls._install_pragmas(engine, config)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception as exc:
            await engine.dispose()
            logger.error(
                "Store open failed",
                extra={
                    "path": config.path,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise StorageUnavailableError(config.path, original_error=exc) from exc

        logger.info("Store opened", extra={"path": config.path})
        return cls(engine, config)

    @staticmethod
    def _install_pragmas(engine: AsyncEngine, config: StoreConfig) -> None:
        busy_timeout_ms = config.busy_timeout_ms

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
                cursor.execute("PRAGMA journal_mode=WAL")
            finally:
                cursor.close()

    async def close(self) -> None:
        """
        Dispose the engine and close every pooled connection.

        Safe to call multiple times.
        """
        if self._engine is None:
            logger.debug("Store already closed; nothing to do")
            return

        engine = self._engine
        self._engine = None
        self._session_factory = None

        logger.info("Closing store", extra={"path": self._config.path})
        await engine.dispose()

    async def __aenter__(self) -> "Store":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def path(self) -> str:
        return self._config.path

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    def _require_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise StorageUnavailableError(self._config.path, reason="store is closed")
        return self._session_factory

    def _translate(self, operation: str, exc: BaseException) -> BaseException:
        """Map pool and driver failures onto storage error kinds."""
        if isinstance(exc, PoolTimeoutError):
            return StorageTimeoutError(
                operation,
                timeout_seconds=self._config.pool_timeout,
                original_error=exc,
            )
        if isinstance(exc, SQLAlchemyError):
            return StorageError(operation, original_error=exc)
        # Raised unwrapped by the driver for parameters it cannot bind
        # (integers beyond 64 bits, strings that are not valid UTF-8)
        if isinstance(exc, (ValueError, OverflowError)):
            return StorageError(operation, original_error=exc)
        return exc

    @asynccontextmanager
    async def acquire(self, operation: str = "acquire") -> AsyncIterator[AsyncSession]:
        """
        Check out a session for reads.

        The underlying connection is taken from the pool on first use and
        returned on exit, whatever the exit path.

        Raises
        ------
        StorageTimeoutError
            If no pooled connection became free within ``pool_timeout``.
        StorageError
            For any other engine or driver failure, including parameters
            the driver cannot bind.
        StorageUnavailableError
            If the store has been closed.
        """
        factory = self._require_factory()

        start = time.perf_counter()
        async with factory() as session:
            try:
                yield session
            except Exception as exc:
                translated = self._translate(operation, exc)
                if translated is exc:
                    raise
                logger.warning(
                    "Storage failure in session",
                    extra={
                        "operation": operation,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                raise translated from exc
            finally:
                logger.debug(
                    "Store session closed",
                    extra={
                        "operation": operation,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )

    @asynccontextmanager
    async def transaction(
        self, operation: str = "transaction"
    ) -> AsyncIterator[AsyncSession]:
        """
        Check out a session wrapped in an atomic transaction.

        **On Success**: commits; the written rows become visible to other
        connections only once the commit completes.

        **On Exception**: rolls back and re-raises (storage failures are
        translated to StorageError kinds).

        Never call ``session.commit()`` or ``session.rollback()`` inside.
        """
        factory = self._require_factory()

        start = time.perf_counter()
        async with factory() as session:
            try:
                yield session
                await session.commit()
                logger.debug(
                    "Store transaction committed",
                    extra={
                        "operation": operation,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
            except Exception as exc:
                await self._safe_rollback(session, operation)
                translated = self._translate(operation, exc)
                logger.warning(
                    "Store transaction rolled back",
                    extra={
                        "operation": operation,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                if translated is exc:
                    raise
                raise translated from exc

    async def _safe_rollback(self, session: AsyncSession, operation: str) -> None:
        # The original failure is what the caller needs to see
        try:
            await session.rollback()
        except SQLAlchemyError as exc:
            logger.error(
                "Rollback failed; connection will be discarded",
                extra={
                    "operation": operation,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )

    # ========================================================================
    # Health & Metrics
    # ========================================================================

    async def health_check(self) -> bool:
        """
        Run ``SELECT 1`` against the store.

        Never raises; returns False when the store is closed or unreachable.
        """
        if self._engine is None:
            logger.warning("Health check called on closed store")
            return False

        start = time.perf_counter()
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning(
                "Store health check failed",
                extra={
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return False
        finally:
            logger.debug(
                "Store health check completed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    def get_pool_metrics(self) -> dict[str, int]:
        """
        Current connection pool statistics.

        Returns
        -------
        dict[str, int]
            pool_size, checked_out, checked_in, overflow. All zero once the
            store is closed.
        """
        if self._engine is None:
            return {"pool_size": 0, "checked_out": 0, "checked_in": 0, "overflow": 0}

        pool = self._engine.pool
        return {
            "pool_size": pool.size(),
            "checked_out": pool.checkedout(),
            "checked_in": pool.checkedin(),
            # QueuePool counts overflow from -pool_size upward
            "overflow": max(0, pool.overflow()),
        }
