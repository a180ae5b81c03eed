"""
Integration Tests for Store
===========================

Purpose
-------
Test the Store against a real SQLite file: schema bootstrap, pool bounds,
transaction semantics, lifecycle and health reporting.

Testing Strategy
----------------
- Each test gets a fresh file under ``tmp_path``
- Tests actual SQLite behavior, not mocks
"""

import pytest
from sqlalchemy import func, select, text

from leaderboard.core.database.bootstrap import initialize_store, shutdown_store
from leaderboard.core.database.models import ScoreEntry
from leaderboard.core.database.store import Store
from leaderboard.core.exceptions import (
    StorageError,
    StorageTimeoutError,
    StorageUnavailableError,
)


async def _count(store: Store) -> int:
    async with store.acquire("count") as session:
        result = await session.execute(select(func.count()).select_from(ScoreEntry))
        return result.scalar_one()


# ============================================================================
# OPEN / SCHEMA TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestStoreOpen:
    """Test file creation and idempotent schema bootstrap."""

    async def test_open_creates_file_and_table(self, db_path):
        # Act
        store = await Store.open(db_path)

        # Assert
        try:
            async with store.acquire() as session:
                result = await session.execute(
                    text("SELECT name FROM sqlite_master WHERE type = 'table'")
                )
                tables = {row.name for row in result.fetchall()}
            assert "scores" in tables
        finally:
            await store.close()

    async def test_reopen_preserves_rows(self, db_path):
        # Arrange
        store = await Store.open(db_path)
        async with store.transaction() as session:
            session.add(ScoreEntry(name="alice", score=100))
        await store.close()

        # Act
        reopened = await Store.open(db_path)

        # Assert
        try:
            assert await _count(reopened) == 1
        finally:
            await reopened.close()

    async def test_wal_journal_enabled(self, store):
        async with store.acquire() as session:
            mode = (await session.execute(text("PRAGMA journal_mode"))).scalar_one()

        assert mode.lower() == "wal"

    async def test_memory_path_rejected(self):
        with pytest.raises(StorageUnavailableError):
            await Store.open(":memory:")

    async def test_unusable_directory_raises_unavailable(self, tmp_path):
        # A regular file where the parent directory should be
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StorageUnavailableError) as exc_info:
            await Store.open(str(blocker / "score.db"))

        assert exc_info.value.details["path"] == str(blocker / "score.db")


# ============================================================================
# TRANSACTION TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestStoreTransactions:
    """Test commit/rollback semantics."""

    async def test_commit_visible_to_other_sessions(self, store):
        async with store.transaction() as session:
            session.add(ScoreEntry(name="alice", score=1))

        assert await _count(store) == 1

    async def test_exception_rolls_back(self, store):
        with pytest.raises(RuntimeError):
            async with store.transaction() as session:
                session.add(ScoreEntry(name="alice", score=1))
                await session.flush()
                raise RuntimeError("abort")

        assert await _count(store) == 0

    async def test_driver_error_translated(self, store):
        with pytest.raises(StorageError) as exc_info:
            async with store.acquire("bad_query") as session:
                await session.execute(text("SELECT * FROM no_such_table"))

        assert exc_info.value.operation == "bad_query"
        assert exc_info.value.original_error is not None

    @pytest.mark.parametrize("value", [2**64, "bad\ud800"])
    async def test_unbindable_parameter_is_storage_error(self, store, value):
        """The driver raises OverflowError or UnicodeEncodeError while binding."""
        with pytest.raises(StorageError) as exc_info:
            async with store.acquire("bind") as session:
                await session.execute(text("SELECT :v"), {"v": value})

        assert isinstance(exc_info.value.original_error, (OverflowError, ValueError))

    async def test_unbindable_insert_rolls_back(self, store):
        with pytest.raises(StorageError):
            async with store.transaction("submit") as session:
                session.add(ScoreEntry(name="alice", score=1))
                await session.flush()
                await session.execute(
                    text("INSERT INTO scores (name, score) VALUES (:n, :s)"),
                    {"n": "bob", "s": 2**64},
                )

        assert await _count(store) == 0

    async def test_not_null_violation_is_storage_error(self, store):
        with pytest.raises(StorageError):
            async with store.transaction("submit") as session:
                session.add(ScoreEntry(name=None, score=1))

        assert await _count(store) == 0


# ============================================================================
# POOL TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestStorePool:
    """Test pool bounds and metrics."""

    async def test_exhausted_pool_times_out(self, db_path):
        store = await Store.open(db_path, pool_size=1, pool_timeout=0.2)
        try:
            async with store.acquire("holder") as holder:
                await holder.execute(text("SELECT 1"))

                with pytest.raises(StorageTimeoutError) as exc_info:
                    async with store.acquire("waiter") as waiter:
                        await waiter.execute(text("SELECT 1"))

            assert exc_info.value.is_retryable is True
            assert exc_info.value.details["timeout_seconds"] == 0.2
        finally:
            await store.close()

    async def test_connection_released_after_use(self, store):
        async with store.acquire() as session:
            await session.execute(text("SELECT 1"))

        assert store.get_pool_metrics()["checked_out"] == 0

    async def test_pool_metrics(self, store):
        metrics = store.get_pool_metrics()

        assert metrics["pool_size"] == 5
        assert metrics["overflow"] == 0


# ============================================================================
# LIFECYCLE TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestStoreLifecycle:
    """Test close, health and bootstrap helpers."""

    async def test_health_check_open_store(self, store):
        assert await store.health_check() is True

    async def test_closed_store(self, db_path):
        store = await Store.open(db_path)
        await store.close()
        await store.close()  # idempotent

        assert store.is_open is False
        assert await store.health_check() is False
        assert store.get_pool_metrics()["pool_size"] == 0
        with pytest.raises(StorageUnavailableError):
            async with store.acquire():
                pass

    async def test_async_context_manager_closes(self, db_path):
        async with await Store.open(db_path) as store:
            assert store.is_open

        assert store.is_open is False

    async def test_initialize_and_shutdown(self, db_path):
        store = await initialize_store(db_path, verify_health=True)

        assert store.is_open
        assert store.path == db_path

        await shutdown_store(store)
        assert store.is_open is False

    async def test_shutdown_tolerates_none(self):
        await shutdown_store(None)
