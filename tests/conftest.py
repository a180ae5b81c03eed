"""
Pytest Configuration and Fixtures for Leaderboard Tests
=======================================================

Purpose
-------
Centralized fixtures for the leaderboard test suite: a real Store on a
temporary SQLite file for integration tests, and mocked Store handles for
unit tests of the service layer.

Architecture Notes
------------------
- Unit tests use mocks (fast, isolated, no file access)
- Integration tests open a fresh file under ``tmp_path`` per test
- Async fixtures and tests run under pytest-asyncio (``asyncio_mode=auto``)
"""

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from leaderboard.core.config.config import Config
from leaderboard.core.database.store import Store
from leaderboard.core.logging.logger import get_logger
from leaderboard.modules.leaderboard.service import LeaderboardService

logger = get_logger(__name__)

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["LOG_LEVEL"] = "DEBUG"
    Config.load()


# ============================================================================
# STORE FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture
def db_path(tmp_path) -> str:
    """Path of a not-yet-created store file, unique per test."""
    return str(tmp_path / "data" / "score.db")


@pytest_asyncio.fixture
async def store(db_path: str) -> AsyncGenerator[Store, None]:
    """
    Open a Store on a fresh temporary file.

    Scope: function (clean slate per test)
    """
    store = await Store.open(db_path, pool_size=5, pool_timeout=5)
    logger.debug("Opened test store: %s", db_path)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def service(store: Store) -> LeaderboardService:
    """LeaderboardService bound to the temporary store."""
    return LeaderboardService(store, default_limit=10)


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_session(mocker):
    """
    Mock AsyncSession.

    ``execute`` returns a result whose ``all()`` yields no rows unless a
    test overrides ``mock_session.execute.return_value.all.return_value``.
    """
    session = mocker.MagicMock()
    result = mocker.MagicMock()
    result.all.return_value = []
    result.scalar_one.return_value = 0
    session.execute = mocker.AsyncMock(return_value=result)
    return session


@pytest.fixture
def mock_store(mocker, mock_session):
    """
    Mock Store whose acquire()/transaction() yield ``mock_session``.

    Scope: function
    Uses: Unit tests of LeaderboardService without a file
    """
    store = mocker.MagicMock(spec=Store)
    store.acquire = mocker.MagicMock()
    store.transaction = mocker.MagicMock()
    store.acquire.return_value.__aenter__.return_value = mock_session
    store.transaction.return_value.__aenter__.return_value = mock_session
    store.acquire.return_value.__aexit__.return_value = False
    store.transaction.return_value.__aexit__.return_value = False
    return store

