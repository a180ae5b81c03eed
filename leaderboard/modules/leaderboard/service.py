"""
Leaderboard Service
===================

Purpose
-------
Records submitted scores and computes the ranked top-N view over them.

Domain
------
- Submit a named score (append-only; a name may appear many times)
- Query the entries holding the N highest distinct scores, densely ranked
- Count stored entries

Design Notes
------------
- Rank is never stored. It is derived on every query from the current
  entry set, so a submit costs one INSERT regardless of table size and a
  read can never see a stale rank.
- Top-N selects N distinct *score values*, not N rows: every holder of
  the N-th score is returned, so the result can exceed N rows.
- Each operation is a single statement on one pooled connection; failures
  propagate as StorageError kinds and are not retried here.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, List, Optional, TypeVar

from sqlalchemy import func, select

from leaderboard.core.config.config import Config
from leaderboard.core.database.models import ScoreEntry
from leaderboard.core.database.store import Store
from leaderboard.core.exceptions import StorageError, StorageTimeoutError
from leaderboard.core.logging.logger import get_logger
from leaderboard.core.validation.input_validator import InputValidator
from leaderboard.modules.leaderboard.ranking import RankedEntry, ScoreRow, dense_rank
from leaderboard.modules.shared.base_service import BaseService
from leaderboard.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

T = TypeVar("T")

DEFAULT_LIMIT = 10


class LeaderboardService(BaseService):
    """
    Submit scores and read the dense-ranked top-N.

    Public Methods
    --------------
    - submit() -> Record one score
    - top_n() -> Entries holding the N highest distinct scores, ranked
    - count_entries() -> Total number of stored entries

    Args:
        store: Open Store handle; the caller owns its lifecycle
        logger: Structured logger instance
        default_limit: Distinct scores returned when top_n() gets no limit
    """

    def __init__(
        self,
        store: Store,
        logger: Optional[Logger] = None,
        default_limit: Optional[int] = None,
    ) -> None:
        super().__init__(logger or get_logger(__name__))
        self._store = store

        if default_limit is None:
            default_limit = getattr(Config, "LEADERBOARD_DEFAULT_LIMIT", DEFAULT_LIMIT)
        self._default_limit = InputValidator.validate_limit(
            default_limit, field_name="default_limit"
        )

    @property
    def default_limit(self) -> int:
        return self._default_limit

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def submit(
        self,
        name: str,
        score: int,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Record a score under ``name``.

        This is a **write operation** using Store.transaction(). The new row
        is visible to later reads once the commit completes; no rank is
        computed here.

        Args:
            name: Display name; must contain a non-whitespace character
            score: Signed integer score
            timeout: Optional deadline in seconds for the whole operation

        Raises:
            ValidationError: If name or score is invalid (no storage access)
            StorageTimeoutError: If the pool or the deadline timed out
            StorageError: For any other storage failure

        Example:
            >>> await service.submit("alice", 100)
        """
        name = InputValidator.validate_name(name)
        score = InputValidator.validate_score(score)
        self._validate_timeout(timeout)

        self.log_operation("submit", entry_name=name, score=score)

        await self._run("submit", self._insert(name, score), timeout)

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def top_n(
        self,
        limit: Optional[int] = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[RankedEntry]:
        """
        Get every entry whose score is among the ``limit`` highest distinct
        scores, densely ranked.

        This is a **read-only** operation using Store.acquire(). Results are
        ordered by score descending, then by insertion order.

        Args:
            limit: Number of distinct scores to include (default: 10)
            timeout: Optional deadline in seconds for the whole operation

        Returns:
            List of RankedEntry; empty for ``limit == 0`` or an empty store.

        Raises:
            ValidationError: If limit is negative or not an integer
            StorageTimeoutError: If the pool or the deadline timed out
            StorageError: For storage failures or malformed rows

        Example:
            >>> # alice 100, bob 100, carol 90
            >>> [(e.name, e.rank) for e in await service.top_n(2)]
            [('alice', 1), ('bob', 1), ('carol', 2)]
        """
        if limit is None:
            limit = self._default_limit
        limit = InputValidator.validate_limit(limit)
        self._validate_timeout(timeout)

        self.log_operation("top_n", limit=limit)

        if limit == 0:
            return []

        rows = await self._run("top_n", self._fetch_top(limit), timeout)
        return dense_rank(rows, max_groups=limit)

    async def count_entries(self, *, timeout: Optional[float] = None) -> int:
        """Total number of stored entries."""
        self._validate_timeout(timeout)
        return await self._run("count_entries", self._count(), timeout)

    # ========================================================================
    # PRIVATE HELPERS
    # ========================================================================

    async def _insert(self, name: str, score: int) -> None:
        async with self._store.transaction("submit") as session:
            session.add(ScoreEntry(name=name, score=score))

    async def _fetch_top(self, limit: int) -> List[ScoreRow]:
        top_scores = (
            select(ScoreEntry.score)
            .distinct()
            .order_by(ScoreEntry.score.desc())
            .limit(limit)
        )
        stmt = (
            select(ScoreEntry.id, ScoreEntry.name, ScoreEntry.score)
            .where(ScoreEntry.score.in_(top_scores))
            .order_by(ScoreEntry.score.desc(), ScoreEntry.id.asc())
        )

        async with self._store.acquire("top_n") as session:
            result = await session.execute(stmt)
            raw_rows = result.all()

        return [self._to_score_row(row) for row in raw_rows]

    async def _count(self) -> int:
        async with self._store.acquire("count_entries") as session:
            result = await session.execute(select(func.count()).select_from(ScoreEntry))
            return int(result.scalar_one())

    @staticmethod
    def _to_score_row(row: Any) -> ScoreRow:
        """
        Convert a result row, rejecting values the schema does not allow.

        SQLite does not enforce column types, so a row written by another
        client can carry text in ``score`` or a blob in ``name``.
        """
        entry_id, name, score = row
        if (
            not isinstance(entry_id, int)
            or not isinstance(name, str)
            or isinstance(score, bool)
            or not isinstance(score, int)
        ):
            raise StorageError(
                "top_n",
                reason=(
                    f"malformed row id={entry_id!r}: "
                    f"name={type(name).__name__}, score={type(score).__name__}"
                ),
            )
        return ScoreRow(id=entry_id, name=name, score=score)

    @staticmethod
    def _validate_timeout(timeout: Optional[float]) -> None:
        if timeout is None:
            return
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValidationError("timeout", f"Must be a positive number of seconds, got {timeout!r}")

    async def _run(
        self,
        operation: str,
        work: Awaitable[T],
        timeout: Optional[float],
    ) -> T:
        """
        Await ``work``, enforcing the optional deadline.

        On expiry the task is cancelled; the Store's scoped sessions return
        the connection to the pool on the way out.
        """
        try:
            if timeout is None:
                return await work
            return await asyncio.wait_for(work, timeout=timeout)
        except asyncio.TimeoutError as exc:
            error = StorageTimeoutError(operation, timeout_seconds=timeout, original_error=exc)
            self.log_error(operation, error, timeout_seconds=timeout)
            raise error from exc
        except StorageError as exc:
            self.log_error(operation, exc)
            raise
