"""
Leaderboard Module
==================

Domain: score submission and dense-ranked top-N queries

Services:
- LeaderboardService: submit / top_n over a Store
"""

from .ranking import RankedEntry, ScoreRow, dense_rank
from .service import DEFAULT_LIMIT, LeaderboardService

__all__ = [
    "DEFAULT_LIMIT",
    "LeaderboardService",
    "RankedEntry",
    "ScoreRow",
    "dense_rank",
]
