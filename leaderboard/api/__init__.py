"""
HTTP transport for the leaderboard service.

A thin FastAPI adapter: routes map onto LeaderboardService.submit/top_n and
exception kinds map onto status codes. No invariants live here.
"""

from leaderboard.api.app import create_app

__all__ = ["create_app"]
