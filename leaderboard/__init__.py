"""
Leaderboard service.

Clients submit named scores and read a dense-ranked, tie-inclusive top-N
view backed by a pooled SQLite store.
"""

__version__ = "0.1.0"
