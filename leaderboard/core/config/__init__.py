"""
Configuration subsystem: static settings loaded from the environment.
"""

from leaderboard.core.config.config import Config

__all__ = ["Config"]
