from leaderboard.core.logging.logger import (
    LogContext,
    dropped_log_records,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogContext",
    "dropped_log_records",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
