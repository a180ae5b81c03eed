"""
Base Service Foundation

Provides the shared plumbing for domain services: a structured logger and
the operation/error logging helpers. Services own no infrastructure; they
receive the handles they need (e.g. a Store) through their constructor.

Usage
-----
    class LeaderboardService(BaseService):
        def __init__(self, store, logger=None):
            super().__init__(logger or get_logger(__name__))
            self._store = store
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from logging import Logger


class BaseService:
    """
    Base class for all domain services.

    Args:
        logger: Structured logger instance
    """

    def __init__(self, logger: Logger) -> None:
        self.log = logger

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: BaseException,
        **context: Any,
    ) -> None:
        """
        Log a service error with full context.

        Args:
            operation: Name of the operation that failed
            error: The exception that occurred
            **context: Additional context data
        """
        self.log.error(
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )
