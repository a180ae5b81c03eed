"""
Exception types shared by every layer of the leaderboard service.

All errors raised on purpose derive from ``LeaderboardError`` and carry
enough structure for a transport to serialize them (``to_dict()``) and for
logging and alerting to classify them (``severity``, ``is_retryable``,
``error_code``).

Two families sit on top of it:

- ``LeaderboardInfrastructureException``: the store failed. ``StorageError``
  covers every storage failure; ``StorageUnavailableError`` (cannot open,
  already closed) and ``StorageTimeoutError`` (pool exhausted or deadline
  expired) refine it, so ``except StorageError`` sees them all.
- ``LeaderboardDomainException`` (``leaderboard.modules.shared.exceptions``):
  the caller broke a precondition.

Nothing here retries. Only timeouts are marked retryable.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class ErrorSeverity(Enum):
    """How loudly an error should be logged and whether it pages anyone."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LeaderboardError(Exception):
    """
    Base of every structured error.

    Subclasses set ``DEFAULT_SEVERITY``, ``DEFAULT_RETRYABLE`` and
    ``ERROR_CODE``; instances may override the first two.
    """

    DEFAULT_SEVERITY: ClassVar[ErrorSeverity] = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: ClassVar[bool] = False
    ERROR_CODE: ClassVar[Optional[str]] = None

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or self.ERROR_CODE or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class LeaderboardInfrastructureException(LeaderboardError):
    """Base for failures of the service's own infrastructure."""


class StorageError(LeaderboardInfrastructureException):
    """
    A storage operation failed.

    Covers driver and I/O failures, constraint violations, parameters the
    driver refused to bind, and rows that do not match the schema.

    Args:
        operation: Name of the operation that failed (e.g. ``"submit"``)
        original_error: The underlying exception, if any
        reason: Explanation used when there is no underlying exception
    """

    ERROR_CODE = "STORAGE_ERROR"

    def __init__(
        self,
        operation: str,
        original_error: Optional[BaseException] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.original_error = original_error
        cause = reason or (str(original_error) if original_error else "unknown failure")
        super().__init__(
            f"Storage error during {operation}: {cause}",
            {
                "operation": operation,
                "error": cause,
                "error_type": type(original_error).__name__ if original_error else None,
            },
        )


class StorageUnavailableError(StorageError):
    """The store file cannot be opened, or the Store has been closed."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    ERROR_CODE = "STORAGE_UNAVAILABLE"

    def __init__(
        self,
        path: str,
        original_error: Optional[BaseException] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.path = path
        super().__init__(f"open {path}", original_error=original_error, reason=reason)
        self.details["path"] = path


class StorageTimeoutError(StorageError):
    """
    No pooled connection became free in time, or a caller deadline expired.

    Transient: the caller may retry with backoff.
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True
    ERROR_CODE = "STORAGE_TIMEOUT"

    def __init__(
        self,
        operation: str,
        timeout_seconds: Optional[float] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        if timeout_seconds is None:
            reason = "timed out waiting for a connection"
        else:
            reason = f"timed out after {timeout_seconds:g}s"
        super().__init__(operation, original_error=original_error, reason=reason)
        self.details["timeout_seconds"] = timeout_seconds
