"""
Domain errors: the caller asked for something the service does not accept.

These are raised before any storage access. Transports map them to a
client error (HTTP 400).
"""

from __future__ import annotations

from leaderboard.core.exceptions import ErrorSeverity, LeaderboardError


class LeaderboardDomainException(LeaderboardError):
    """Base for precondition failures raised by services."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO


class ValidationError(LeaderboardDomainException):
    """
    A single input field failed validation.

    ``error_code`` is ``VALIDATION_<FIELD>`` (e.g. ``VALIDATION_NAME``).
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            {"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


def is_transient_error(exc: BaseException) -> bool:
    """True when retrying the same call may succeed."""
    return isinstance(exc, LeaderboardError) and exc.is_retryable


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    if isinstance(exc, LeaderboardError):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: BaseException) -> bool:
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
