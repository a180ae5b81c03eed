"""
Input Validation Layer

Purpose
-------
Centralized validation for caller-supplied inputs. Enforces type safety and
bounds checking before anything reaches the Store, so that invalid input
is rejected without a storage round-trip.

Responsibilities
----------------
- Validate names (non-blank text encodable as UTF-8)
- Validate scores (integers that fit SQLite's INTEGER column)
- Validate top-N limits (non-negative integers the store can bind)
- Raise ValidationError with clear messages

Non-Responsibilities
--------------------
- Business rules beyond input shape (service layer concern)
- Persistence constraints (Store/schema concern)

Observability
-------------
Every validation failure is logged at debug level with field_name,
raw_value (repr) and reason.
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional

from leaderboard.core.logging.logger import get_logger
from leaderboard.modules.shared.exceptions import ValidationError

logger = get_logger(__name__)

# SQLite stores INTEGER values as signed 64-bit
SQLITE_INTEGER_MIN = -(2**63)
SQLITE_INTEGER_MAX = 2**63 - 1


def _raise_validation_error(field_name: str, value: Any, message: str) -> NoReturn:
    """Log and raise a ValidationError."""
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": repr(value),
            "reason": message,
        },
    )
    raise ValidationError(field_name, message)


class InputValidator:
    """
    Stateless validators. Each returns the validated value or raises
    ValidationError; none silently coerce.
    """

    # =========================================================================
    # INTEGER VALIDATION
    # =========================================================================

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
    ) -> int:
        """
        Validate that value is an integer within optional bounds.

        Unlike ``int(value)``, this rejects floats, strings and booleans
        rather than converting them.

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if isinstance(value, bool) or not isinstance(value, int):
            _raise_validation_error(
                field_name,
                value,
                f"Must be a whole number, got {type(value).__name__}",
            )

        if min_value is not None and value < min_value:
            _raise_validation_error(
                field_name,
                value,
                f"Must be at least {min_value}, got {value}",
            )

        if max_value is not None and value > max_value:
            _raise_validation_error(
                field_name,
                value,
                f"Cannot exceed {max_value}, got {value}",
            )

        return value

    @staticmethod
    def validate_non_negative_integer(
        value: Any,
        field_name: str,
        max_value: Optional[int] = None,
    ) -> int:
        """Validate that value is a non-negative integer (>= 0)."""
        return InputValidator.validate_integer(
            value=value,
            field_name=field_name,
            min_value=0,
            max_value=max_value,
        )

    @staticmethod
    def validate_limit(value: Any, field_name: str = "limit") -> int:
        """Validate a top-N limit: a non-negative integer the store can bind."""
        return InputValidator.validate_non_negative_integer(
            value=value,
            field_name=field_name,
            max_value=SQLITE_INTEGER_MAX,
        )

    @staticmethod
    def validate_score(value: Any, field_name: str = "score") -> int:
        """Validate a score: any integer representable by the store."""
        return InputValidator.validate_integer(
            value=value,
            field_name=field_name,
            min_value=SQLITE_INTEGER_MIN,
            max_value=SQLITE_INTEGER_MAX,
        )

    # =========================================================================
    # STRING VALIDATION
    # =========================================================================

    @staticmethod
    def validate_name(value: Any, field_name: str = "name") -> str:
        """
        Validate a display name.

        Any length is accepted, but the name must contain at least one
        non-whitespace character. The value is returned unchanged (not
        stripped) so it is stored exactly as submitted.

        Raises:
            ValidationError: If the name is missing, not text, blank, or
                contains an unpaired surrogate (not storable as UTF-8)
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if not isinstance(value, str):
            _raise_validation_error(
                field_name,
                value,
                f"Must be text, got {type(value).__name__}",
            )

        if not value.strip():
            _raise_validation_error(field_name, value, "Must not be empty")

        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            _raise_validation_error(
                field_name,
                value,
                f"Must be valid Unicode text (unpaired surrogate at position {exc.start})",
            )

        return value
