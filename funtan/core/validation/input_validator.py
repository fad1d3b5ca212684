"""
Input Validation Layer for Funtan

Purpose
-------
Centralized validation for every value that crosses the engine boundary:
player ids, catalog ids, quantities, item kinds and currency delta maps.
Validation happens before any transaction is opened or row lock taken.

Responsibilities
----------------
- Validate and normalize caller inputs to the types the services expect
- Enforce bounds and allowed choices
- Raise ValidationError (or a more specific subclass) with player-readable
  messages

Non-Responsibilities
--------------------
- Game rules (cooldowns, ownership, thresholds) belong to services

Observability
-------------
Every validation failure is logged at debug level with field_name, raw_value
(repr) and reason.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Dict, Iterable, NoReturn, Optional, Sequence, Type

from funtan.core.logging.logger import get_logger
from funtan.modules.shared.exceptions import (
    InvalidCurrencyTypeError,
    InvalidUserError,
    ValidationError,
)

logger = get_logger(__name__)

MAX_PLAYER_ID_LENGTH = 64
MAX_CATALOG_ID_LENGTH = 32


def _raise_validation_error(
    field_name: str,
    value: Any,
    message: str,
    error_cls: Type[ValidationError] = ValidationError,
) -> NoReturn:
    """Log and raise a ValidationError (or subclass)."""
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": repr(value),
            "reason": message,
        },
    )
    raise error_cls(field_name, message)


class InputValidator:
    """
    Stateless input validation helpers.

    All methods return the validated (normalized) value on success and raise
    on failure; none of them silently coerce bad input.
    """

    # =========================================================================
    # IDENTIFIERS
    # =========================================================================

    @staticmethod
    def validate_player_id(
        value: Any,
        field_name: str = "player_id",
        error_cls: Type[ValidationError] = InvalidUserError,
    ) -> str:
        """
        Validate a platform player id and normalize it to a string.

        Integers (chat platform snowflakes) are accepted and stringified.
        Empty, whitespace-only, boolean or overly long values are rejected.
        """
        if value is None or isinstance(value, bool):
            _raise_validation_error(field_name, value, "A player id is required", error_cls)

        if isinstance(value, int):
            value = str(value)

        if not isinstance(value, str):
            _raise_validation_error(
                field_name, value, "Player id must be a string or integer", error_cls
            )

        normalized = value.strip()
        if not normalized:
            _raise_validation_error(field_name, value, "A player id is required", error_cls)
        if len(normalized) > MAX_PLAYER_ID_LENGTH:
            _raise_validation_error(
                field_name,
                value,
                f"Player id must be at most {MAX_PLAYER_ID_LENGTH} characters",
                error_cls,
            )
        return normalized

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        min_length: int = 1,
        max_length: Optional[int] = None,
    ) -> str:
        if not isinstance(value, str):
            _raise_validation_error(field_name, value, "Must be text")

        normalized = value.strip()
        if len(normalized) < min_length:
            _raise_validation_error(
                field_name, value, f"Must be at least {min_length} characters"
            )
        if max_length is not None and len(normalized) > max_length:
            _raise_validation_error(
                field_name, value, f"Must be at most {max_length} characters"
            )
        return normalized

    @staticmethod
    def validate_catalog_id(value: Any, field_name: str = "catalog_id") -> str:
        return InputValidator.validate_string(
            value, field_name, min_length=1, max_length=MAX_CATALOG_ID_LENGTH
        ).lower()

    # =========================================================================
    # NUMBERS
    # =========================================================================

    @staticmethod
    def validate_positive_integer(value: Any, field_name: str) -> int:
        """Accept ints (not bools) and integral floats greater than zero."""
        if isinstance(value, bool) or not isinstance(value, Real):
            _raise_validation_error(field_name, value, "Must be a whole number")

        if not math.isfinite(value) or value != int(value):
            _raise_validation_error(field_name, value, "Must be a whole number")

        int_value = int(value)
        if int_value <= 0:
            _raise_validation_error(field_name, value, "Must be greater than zero")
        return int_value

    # =========================================================================
    # CHOICES
    # =========================================================================

    @staticmethod
    def validate_choice(value: Any, field_name: str, choices: Sequence[str]) -> str:
        """Case-insensitive membership check; returns the canonical choice."""
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in choices:
                return normalized

        _raise_validation_error(
            field_name, value, f"Must be one of: {', '.join(choices)}"
        )

    # =========================================================================
    # CURRENCY DELTAS
    # =========================================================================

    @staticmethod
    def validate_currency_deltas(deltas: Any, allowed: Iterable[str]) -> Dict[str, int]:
        """
        Validate a `{currency: signed_delta}` map.

        - empty or non-mapping input -> ValidationError (InvalidInput)
        - unknown currency key -> InvalidCurrencyTypeError
        - non-numeric, non-finite or fractional delta -> ValidationError
        """
        allowed = set(allowed)

        if not isinstance(deltas, dict) or not deltas:
            _raise_validation_error(
                "deltas", deltas, "Provide at least one currency adjustment"
            )

        validated: Dict[str, int] = {}
        for key, delta in deltas.items():
            currency = key.strip().lower() if isinstance(key, str) else key
            if currency not in allowed:
                logger.debug(
                    "Input validation failed",
                    extra={"field_name": "currency", "raw_value": repr(key)},
                )
                raise InvalidCurrencyTypeError(key, allowed)

            if isinstance(delta, bool) or not isinstance(delta, Real):
                _raise_validation_error(currency, delta, "Delta must be a number")
            if not math.isfinite(delta):
                _raise_validation_error(currency, delta, "Delta must be finite")
            if delta != int(delta):
                _raise_validation_error(currency, delta, "Delta must be a whole number")

            validated[currency] = validated.get(currency, 0) + int(delta)

        return validated
