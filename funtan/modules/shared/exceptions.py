"""
Domain exceptions for the Funtan engine.

Purpose
-------
Define the structured, domain-specific exception hierarchy for game logic.
Services raise these for rule violations (cooldowns, ownership, thresholds);
the engine boundary translates them into failure `EngineResult`s using the
`reason` each class carries.

Design Notes
------------
- All domain exceptions inherit from `FuntanDomainException`.
- Each exception carries:
  - `message`: human-readable description, safe to show to the player
  - `details`: additional structured context, returned as the result payload
  - `severity`: `ErrorSeverity` value for logging
  - `is_retryable`: whether waiting and retrying can succeed
  - `error_code`: short, stable identifier for programmatic use
  - `reason`: the `ReasonCode` reported to the dispatcher
- Timing failures attach `remaining` (seconds) and `remaining_human`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional

from funtan.modules.shared.formulas import format_duration
from funtan.modules.shared.result import ReasonCode


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning (e.g., cooldowns)
    INFO = "info"  # Normal operation (e.g., validation failures)
    WARNING = "warning"  # Concerning but handled
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures requiring immediate action


class FuntanDomainException(Exception):
    """
    Base exception for all Funtan domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False
    reason: ReasonCode = ReasonCode.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "reason": self.reason.value,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


# ============================================================================
# Validation
# ============================================================================


class ValidationError(FuntanDomainException):
    """
    Raised when caller input fails validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    reason = ReasonCode.INVALID_INPUT

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Invalid {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidUserError(ValidationError):
    """Raised when the acting player id is missing or malformed."""

    reason = ReasonCode.INVALID_USER


class InvalidCurrencyTypeError(ValidationError):
    """Raised when a currency key is not one of the known balances."""

    reason = ReasonCode.INVALID_CURRENCY_TYPE

    def __init__(self, currency: Any, allowed: Iterable[str]) -> None:
        allowed = sorted(allowed)
        super().__init__(
            "currency",
            f"unknown currency {currency!r}; expected one of {', '.join(allowed)}",
        )
        self.details.update({"currency": currency, "allowed": allowed})


class InsufficientResourcesError(FuntanDomainException):
    """
    Raised when a removal asks for more than is held.

    Insufficient stock is a hard error, never clamped.

    Args:
        resource: Name of the resource (e.g., an inventory item)
        required: Amount requested
        current: Amount currently held
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    reason = ReasonCode.INVALID_INPUT

    def __init__(self, resource: str, required: int, current: int) -> None:
        self.resource = resource
        self.required = required
        self.current = current
        super().__init__(
            f"Insufficient {resource}: need {required:,}, have {current:,}",
            details={
                "resource": resource,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code="INSUFFICIENT_STOCK",
        )


# ============================================================================
# Lookup & Ownership
# ============================================================================


class NotFoundError(FuntanDomainException):
    """
    Raised when a catalog entry or row does not exist.

    Args:
        resource_type: Type of resource (e.g., "Inventory item", "Monster")
        identifier: Optional identifier for the missing resource
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    reason = ReasonCode.NOT_FOUND

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        message = (
            f"{resource_type} not found: {identifier}"
            if identifier is not None
            else f"{resource_type} not found"
        )
        super().__init__(
            message,
            details={"resource_type": resource_type, "identifier": identifier},
            error_code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
        )


class ForbiddenError(FuntanDomainException):
    """Raised when a player acts on a row owned by someone else."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    reason = ReasonCode.FORBIDDEN

    def __init__(self, resource_type: str, identifier: Any) -> None:
        super().__init__(
            f"That {resource_type.lower()} does not belong to you",
            details={"resource_type": resource_type, "identifier": identifier},
            error_code="FORBIDDEN",
        )


class InvalidTypeError(FuntanDomainException):
    """Raised when an item's kind does not match the requested slot."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    reason = ReasonCode.INVALID_TYPE

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"That item is a {actual}, not a {expected}",
            details={"expected": expected, "actual": actual},
            error_code="INVALID_ITEM_TYPE",
        )


# ============================================================================
# Timing
# ============================================================================


class CooldownActiveError(FuntanDomainException):
    """
    Raised when an action is on cooldown.

    Args:
        action: Name of the action on cooldown
        remaining_seconds: Whole seconds until the action is available
        extra: Additional payload merged into details
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG
    DEFAULT_RETRYABLE = True
    reason = ReasonCode.COOLDOWN

    def __init__(
        self,
        action: str,
        remaining_seconds: int,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.action = action
        self.remaining_seconds = remaining_seconds
        human = format_duration(remaining_seconds)
        super().__init__(
            self._message(action, human),
            details={
                "action": action,
                "remaining": remaining_seconds,
                "remaining_human": human,
                **(extra or {}),
            },
            error_code="COOLDOWN_ACTIVE",
        )

    @staticmethod
    def _message(action: str, human: str) -> str:
        return f"You can {action} again in {human}"


class WorkCooldownError(CooldownActiveError):
    """Raised when starting work too soon after the last collection."""

    reason = ReasonCode.COOLDOWN_AFTER_COLLECT

    @staticmethod
    def _message(action: str, human: str) -> str:
        return f"You are resting after your last shift. You can {action} again in {human}"


class StillWorkingError(CooldownActiveError):
    """Raised when collecting before the work session's finish time."""

    reason = ReasonCode.STILL_WORKING

    @staticmethod
    def _message(action: str, human: str) -> str:
        return f"You are still working. Your shift ends in {human}"


class AlreadyCollectedError(CooldownActiveError):
    """Raised when the latest work session has already been paid out."""

    reason = ReasonCode.ALREADY_COLLECTED

    @staticmethod
    def _message(action: str, human: str) -> str:
        return f"You already collected this shift. You can start working again in {human}"


# ============================================================================
# State
# ============================================================================


class InvalidOperationError(FuntanDomainException):
    """
    Raised when an action is not allowed in the current state.

    Args:
        action: Description of the invalid action
        message: Explanation shown to the player
        details: Extra payload
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(
        self, action: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.action = action
        super().__init__(
            message,
            details={"action": action, **(details or {})},
            error_code=f"INVALID_{action.upper()}",
        )


class AlreadyWorkingError(InvalidOperationError):
    reason = ReasonCode.ALREADY_WORKING


class NoSessionError(InvalidOperationError):
    reason = ReasonCode.NO_SESSION


class NoFinishedSessionError(InvalidOperationError):
    reason = ReasonCode.NO_FINISHED_SESSION


class MissingEquipmentError(InvalidOperationError):
    """Raised when hunting without both a weapon and gear equipped."""

    reason = ReasonCode.MISSING_EQUIPMENT

    def __init__(self, missing: Iterable[str]) -> None:
        missing = list(missing)
        super().__init__(
            "hunt",
            f"You need to equip a {' and '.join(missing)} before hunting",
            details={"missing": missing},
        )


class ThresholdNotMetError(InvalidOperationError):
    """Raised when the player's power is below the monster's threshold."""

    reason = ReasonCode.THRESHOLD_NOT_MET

    def __init__(self, monster_name: str, power: int, threshold: int) -> None:
        super().__init__(
            "hunt",
            f"{monster_name} requires {threshold} power; you have {power}",
            details={"power": power, "threshold": threshold, "monster": monster_name},
        )


# ============================================================================
# Helpers
# ============================================================================


def is_transient_error(exc: Exception) -> bool:
    """True if waiting and retrying can succeed."""
    if isinstance(exc, FuntanDomainException):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """Severity for logging; unknown exceptions are ERROR."""
    if isinstance(exc, FuntanDomainException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
