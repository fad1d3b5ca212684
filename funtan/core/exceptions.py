"""
Infrastructure exceptions for Funtan.

These describe engineering failures (configuration, storage, event
delivery), never player-facing outcomes. Game rule rejections live in
`funtan.modules.shared.exceptions` and map onto reason codes; anything
raised from here surfaces to players as the generic error result.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FuntanInfrastructureException(Exception):
    """
    Base class for infrastructure errors.

    `code` is a short stable identifier for log filtering, `retryable`
    tells a caller whether repeating the same call could succeed.
    """

    code: str = "INFRASTRUCTURE_ERROR"
    retryable: bool = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            **self.context,
        }


class ConfigurationError(FuntanInfrastructureException):
    """A configuration key holds a value the engine cannot run with."""

    code = "CONFIG_ERROR"

    def __init__(self, config_key: str, problem: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Invalid configuration '{config_key}': {problem}",
            {"config_key": config_key},
        )


class DatabaseError(FuntanInfrastructureException):
    """A driver-level failure inside a database operation."""

    code = "DATABASE_ERROR"
    retryable = True

    def __init__(self, operation: str, original_error: BaseException) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Database {operation} failed: {type(original_error).__name__}",
            {"operation": operation, "error_type": type(original_error).__name__},
        )


class EventBusError(FuntanInfrastructureException):
    """A blocking (CRITICAL/HIGH) listener failed or timed out."""

    code = "EVENT_BUS_ERROR"

    def __init__(self, event_type: str, listener: str, original_error: BaseException) -> None:
        self.event_type = event_type
        self.listener = listener
        self.original_error = original_error
        super().__init__(
            f"Listener {listener} failed on '{event_type}': {original_error!r}",
            {"event_type": event_type, "listener": listener},
        )
