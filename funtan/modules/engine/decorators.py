"""
Engine boundary decorator.

`engine_operation` turns a coroutine that returns a payload dict (or raises)
into one that always returns an `EngineResult`:

- FuntanDomainException -> failure with the exception's reason, message and
  details, logged at the exception's severity
- any other Exception -> generic `Error` failure, logged with traceback
- success -> `EngineResult.ok(payload)`

Nothing raised inside an operation escapes to the dispatcher.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, cast

from funtan.core.logging.logger import LogContext, get_logger
from funtan.modules.shared.exceptions import ErrorSeverity, FuntanDomainException
from funtan.modules.shared.result import EngineResult, ReasonCode

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

_SEVERITY_LEVELS = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def engine_operation(name: str, scope: Optional[str] = "player_id") -> Callable[[F], F]:
    """
    Wrap an engine method in the result boundary.

    Args:
        name: Operation name bound to the log context
        scope: Log context field that receives the first argument
            (`player_id` for player actions, `server_id` for the admin
            registry), or None to bind nothing
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> EngineResult:
            bound: Dict[str, Any] = {}
            if scope is not None:
                bound[scope] = args[0] if args else kwargs.get(scope)

            async with LogContext(operation=name, **bound):
                try:
                    data: Dict[str, Any] = await func(self, *args, **kwargs)

                except FuntanDomainException as exc:
                    logger.log(
                        _SEVERITY_LEVELS.get(exc.severity, logging.ERROR),
                        f"Engine operation rejected: {name}",
                        extra={
                            "reason": exc.reason.value,
                            "error_code": exc.error_code,
                            "details": exc.details,
                        },
                    )
                    return EngineResult.fail(exc.message, exc.reason, exc.details)

                except Exception as exc:
                    logger.error(
                        f"Engine operation failed: {name}",
                        extra={"error_type": type(exc).__name__, "error": str(exc)},
                        exc_info=True,
                    )
                    return EngineResult.fail(GENERIC_ERROR_MESSAGE, ReasonCode.ERROR)

                return EngineResult.ok(data)

        return cast(F, wrapper)

    return decorator
