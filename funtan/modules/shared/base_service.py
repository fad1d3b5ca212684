"""
Base Service Foundation

Purpose
-------
Provides the foundational class for all engine services. Services implement
pure game logic, open transactions through DatabaseService, enforce game
rules by raising domain exceptions, and emit domain events.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access through ConfigManager
- Event emission helpers
- An injectable clock so time-dependent rules are testable

What this class does NOT do:
- Manage database transactions (that's DatabaseService's job)
- Translate exceptions into results (that's the engine boundary's job)

Usage
-----
    class DailyService(BaseService):
        def __init__(self, config_manager, event_bus, logger, players, clock=utc_now):
            super().__init__(config_manager, event_bus, logger, clock)
            self._players = players
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from funtan.core.clock import Clock, utc_now

if TYPE_CHECKING:
    from logging import Logger

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus


class BaseService:
    """
    Base class for all engine services.

    Args:
        config_manager: Game-balance configuration
        event_bus: Event bus for cross-module communication
        logger: Structured logger instance
        clock: Source of "now" (UTC)
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self._clock = clock
        self.log = logger

    def now(self) -> datetime:
        return self._clock()

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Safely retrieve configuration value.

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        from funtan.core.exceptions import ConfigurationError

        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(key, f"Required configuration key '{key}' is missing")
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Emit a domain event for cross-module communication."""
        await self._events.publish(event_type, {**data, **(context or {})})

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log a service operation with structured context."""
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )
