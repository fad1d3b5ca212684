"""
Funtan EventBus: async pub/sub with tiered listener execution.

Purpose
-------
Decouple engine services from the side effects that follow a state change.
Services publish domain events ("player.created", "hunt.resolved", ...) and
listeners react without the publisher knowing about them.

Tiered concurrency
------------------
- CRITICAL: sequential, ordered, awaited with timeout. Errors propagate to
  the publisher so a listener can abort the surrounding transaction (the
  starter kit grant relies on this).
- HIGH: sequential, ordered, awaited with timeout. Errors propagate.
- NORMAL: concurrent (asyncio.gather), awaited. Errors are logged and isolated.
- LOW: fire-and-forget background tasks. Errors are logged.

Wildcards
---------
A subscription to "player.*" receives every event whose name starts with
"player.". A subscription to "*" receives everything.

Design Decisions
----------------
- Instance-based so tests can build an isolated bus.
- Listeners take exactly one argument, the payload dict; sync callables are
  supported and called inline.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from funtan.core.exceptions import EventBusError
from funtan.core.logging.logger import get_logger

logger = get_logger(__name__)

EventPayload = Dict[str, Any]
CallbackType = Union[
    Callable[[EventPayload], Awaitable[Any]],
    Callable[[EventPayload], Any],
]


class ListenerPriority(Enum):
    """Priority levels for event listeners (lower value runs first)."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


_sequence = itertools.count()


@dataclass(slots=True)
class EventListener:
    """Registered listener metadata."""

    event_name: str
    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False
    order: int = field(default_factory=lambda: next(_sequence))

    def matches(self, event_name: str) -> bool:
        if self.event_name in ("*", event_name):
            return True
        if self.event_name.endswith(".*"):
            return event_name.startswith(self.event_name[:-1])
        return False


class EventBus:
    """
    Async EventBus with tiered listener execution.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("player.created", grant_kit, priority=ListenerPriority.CRITICAL)
    >>> await bus.publish("player.created", {"player_id": "42"})
    """

    def __init__(self, *, blocking_timeout_seconds: float = 5.0) -> None:
        self._listeners: List[EventListener] = []
        self._blocking_timeout = blocking_timeout_seconds
        self._background_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        """Ensure callback accepts exactly one parameter."""
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", repr(callback))
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event or wildcard pattern.

        Returns the listener identifier, used to unsubscribe.
        """
        self._validate_callback_signature(callback)

        identifier = identifier or (
            f"{getattr(callback, '__qualname__', 'listener')}#{next(_sequence)}"
        )
        if any(
            lst.event_name == event_name and lst.identifier == identifier
            for lst in self._listeners
        ):
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": identifier},
            )
            return identifier

        self._listeners.append(
            EventListener(
                event_name=event_name,
                callback=callback,
                priority=priority,
                identifier=identifier,
                once=once,
            )
        )
        logger.debug(
            "EventBus: subscribed listener",
            extra={
                "event_name": event_name,
                "listener_id": identifier,
                "priority": priority.name,
                "once": once,
            },
        )
        return identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        before = len(self._listeners)
        self._listeners = [
            lst
            for lst in self._listeners
            if not (lst.event_name == event_name and lst.identifier == identifier)
        ]
        return len(self._listeners) != before

    def clear(self) -> None:
        self._listeners.clear()

    def listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is None:
            return len(self._listeners)
        return sum(1 for lst in self._listeners if lst.matches(event_name))

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> List[Any]:
        """
        Publish an event to all matching listeners.

        Returns results from CRITICAL/HIGH/NORMAL listeners; LOW listeners are
        fire-and-forget and not included.
        """
        listeners = sorted(
            (lst for lst in self._listeners if lst.matches(event_name)),
            key=lambda lst: (lst.priority.value, lst.order),
        )
        if not listeners:
            logger.debug("EventBus: no listeners for event", extra={"event_name": event_name})
            return []

        once_ids = {id(lst) for lst in listeners if lst.once}
        if once_ids:
            self._listeners = [lst for lst in self._listeners if id(lst) not in once_ids]

        logger.debug(
            "EventBus: publishing event",
            extra={
                "event_name": event_name,
                "listener_count": len(listeners),
                "payload_keys": sorted(data.keys()),
            },
        )

        results: List[Any] = []

        for listener in listeners:
            if listener.priority in (ListenerPriority.CRITICAL, ListenerPriority.HIGH):
                results.append(await self._run_blocking(event_name, listener, data))

        normal = [lst for lst in listeners if lst.priority is ListenerPriority.NORMAL]
        if normal:
            results.extend(
                await asyncio.gather(
                    *(self._run_isolated(event_name, lst, data) for lst in normal)
                )
            )

        for listener in listeners:
            if listener.priority is ListenerPriority.LOW:
                task = asyncio.create_task(self._run_isolated(event_name, listener, data))
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)

        return results

    async def drain(self) -> None:
        """Wait for outstanding LOW-priority listeners to finish."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    @staticmethod
    async def _invoke(listener: EventListener, data: EventPayload) -> Any:
        result = listener.callback(data)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _run_blocking(
        self, event_name: str, listener: EventListener, data: EventPayload
    ) -> Any:
        try:
            return await asyncio.wait_for(
                self._invoke(listener, data), timeout=self._blocking_timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "EventBus: blocking listener timed out",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "timeout_seconds": self._blocking_timeout,
                },
            )
            raise EventBusError(event_name, listener.identifier, exc) from exc
        except Exception as exc:
            logger.warning(
                "EventBus: blocking listener failed; propagating",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            raise

    async def _run_isolated(
        self, event_name: str, listener: EventListener, data: EventPayload
    ) -> Any:
        try:
            return await self._invoke(listener, data)
        except Exception as exc:
            logger.error(
                "EventBus: listener failed",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
                exc_info=True,
            )
            return None
