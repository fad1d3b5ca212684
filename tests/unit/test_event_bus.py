"""
Unit tests for the EventBus.

Tiered execution: CRITICAL/HIGH sequential and propagating, NORMAL isolated,
LOW in the background.
"""

import asyncio

import pytest

from funtan.core.event.bus import EventBus, ListenerPriority
from funtan.core.exceptions import EventBusError

pytestmark = pytest.mark.unit


# ============================================================================
# SUBSCRIPTION
# ============================================================================


class TestSubscription:
    def test_listener_must_take_one_argument(self, event_bus):
        with pytest.raises(ValueError):
            event_bus.subscribe("player.created", lambda: None)

    def test_duplicate_identifier_is_ignored(self, event_bus):
        event_bus.subscribe("a", lambda data: None, identifier="same")
        event_bus.subscribe("a", lambda data: None, identifier="same")
        assert event_bus.listener_count("a") == 1

    def test_unsubscribe(self, event_bus):
        listener_id = event_bus.subscribe("a", lambda data: None)
        assert event_bus.unsubscribe("a", listener_id) is True
        assert event_bus.unsubscribe("a", listener_id) is False
        assert event_bus.listener_count() == 0

    def test_wildcards(self, event_bus):
        event_bus.subscribe("player.*", lambda data: None)
        event_bus.subscribe("*", lambda data: None)

        assert event_bus.listener_count("player.created") == 2
        assert event_bus.listener_count("hunt.resolved") == 1

    def test_clear(self, event_bus):
        event_bus.subscribe("a", lambda data: None)
        event_bus.clear()
        assert event_bus.listener_count() == 0


# ============================================================================
# PUBLISH
# ============================================================================


class TestPublish:
    async def test_priority_order(self, event_bus):
        """CRITICAL runs before HIGH before NORMAL."""
        calls = []
        event_bus.subscribe(
            "e", lambda data: calls.append("normal"), priority=ListenerPriority.NORMAL
        )
        event_bus.subscribe("e", lambda data: calls.append("high"), priority=ListenerPriority.HIGH)
        event_bus.subscribe(
            "e", lambda data: calls.append("critical"), priority=ListenerPriority.CRITICAL
        )

        await event_bus.publish("e", {})

        assert calls == ["critical", "high", "normal"]

    async def test_critical_errors_propagate(self, event_bus):
        """A failing CRITICAL listener aborts the publisher."""

        async def boom(data):
            raise RuntimeError("listener failed")

        event_bus.subscribe("e", boom, priority=ListenerPriority.CRITICAL)

        with pytest.raises(RuntimeError, match="listener failed"):
            await event_bus.publish("e", {})

    async def test_normal_errors_are_isolated(self, event_bus):
        """A failing NORMAL listener does not stop its siblings."""
        calls = []

        async def boom(data):
            raise RuntimeError("isolated")

        event_bus.subscribe("e", boom)
        event_bus.subscribe("e", lambda data: calls.append(data["x"]))

        results = await event_bus.publish("e", {"x": 1})

        assert calls == [1]
        assert None in results

    async def test_blocking_timeout(self):
        bus = EventBus(blocking_timeout_seconds=0.01)

        async def slow(data):
            await asyncio.sleep(1)

        bus.subscribe("e", slow, priority=ListenerPriority.HIGH, identifier="slow")

        with pytest.raises(EventBusError):
            await bus.publish("e", {})

    async def test_low_priority_runs_in_background(self, event_bus):
        calls = []

        async def later(data):
            await asyncio.sleep(0)
            calls.append("low")

        event_bus.subscribe("e", later, priority=ListenerPriority.LOW)

        results = await event_bus.publish("e", {})
        await event_bus.drain()

        assert results == []
        assert calls == ["low"]

    async def test_once_listener_fires_once(self, event_bus):
        calls = []
        event_bus.subscribe("e", lambda data: calls.append(1), once=True)

        await event_bus.publish("e", {})
        await event_bus.publish("e", {})

        assert calls == [1]

    async def test_no_listeners(self, event_bus):
        assert await event_bus.publish("nobody.listens", {}) == []
