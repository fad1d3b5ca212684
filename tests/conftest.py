"""
Pytest Configuration and Fixtures for Funtan Tests
==================================================

Purpose
-------
Shared fixtures for the Funtan test suite: a controllable clock, an isolated
event bus and config manager, a throwaway SQLite database, and a fully built
GameEngine.

Architecture Notes
------------------
- Environment variables are set before any funtan import, so the static
  Config picks up the testing profile (no log files, NullPool).
- Unit tests use mocks or pure objects (fast, isolated).
- Integration tests use a fresh SQLite file per test (clean slate).
- PostgreSQL tests start their own testcontainer (see
  tests/integration/test_postgres_concurrency.py).
"""

from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import random
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio

from funtan.core.config.manager import ConfigManager
from funtan.core.database.service import DatabaseService
from funtan.core.event.bus import EventBus
from funtan.core.logging.logger import get_logger
from funtan.modules.engine.service import GameEngine

logger = get_logger(__name__)

START_TIME = datetime(2025, 1, 6, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# CLOCK
# ============================================================================


class FakeClock:
    """
    Callable clock that only moves when told to.

    Usage:
        clock.advance(hours=9)
        await engine.collect_work("42")
    """

    def __init__(self, start: datetime = START_TIME) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class FixedRandom(random.Random):
    """Random source whose `random()` always returns the same value."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Isolated bus per test; no listeners leak between tests."""
    return EventBus(blocking_timeout_seconds=2.0)


@pytest.fixture
def config_overrides() -> Dict[str, Any]:
    """Override in a test module (or via parametrize) to change game balance."""
    return {}


@pytest.fixture
def config_manager(config_overrides: Dict[str, Any]) -> ConfigManager:
    return ConfigManager(config_overrides)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """
    Fresh SQLite database for one test.

    Scope: function (new file per test, clean slate)
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'funtan.db'}"
    await DatabaseService.initialize(url)
    await DatabaseService.create_schema()
    logger.debug("Test database ready", extra={"url_scheme": "sqlite"})

    yield

    await DatabaseService.shutdown()


@pytest_asyncio.fixture
async def engine(
    database: None,
    config_manager: ConfigManager,
    event_bus: EventBus,
    clock: FakeClock,
    rng: random.Random,
) -> AsyncGenerator[GameEngine, None]:
    """GameEngine over the test database with a controllable clock."""
    game = await GameEngine.build(config_manager, event_bus, clock=clock, rng=rng)
    yield game
    await game.shutdown()


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_event_bus(mocker):
    """
    Mock EventBus for unit tests.

    Scope: function
    """
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock(return_value=[])
    mock_bus.subscribe = mocker.MagicMock()
    mock_bus.drain = mocker.AsyncMock()
    return mock_bus


@pytest.fixture
def mock_service_container(mocker):
    """
    Mock ServiceContainer whose services are AsyncMocks.

    Scope: function
    Uses: GameEngine boundary tests that should not touch a database
    """
    container = mocker.MagicMock()
    for name in ("player", "inventory", "daily", "work", "hunt", "admin"):
        setattr(container, name, mocker.AsyncMock())
    container.shutdown = mocker.AsyncMock()
    return container
