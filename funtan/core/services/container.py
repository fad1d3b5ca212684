"""
Service Container
=================

Purpose
-------
Dependency injection container for the engine's domain services. Builds
each service once, wires service-to-service dependencies, and registers the
event listeners that ship with the engine (the starter kit).

Non-Responsibilities
--------------------
- Database lifecycle (DatabaseService.initialize / shutdown)
- Result translation (GameEngine)

Architecture Notes
------------------
- Every service takes (config_manager, event_bus, logger, clock) plus the
  services it delegates to
- The catalog, clock and random source are injected here so tests can
  substitute them
"""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from funtan.core.clock import Clock, utc_now
from funtan.core.logging.logger import get_logger
from funtan.modules.admin.service import AdminService
from funtan.modules.catalog.catalog import Catalog, default_catalog
from funtan.modules.daily.service import DailyService
from funtan.modules.hunt.service import HuntService
from funtan.modules.inventory.service import InventoryService
from funtan.modules.player.service import PlayerService
from funtan.modules.player.starter_kit import StarterKit
from funtan.modules.work.service import WorkService

if TYPE_CHECKING:
    from logging import Logger

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus


class ServiceContainer:
    """
    Usage:
        container = ServiceContainer(config_manager, event_bus, logger)
        await container.initialize()
        await container.daily.claim_daily("42")
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        *,
        catalog: Optional[Catalog] = None,
        clock: Clock = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config_manager = config_manager
        self._event_bus = event_bus
        self._logger = logger
        self._catalog = catalog or default_catalog()
        self._clock = clock
        self._rng = rng

        self._player: Optional[PlayerService] = None
        self._inventory: Optional[InventoryService] = None
        self._daily: Optional[DailyService] = None
        self._work: Optional[WorkService] = None
        self._hunt: Optional[HuntService] = None
        self._admin: Optional[AdminService] = None
        self._starter_kit: Optional[StarterKit] = None

        self._initialized = False
        self._service_init_times: Dict[str, float] = {}

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        if self._initialized:
            self._logger.warning("ServiceContainer already initialized")
            return

        start = time.perf_counter()
        try:
            self._player = self._create_service("player", PlayerService)
            self._inventory = self._create_service(
                "inventory", InventoryService, players=self._player, catalog=self._catalog
            )
            self._daily = self._create_service("daily", DailyService, players=self._player)
            self._work = self._create_service("work", WorkService, players=self._player)
            self._hunt = self._create_service(
                "hunt",
                HuntService,
                players=self._player,
                inventory=self._inventory,
                catalog=self._catalog,
                rng=self._rng,
            )
            self._admin = self._create_service(
                "admin", AdminService, players=self._player, inventory=self._inventory
            )

            self._starter_kit = StarterKit(self._config_manager, self._player, self._inventory)
            starter_kit_registered = self._starter_kit.register(self._event_bus)

        except Exception as e:
            self._logger.critical(
                "Service container initialization failed",
                exc_info=True,
                extra={"error": str(e)},
            )
            raise

        self._initialized = True
        self._logger.info(
            "Service container initialized",
            extra={
                "total_time_seconds": round(time.perf_counter() - start, 3),
                "service_count": len(self._service_init_times),
                "hunt_policy": self._hunt.policy,
                "starter_kit": starter_kit_registered,
            },
        )

    def _create_service(self, name: str, cls: type, **dependencies: Any) -> Any:
        start = time.perf_counter()
        try:
            instance = cls(
                config_manager=self._config_manager,
                event_bus=self._event_bus,
                logger=get_logger(f"{cls.__module__}.{cls.__name__}"),
                clock=self._clock,
                **dependencies,
            )
        except Exception:
            self._logger.error(f"Failed to initialize {name}", exc_info=True)
            raise

        duration = time.perf_counter() - start
        self._service_init_times[name] = duration
        self._logger.debug(f"Initialized {name} in {duration:.3f}s")
        return instance

    async def shutdown(self) -> None:
        if not self._initialized:
            return
        await self._event_bus.drain()
        self._initialized = False
        self._logger.info("Service container shut down")

    # ========================================================================
    # Service accessors
    # ========================================================================

    def _require(self, service: Optional[Any]) -> Any:
        if not self._initialized or service is None:
            raise RuntimeError("ServiceContainer not initialized. Call initialize() first.")
        return service

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def player(self) -> PlayerService:
        return self._require(self._player)

    @property
    def inventory(self) -> InventoryService:
        return self._require(self._inventory)

    @property
    def starter_kit(self) -> StarterKit:
        return self._require(self._starter_kit)

    @property
    def daily(self) -> DailyService:
        return self._require(self._daily)

    @property
    def work(self) -> WorkService:
        return self._require(self._work)

    @property
    def hunt(self) -> HuntService:
        return self._require(self._hunt)

    @property
    def admin(self) -> AdminService:
        return self._require(self._admin)

    @property
    def is_initialized(self) -> bool:
        return self._initialized
