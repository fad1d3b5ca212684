"""
Game Engine
===========

Purpose
-------
The single entry point a dispatcher calls. Each method maps one player
action onto one service call and returns an `EngineResult`; domain failures
come back as `success=False` with a `ReasonCode`, never as exceptions.

Usage
-----
    engine = await GameEngine.build()
    result = await engine.claim_daily("42")
    if result.success:
        reply(f"+{result.data['reward']} bronze")
    elif result.reason.is_timing:
        reply_info(result.error)

The engine does not initialize the database; call
`DatabaseService.initialize()` first.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Optional

from funtan.core.clock import Clock, utc_now
from funtan.core.config.manager import ConfigManager
from funtan.core.event.bus import EventBus
from funtan.core.logging.logger import get_logger, setup_logging
from funtan.core.services.container import ServiceContainer
from funtan.core.validation.input_validator import InputValidator
from funtan.modules.catalog.catalog import CATALOG_KINDS, Catalog
from funtan.modules.engine.decorators import engine_operation

logger = get_logger(__name__)


class GameEngine:
    def __init__(self, services: ServiceContainer) -> None:
        self._services = services

    @classmethod
    async def build(
        cls,
        config_manager: Optional[ConfigManager] = None,
        event_bus: Optional[EventBus] = None,
        *,
        catalog: Optional[Catalog] = None,
        clock: Clock = utc_now,
        rng: Optional[random.Random] = None,
        configure_logging: bool = True,
    ) -> "GameEngine":
        """
        Build and initialize a container, then wrap it.

        Installs the engine's log handlers unless `configure_logging` is
        False (hosts that route the `funtan` logger themselves).
        """
        if configure_logging:
            setup_logging()
        services = ServiceContainer(
            config_manager or ConfigManager(),
            event_bus or EventBus(),
            get_logger("funtan.core.services.container"),
            catalog=catalog,
            clock=clock,
            rng=rng,
        )
        await services.initialize()
        return cls(services)

    @property
    def services(self) -> ServiceContainer:
        return self._services

    async def shutdown(self) -> None:
        await self._services.shutdown()

    # ========================================================================
    # Player & currency
    # ========================================================================

    @engine_operation("ensure_player")
    async def ensure_player(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.player.ensure_player(player_id)

    @engine_operation("get_balance")
    async def get_balance(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.player.get_balance(player_id)

    @engine_operation("adjust_currency")
    async def adjust_currency(self, player_id: Any, deltas: Any) -> Dict[str, Any]:
        return await self._services.player.adjust_currency(player_id, deltas)

    @engine_operation("add_prestige")
    async def add_prestige(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.player.add_prestige(player_id)

    @engine_operation("get_profile")
    async def get_profile(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.player.get_profile(player_id)

    @engine_operation("grant_missing_starters", scope=None)
    async def grant_missing_starters(self, player_ids: Any = None) -> Dict[str, Any]:
        """Backfill starter items for players holding no weapon or no gear."""
        return await self._services.starter_kit.grant_missing(player_ids)

    # ========================================================================
    # Daily & work
    # ========================================================================

    @engine_operation("claim_daily")
    async def claim_daily(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.daily.claim_daily(player_id)

    @engine_operation("start_work")
    async def start_work(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.work.start_work(player_id)

    @engine_operation("collect_work")
    async def collect_work(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.work.collect_work(player_id)

    @engine_operation("cancel_work")
    async def cancel_work(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.work.cancel_work(player_id)

    @engine_operation("get_work_status")
    async def get_work_status(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.work.get_work_status(player_id)

    # ========================================================================
    # Inventory & equipment
    # ========================================================================

    @engine_operation("give_item")
    async def give_item(
        self, player_id: Any, kind: Any, catalog_id: Any, quantity: Any = 1
    ) -> Dict[str, Any]:
        return await self._services.inventory.give_item(player_id, kind, catalog_id, quantity)

    @engine_operation("remove_inventory_count", scope=None)
    async def remove_inventory_count(
        self, inventory_id: Any, quantity: Any = 1
    ) -> Dict[str, Any]:
        return await self._services.inventory.remove_inventory_count(inventory_id, quantity)

    @engine_operation("equip")
    async def equip(self, player_id: Any, inventory_id: Any, slot: Any) -> Dict[str, Any]:
        return await self._services.inventory.equip(player_id, inventory_id, slot)

    @engine_operation("get_equipped")
    async def get_equipped(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.inventory.get_equipped(player_id)

    @engine_operation("get_inventory")
    async def get_inventory(self, player_id: Any, kind: Any = None) -> Dict[str, Any]:
        return await self._services.inventory.get_inventory(player_id, kind)

    # ========================================================================
    # Hunt
    # ========================================================================

    @engine_operation("hunt")
    async def hunt(self, player_id: Any, monster_id: Any = None) -> Dict[str, Any]:
        return await self._services.hunt.hunt(player_id, monster_id)

    @engine_operation("get_hunt_targets")
    async def get_hunt_targets(self, player_id: Any) -> Dict[str, Any]:
        return await self._services.hunt.get_hunt_targets(player_id)

    # ========================================================================
    # Admin
    # ========================================================================

    @engine_operation("admin_adjust_currency")
    async def admin_adjust_currency(
        self, actor_id: Any, target_id: Any, deltas: Any
    ) -> Dict[str, Any]:
        return await self._services.admin.admin_adjust_currency(actor_id, target_id, deltas)

    @engine_operation("admin_grant_item")
    async def admin_grant_item(
        self,
        actor_id: Any,
        target_id: Any,
        kind: Any,
        catalog_id: Any,
        quantity: Any = 1,
    ) -> Dict[str, Any]:
        return await self._services.admin.admin_grant_item(
            actor_id, target_id, kind, catalog_id, quantity
        )

    @engine_operation("add_server_admin", scope="server_id")
    async def add_server_admin(
        self, server_id: Any, player_id: Any, role: Any = "admin"
    ) -> Dict[str, Any]:
        return await self._services.admin.add_server_admin(server_id, player_id, role)

    @engine_operation("remove_server_admin", scope="server_id")
    async def remove_server_admin(self, server_id: Any, player_id: Any) -> Dict[str, Any]:
        return await self._services.admin.remove_server_admin(server_id, player_id)

    @engine_operation("list_server_admins", scope="server_id")
    async def list_server_admins(self, server_id: Any) -> Dict[str, Any]:
        admins = await self._services.admin.list_server_admins(server_id)
        return {"server_id": str(server_id), "admins": admins}

    @engine_operation("is_server_admin", scope="server_id")
    async def is_server_admin(self, server_id: Any, player_id: Any) -> Dict[str, Any]:
        is_admin = await self._services.admin.is_server_admin(server_id, player_id)
        return {"is_admin": is_admin}

    # ========================================================================
    # Catalog
    # ========================================================================

    @engine_operation("get_catalog", scope=None)
    async def get_catalog(self, kind: Any) -> Dict[str, Any]:
        kind = InputValidator.validate_choice(kind, "kind", CATALOG_KINDS)
        entries = self._services.catalog.entries(kind)
        return {"kind": kind, "entries": [entry.to_dict() for entry in entries]}
