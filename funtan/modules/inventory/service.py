"""
Inventory Service
=================

Purpose
-------
Stacked weapon/gear inventory and the two equipment slots.

Domain
------
- Granting catalog items (stack increment or new row)
- Removing counts from a stack (row deleted at zero)
- Equipping an owned item into the matching slot
- Resolving the equipped loadout and its power

Guarantees
----------
- At most one row per (player, catalog id, kind); grants increment `count`
- Removal never clamps: asking for more than the stack holds fails
- Equip checks existence, then ownership, then kind, and only ever writes
  the acting player's slot
- Lock order: player row first, then the inventory row

Events
------
- inventory.granted: {"player_id", "inventory_id", "kind", "catalog_id", "quantity", "count"}
- inventory.removed: {"player_id", "inventory_id", "quantity", "remaining"}
- inventory.equipped: {"player_id", "inventory_id", "slot"}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from funtan.core.clock import Clock, utc_now
from funtan.core.database.service import DatabaseService
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.enums import ItemKind
from funtan.database.models.inventory import InventoryItem
from funtan.modules.shared.base_repository import BaseRepository
from funtan.modules.shared.base_service import BaseService
from funtan.modules.shared.exceptions import (
    ForbiddenError,
    InsufficientResourcesError,
    InvalidTypeError,
    NotFoundError,
)

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus
    from funtan.database.models.player import Player
    from funtan.modules.catalog.catalog import Catalog
    from funtan.modules.player.service import PlayerService


# ============================================================================
# Repository
# ============================================================================


class InventoryRepository(BaseRepository[InventoryItem]):
    async def find_stack(
        self,
        session: AsyncSession,
        player_id: str,
        kind: str,
        catalog_id: str,
        for_update: bool = True,
    ) -> Optional[InventoryItem]:
        return await self.find_one_where(
            session,
            InventoryItem.player_id == player_id,
            InventoryItem.item_type == kind,
            InventoryItem.catalog_id == catalog_id,
            for_update=for_update,
        )

    async def list_for_player(
        self, session: AsyncSession, player_id: str, kind: Optional[str] = None
    ) -> List[InventoryItem]:
        conditions = [InventoryItem.player_id == player_id]
        if kind is not None:
            conditions.append(InventoryItem.item_type == kind)
        return await self.find_many_where(
            session,
            *conditions,
            order_by=[InventoryItem.tier, InventoryItem.id],
        )


# ============================================================================
# Loadout
# ============================================================================


@dataclass(frozen=True)
class Loadout:
    """Resolved equipment; a dangling slot reference resolves to None."""

    weapon: Optional[InventoryItem]
    gear: Optional[InventoryItem]

    @property
    def power(self) -> int:
        attack = self.weapon.attack if self.weapon is not None else 0
        defense = self.gear.defense if self.gear is not None else 0
        return attack + defense

    @property
    def missing(self) -> List[str]:
        missing = []
        if self.weapon is None:
            missing.append(ItemKind.WEAPON.value)
        if self.gear is None:
            missing.append(ItemKind.GEAR.value)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weapon": self.weapon.to_dict() if self.weapon is not None else None,
            "gear": self.gear.to_dict() if self.gear is not None else None,
            "power": self.power,
        }


# ============================================================================
# InventoryService
# ============================================================================


class InventoryService(BaseService):
    """
    Inventory and equipment operations.

    Public Methods
    --------------
    - give_in_session() -> grant inside a caller's transaction
    - give_item() -> grant in its own transaction
    - remove_inventory_count() -> decrement / delete a stack
    - equip() -> set a slot reference
    - resolve_loadout() -> in-session equipped rows + power
    - get_equipped() -> equipped rows + power
    - get_inventory() -> a player's stacks, ordered by tier then id
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        players: PlayerService,
        catalog: Catalog,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config_manager, event_bus, logger, clock)
        self._players = players
        self._catalog = catalog
        self._inventory_repo = InventoryRepository(
            model_class=InventoryItem,
            logger=get_logger(f"{__name__}.InventoryRepository"),
        )

    # ========================================================================
    # IN-SESSION PRIMITIVES
    # ========================================================================

    async def give_in_session(
        self,
        session: AsyncSession,
        player: Player,
        kind: str,
        catalog_id: str,
        quantity: int = 1,
    ) -> InventoryItem:
        """
        Grant `quantity` of a catalog item to a locked player.

        Raises:
            NotFoundError: Unknown catalog id for `kind`
        """
        entry = self._catalog.get_item(kind, catalog_id)

        item = await self._inventory_repo.find_stack(session, player.id, kind, catalog_id)
        if item is not None:
            item.count += quantity
        else:
            item = self._inventory_repo.add(
                session,
                InventoryItem(
                    player_id=player.id,
                    item_type=kind,
                    catalog_id=entry.id,
                    tier=entry.tier,
                    rarity=entry.rarity,
                    item_name=entry.name,
                    attack=entry.attack,
                    defense=entry.defense,
                    count=quantity,
                ),
            )
        await self._inventory_repo.flush(session)

        self.log_operation(
            "give_item",
            player_id=player.id,
            kind=kind,
            catalog_id=catalog_id,
            quantity=quantity,
            count=item.count,
        )
        await self.emit_event(
            "inventory.granted",
            {
                "player_id": player.id,
                "inventory_id": item.id,
                "kind": kind,
                "catalog_id": catalog_id,
                "quantity": quantity,
                "count": item.count,
            },
        )
        return item

    def equip_in_session(self, player: Player, item: InventoryItem) -> None:
        if item.item_type == ItemKind.WEAPON.value:
            player.equipped_weapon_inv_id = item.id
        else:
            player.equipped_gear_inv_id = item.id

    async def resolve_loadout(self, session: AsyncSession, player: Player) -> Loadout:
        """Resolve both slot references; rows that vanished or changed hands count as empty."""
        return Loadout(
            weapon=await self._resolve_slot(
                session, player, player.equipped_weapon_inv_id, ItemKind.WEAPON.value
            ),
            gear=await self._resolve_slot(
                session, player, player.equipped_gear_inv_id, ItemKind.GEAR.value
            ),
        )

    async def _resolve_slot(
        self,
        session: AsyncSession,
        player: Player,
        inventory_id: Optional[int],
        kind: str,
    ) -> Optional[InventoryItem]:
        if inventory_id is None:
            return None
        item = await self._inventory_repo.get(session, inventory_id)
        if item is None or item.player_id != player.id or item.item_type != kind:
            return None
        return item

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def give_item(
        self, player_id: Any, kind: Any, catalog_id: Any, quantity: Any = 1
    ) -> Dict[str, Any]:
        """
        Grant a catalog weapon or gear, stacking onto an existing row.

        Raises:
            InvalidUserError: Bad player id
            ValidationError: Bad kind or quantity
            NotFoundError: Unknown catalog id
        """
        player_id = InputValidator.validate_player_id(player_id)
        kind = InputValidator.validate_choice(kind, "kind", ItemKind.values())
        catalog_id = InputValidator.validate_catalog_id(catalog_id)
        quantity = InputValidator.validate_positive_integer(quantity, "quantity")
        self._catalog.get_item(kind, catalog_id)

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)
            item = await self.give_in_session(session, player, kind, catalog_id, quantity)
            return {"item": item.to_dict(), "quantity": quantity}

    async def remove_inventory_count(
        self, inventory_id: Any, quantity: Any = 1
    ) -> Dict[str, Any]:
        """
        Remove `quantity` from a stack, deleting the row when it reaches zero.

        Raises:
            NotFoundError: No such inventory row
            InsufficientResourcesError: Stack holds fewer than `quantity`
        """
        inventory_id = InputValidator.validate_positive_integer(inventory_id, "inventory_id")
        quantity = InputValidator.validate_positive_integer(quantity, "quantity")

        async with DatabaseService.get_transaction() as session:
            # Unlocked read to learn the owner, so the player row is locked first.
            item = await self._inventory_repo.get(session, inventory_id)
            if item is None:
                raise NotFoundError("Inventory item", inventory_id)

            player = await self._players.get_or_create_locked(session, item.player_id)
            item = await self._inventory_repo.get_for_update(session, inventory_id)
            if item is None:
                raise NotFoundError("Inventory item", inventory_id)

            if quantity > item.count:
                raise InsufficientResourcesError(item.item_name, quantity, item.count)

            remaining = item.count - quantity
            if remaining == 0:
                await self._inventory_repo.delete(session, item)
            else:
                item.count = remaining

            self.log_operation(
                "remove_inventory_count",
                player_id=player.id,
                inventory_id=inventory_id,
                quantity=quantity,
                remaining=remaining,
            )
            await self.emit_event(
                "inventory.removed",
                {
                    "player_id": player.id,
                    "inventory_id": inventory_id,
                    "quantity": quantity,
                    "remaining": remaining,
                },
            )
            return {
                "inventory_id": inventory_id,
                "removed": quantity,
                "remaining": remaining,
                "deleted": remaining == 0,
            }

    async def equip(self, player_id: Any, inventory_id: Any, slot: Any) -> Dict[str, Any]:
        """
        Equip an owned item into `slot` ("weapon" or "gear").

        Raises:
            NotFoundError: No such inventory row
            ForbiddenError: Row belongs to another player
            InvalidTypeError: Row kind does not match the slot
        """
        player_id = InputValidator.validate_player_id(player_id)
        inventory_id = InputValidator.validate_positive_integer(inventory_id, "inventory_id")
        slot = InputValidator.validate_choice(slot, "slot", ItemKind.values())

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)

            item = await self._inventory_repo.get(session, inventory_id)
            if item is None:
                raise NotFoundError("Inventory item", inventory_id)
            if item.player_id != player.id:
                raise ForbiddenError("Inventory item", inventory_id)
            if item.item_type != slot:
                raise InvalidTypeError(expected=slot, actual=item.item_type)

            self.equip_in_session(player, item)

            self.log_operation(
                "equip", player_id=player_id, inventory_id=inventory_id, slot=slot
            )
            await self.emit_event(
                "inventory.equipped",
                {"player_id": player_id, "inventory_id": inventory_id, "slot": slot},
            )
            return {"slot": slot, "item": item.to_dict()}

    async def get_equipped(self, player_id: Any) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)
            loadout = await self.resolve_loadout(session, player)
            return loadout.to_dict()

    async def get_inventory(self, player_id: Any, kind: Any = None) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)
        if kind is not None:
            kind = InputValidator.validate_choice(kind, "kind", ItemKind.values())

        async with DatabaseService.get_session() as session:
            items = await self._inventory_repo.list_for_player(session, player_id, kind)
            return {"player_id": player_id, "items": [item.to_dict() for item in items]}
