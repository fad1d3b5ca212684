"""
Starter kit: tier-0 weapon and gear, granted and equipped.

Two entry points share one grant:

- `on_player_created` is subscribed to `player.created` at CRITICAL
  priority, so it runs inside the transaction that created the player and a
  failure rolls the creation back.
- `grant_missing` backfills existing players who hold no weapon or no gear
  (created while the kit was disabled, or who removed their starters). Each
  player is handled in its own transaction under the player row lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import select

from funtan.core.database.service import DatabaseService
from funtan.core.event.bus import EventPayload, ListenerPriority
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.enums import ItemKind
from funtan.database.models.inventory import InventoryItem
from funtan.database.models.player import Player

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus
    from funtan.modules.inventory.service import InventoryService
    from funtan.modules.player.service import PlayerService

logger = get_logger(__name__)

LISTENER_ID = "player.starter_kit"


class StarterKit:
    def __init__(
        self,
        config_manager: ConfigManager,
        players: PlayerService,
        inventory: InventoryService,
    ) -> None:
        self._config = config_manager
        self._players = players
        self._inventory = inventory

    def _starter_ids(self) -> Dict[str, str]:
        return {
            ItemKind.WEAPON.value: self._config.get("player.starter_weapon_id", "w0"),
            ItemKind.GEAR.value: self._config.get("player.starter_gear_id", "g0"),
        }

    def register(self, event_bus: EventBus) -> bool:
        """Subscribe unless disabled by `player.starter_kit_enabled`."""
        if not self._config.get("player.starter_kit_enabled", True):
            logger.info("Starter kit disabled; listener not registered")
            return False

        event_bus.subscribe(
            "player.created",
            self.on_player_created,
            priority=ListenerPriority.CRITICAL,
            identifier=LISTENER_ID,
        )
        return True

    async def _grant(
        self, session: AsyncSession, player: Player, kinds: List[str]
    ) -> Dict[str, int]:
        """Grant and equip the starter item for each kind; returns inventory ids."""
        starter_ids = self._starter_ids()
        granted: Dict[str, int] = {}
        for kind in kinds:
            item = await self._inventory.give_in_session(session, player, kind, starter_ids[kind])
            self._inventory.equip_in_session(player, item)
            granted[kind] = item.id
        return granted

    async def on_player_created(self, data: EventPayload) -> None:
        player = data["player"]
        granted = await self._grant(
            data["session"], player, [ItemKind.WEAPON.value, ItemKind.GEAR.value]
        )
        logger.info("Starter kit granted", extra={"player_id": player.id, "granted": granted})

    async def grant_missing(self, player_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Give the starter item for every kind a player holds none of.

        Args:
            player_ids: Players to check; defaults to every stored player

        Returns:
            {"checked": int, "granted": [{"player_id", "weapon"?, "gear"?}]}
        """
        if isinstance(player_ids, (str, int)):
            player_ids = [player_ids]
        if player_ids is not None:
            player_ids = [InputValidator.validate_player_id(p) for p in player_ids]
        else:
            async with DatabaseService.get_session() as session:
                player_ids = list(
                    (await session.scalars(select(Player.id).order_by(Player.id))).all()
                )

        granted: List[Dict[str, Any]] = []
        for player_id in player_ids:
            async with DatabaseService.get_transaction() as session:
                player = await self._players.get_or_create_locked(session, player_id)
                held = set(
                    (
                        await session.scalars(
                            select(InventoryItem.item_type)
                            .where(InventoryItem.player_id == player.id)
                            .distinct()
                        )
                    ).all()
                )
                missing = [kind for kind in self._starter_ids() if kind not in held]
                if missing:
                    granted.append(
                        {"player_id": player.id, **await self._grant(session, player, missing)}
                    )

        logger.info(
            "Starter backfill finished",
            extra={"checked": len(player_ids), "granted_count": len(granted)},
        )
        return {"checked": len(player_ids), "granted": granted}
