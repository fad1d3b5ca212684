"""
Hunt Service
============

Purpose
-------
Resolve a hunt against a catalog monster and pay its gem reward.

Flow
----
1. An explicit monster id is resolved against the catalog first (unknown ->
   NotFoundError, before any lock).
2. Lock the player; both slots must resolve to an item (MissingEquipmentError).
3. power = weapon.attack + gear.defense.
4. Without an explicit id, target the lowest-threshold monster of the best
   tier the player qualifies for.
5. Per-(player, tier) cooldown (`hunt.cooldown_seconds`, 60s) ->
   CooldownActiveError, no mutation.
6. Resolve with the configured policy:
   - `threshold` (default): power < threshold -> ThresholdNotMetError, no
     mutation
   - `chance`: win with probability clamp(power / threshold, floor, ceiling);
     a win also pays bronze and silver scaled by the threshold, a loss pays
     a small bronze consolation and still stamps the cooldown
7. On a win: gems through the currency primitive, kills in tier +1, cooldown
   stamped. All in one transaction with the player row locked.

Events
------
- hunt.resolved: {"player_id", "monster_id", "tier", "won", "gems_awarded", "policy"}
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Dict, Optional

from funtan.core.clock import Clock, ensure_utc, utc_now
from funtan.core.database.service import DatabaseService
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.hunt import HuntCooldown, HuntRecord
from funtan.modules.shared.base_repository import BaseRepository
from funtan.modules.shared.base_service import BaseService
from funtan.modules.shared.exceptions import (
    CooldownActiveError,
    MissingEquipmentError,
    NotFoundError,
    ThresholdNotMetError,
)
from funtan.modules.shared.formulas import (
    chance_win_payout,
    hunt_win_chance,
    seconds_remaining,
)

if TYPE_CHECKING:
    from datetime import datetime
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus
    from funtan.database.models.player import Player
    from funtan.modules.catalog.catalog import Catalog
    from funtan.modules.catalog.data import Monster
    from funtan.modules.inventory.service import InventoryService
    from funtan.modules.player.service import PlayerService

POLICY_THRESHOLD = "threshold"
POLICY_CHANCE = "chance"


class HuntCooldownRepository(BaseRepository[HuntCooldown]):
    def stamp(
        self,
        session: AsyncSession,
        cooldown: Optional[HuntCooldown],
        player_id: str,
        tier: int,
        now: datetime,
    ) -> HuntCooldown:
        if cooldown is None:
            return self.add(
                session,
                HuntCooldown(player_id=player_id, monster_tier=tier, last_hunt_at=now),
            )
        cooldown.last_hunt_at = now
        return cooldown


class HuntRecordRepository(BaseRepository[HuntRecord]):
    async def increment_kills(
        self, session: AsyncSession, player_id: str, tier: int
    ) -> HuntRecord:
        record = await self.get_for_update(session, (player_id, tier))
        if record is None:
            return self.add(
                session, HuntRecord(player_id=player_id, monster_tier=tier, kills=1)
            )
        record.kills += 1
        return record


class HuntService(BaseService):
    """
    Public Methods
    --------------
    - hunt() -> resolve one hunt
    - get_hunt_targets() -> power, best tier and beatable monsters per tier
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        players: PlayerService,
        inventory: InventoryService,
        catalog: Catalog,
        clock: Clock = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger, clock)
        self._players = players
        self._inventory = inventory
        self._catalog = catalog
        self._rng = rng or random.Random()
        self._policy = self.get_config("hunt.policy", POLICY_THRESHOLD)
        self._cooldown_repo = HuntCooldownRepository(
            model_class=HuntCooldown,
            logger=get_logger(f"{__name__}.HuntCooldownRepository"),
        )
        self._record_repo = HuntRecordRepository(
            model_class=HuntRecord,
            logger=get_logger(f"{__name__}.HuntRecordRepository"),
        )

    @property
    def policy(self) -> str:
        return self._policy

    def _select_target(self, power: int) -> Monster:
        """Lowest-threshold monster of the best tier that `power` can beat."""
        _, monsters = self._catalog.tier_index.best_tier(power)
        if not monsters:
            raise NotFoundError("Monster")
        for monster in monsters:
            if monster.threshold <= power:
                return monster
        # Nothing in reach; the gate below reports the easiest monster's threshold.
        return monsters[0]

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def hunt(self, player_id: Any, monster_id: Any = None) -> Dict[str, Any]:
        """
        Hunt a monster, or the best available target when none is named.

        Returns:
            {"monster", "won", "gems_awarded", "new_gem_balance",
             "kills_in_tier", "power", "policy"}

        Raises:
            NotFoundError: Unknown explicit monster id
            MissingEquipmentError: Weapon or gear slot empty
            CooldownActiveError: Tier hunted too recently
            ThresholdNotMetError: power < threshold (threshold policy)
        """
        player_id = InputValidator.validate_player_id(player_id)
        requested: Optional[Monster] = None
        if monster_id is not None:
            monster_id = InputValidator.validate_catalog_id(monster_id, "monster_id")
            requested = self._catalog.require_monster(monster_id)

        now = self.now()
        cooldown_seconds = int(self.get_config("hunt.cooldown_seconds", 60))

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)

            loadout = await self._inventory.resolve_loadout(session, player)
            if loadout.missing:
                raise MissingEquipmentError(loadout.missing)
            power = loadout.power

            monster = requested or self._select_target(power)

            cooldown = await self._cooldown_repo.get_for_update(
                session, (player_id, monster.tier)
            )
            if cooldown is not None:
                remaining = seconds_remaining(
                    ensure_utc(cooldown.last_hunt_at), now, cooldown_seconds
                )
                if remaining > 0:
                    raise CooldownActiveError(
                        f"hunt tier {monster.tier}", remaining, extra={"tier": monster.tier}
                    )

            if self._policy == POLICY_CHANCE:
                won = self._roll(power, monster)
            else:
                if power < monster.threshold:
                    raise ThresholdNotMetError(monster.name, power, monster.threshold)
                won = True

            return await self._resolve(session, player, monster, power, won, cooldown, now)

    def _roll(self, power: int, monster: Monster) -> bool:
        chance = hunt_win_chance(
            power,
            monster.threshold,
            float(self.get_config("hunt.chance_floor", 0.05)),
            float(self.get_config("hunt.chance_ceiling", 0.95)),
        )
        return self._rng.random() < chance

    async def _resolve(
        self,
        session: AsyncSession,
        player: Player,
        monster: Monster,
        power: int,
        won: bool,
        cooldown: Optional[HuntCooldown],
        now: datetime,
    ) -> Dict[str, Any]:
        self._cooldown_repo.stamp(session, cooldown, player.id, monster.tier, now)

        payout: Dict[str, int] = {}
        if won:
            gems_awarded = monster.gems
            payout = {"gems": gems_awarded}
            if self._policy == POLICY_CHANCE:
                payout.update(chance_win_payout(monster.threshold))
            await self._players.apply_currency_deltas(session, player, payout, source="hunt")
            record = await self._record_repo.increment_kills(session, player.id, monster.tier)
            kills = record.kills
            consolation = 0
        else:
            gems_awarded = 0
            consolation = int(self.get_config("hunt.consolation_bronze", 1))
            if consolation:
                await self._players.apply_currency_deltas(
                    session, player, {"bronze": consolation}, source="hunt_consolation"
                )
            record = await self._record_repo.get(session, (player.id, monster.tier))
            kills = record.kills if record is not None else 0

        await self._cooldown_repo.flush(session)

        self.log_operation(
            "hunt",
            player_id=player.id,
            monster_id=monster.id,
            tier=monster.tier,
            power=power,
            won=won,
            policy=self._policy,
        )
        await self.emit_event(
            "hunt.resolved",
            {
                "player_id": player.id,
                "monster_id": monster.id,
                "tier": monster.tier,
                "won": won,
                "gems_awarded": gems_awarded,
                "policy": self._policy,
            },
        )
        return {
            "monster": monster.to_dict(),
            "won": won,
            "gems_awarded": gems_awarded,
            "bronze_awarded": payout.get("bronze", 0),
            "silver_awarded": payout.get("silver", 0),
            "consolation_bronze": consolation,
            "new_gem_balance": player.gems,
            "kills_in_tier": kills,
            "power": power,
            "policy": self._policy,
        }

    async def get_hunt_targets(self, player_id: Any) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)
            loadout = await self._inventory.resolve_loadout(session, player)

        power = loadout.power
        index = self._catalog.tier_index
        best_tier, _ = index.best_tier(power)
        return {
            "power": power,
            "missing": loadout.missing,
            "best_tier": best_tier,
            "eligible": {
                tier: [m.to_dict() for m in monsters]
                for tier, monsters in index.eligible_monsters(power).items()
            },
        }
