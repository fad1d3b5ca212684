"""
Daily Service
=============

Once-per-cooldown bronze reward with a streak bonus.

State per player: never claimed -> claimed(streak=1) -> claimed(streak=n),
resetting to 1 when a claim lands outside the streak window.

Rules (defaults from ConfigManager `daily.*`):
- a claim within `cooldown_seconds` (24h) of the last one fails with
  CooldownActiveError and changes nothing
- a claim within `streak_window_seconds` (48h) of the last one continues the
  streak, otherwise it resets to 1
- reward = max(0, base_bronze + (streak - 1) * streak_bonus)

The player row is locked first, then the claim row. Everything happens in
one transaction.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict

from funtan.core.clock import Clock, ensure_utc, utc_now
from funtan.core.database.service import DatabaseService
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.daily_claim import DailyClaim
from funtan.modules.shared.base_repository import BaseRepository
from funtan.modules.shared.base_service import BaseService
from funtan.modules.shared.exceptions import CooldownActiveError
from funtan.modules.shared.formulas import daily_reward, next_streak, seconds_remaining

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus
    from funtan.modules.player.service import PlayerService


class DailyClaimRepository(BaseRepository[DailyClaim]):
    async def get_or_create_locked(self, session: AsyncSession, player_id: str) -> DailyClaim:
        # The player row is already locked, so no other transaction can race
        # this insert for the same player.
        claim = await self.get_for_update(session, player_id)
        if claim is None:
            claim = self.add(session, DailyClaim(player_id=player_id, streak=0))
            await self.flush(session)
        return claim


class DailyService(BaseService):
    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        players: PlayerService,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config_manager, event_bus, logger, clock)
        self._players = players
        self._claim_repo = DailyClaimRepository(
            model_class=DailyClaim,
            logger=get_logger(f"{__name__}.DailyClaimRepository"),
        )

    async def claim_daily(self, player_id: Any) -> Dict[str, Any]:
        """
        Claim the daily bronze reward.

        Returns:
            {"reward", "streak", "new_balance", "next_claim_in"}

        Raises:
            InvalidUserError: Bad player id
            CooldownActiveError: Claimed less than the cooldown ago
        """
        player_id = InputValidator.validate_player_id(player_id)

        cooldown = int(self.get_config("daily.cooldown_seconds", 86400))
        window = timedelta(seconds=int(self.get_config("daily.streak_window_seconds", 172800)))
        base = int(self.get_config("daily.base_bronze", 50))
        per_streak = int(self.get_config("daily.streak_bonus", 5))
        streak_cap = self.get_config("daily.streak_cap")

        now = self.now()

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)
            claim = await self._claim_repo.get_or_create_locked(session, player_id)

            last_claim_at = ensure_utc(claim.last_claim_at)
            if last_claim_at is not None:
                remaining = seconds_remaining(last_claim_at, now, cooldown)
                if remaining > 0:
                    raise CooldownActiveError("claim your daily reward", remaining)

            streak = next_streak(claim.streak, last_claim_at, now, window, streak_cap)
            reward = daily_reward(streak, base, per_streak)

            await self._players.apply_currency_deltas(
                session, player, {"bronze": reward}, source="daily"
            )
            claim.last_claim_at = now
            claim.streak = streak

            self.log_operation(
                "claim_daily",
                player_id=player_id,
                streak=streak,
                reward=reward,
            )
            await self.emit_event(
                "daily.claimed",
                {"player_id": player_id, "streak": streak, "reward": reward},
            )
            return {
                "reward": reward,
                "streak": streak,
                "new_balance": player.bronze,
                "next_claim_in": cooldown,
            }
