"""
Work Service
============

Purpose
-------
Timed work shifts that pay silver on collection.

Lifecycle
---------
    none -> working -> finished -> collected
               \\-> cancelled

- `start_work` creates a `working` session ending `duration_seconds` (9h)
  from now. Refused while another session is `working`, and for
  `cooldown_after_collect_seconds` (3h) after the last collection.
- `collect_work` looks at the most recent session. A `working` session past
  its finish time flips to `finished` when observed (lazy expiry) and is paid
  in the same call.
- Pay = reward_silver + min(per_day * (cap_days - 1), per_day * (streak - 1)),
  where the work streak continues within `streak_window_seconds` (48h) of the
  last collection, resets to 1 otherwise, and is capped at `cap_days`.

There is no scheduler; a session stays `working` in the database past its
finish time until someone looks at it.

Every mutation locks the player row first, then the session row.

Events
------
- work.started: {"player_id", "session_id", "finish_at"}
- work.collected: {"player_id", "session_id", "total_reward", "streak"}
- work.cancelled: {"player_id", "session_id"}
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, Optional

from funtan.core.clock import Clock, ensure_utc, utc_now
from funtan.core.database.service import DatabaseService
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.enums import WorkStatus
from funtan.database.models.work_session import WorkSession
from funtan.modules.shared.base_repository import BaseRepository
from funtan.modules.shared.base_service import BaseService
from funtan.modules.shared.exceptions import (
    AlreadyCollectedError,
    AlreadyWorkingError,
    NoFinishedSessionError,
    NoSessionError,
    StillWorkingError,
    WorkCooldownError,
)
from funtan.modules.shared.formulas import next_streak, seconds_remaining, work_streak_bonus

if TYPE_CHECKING:
    from datetime import datetime
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus
    from funtan.database.models.player import Player
    from funtan.modules.player.service import PlayerService


# ============================================================================
# Repository
# ============================================================================


class WorkSessionRepository(BaseRepository[WorkSession]):
    async def find_active(
        self, session: AsyncSession, player_id: str
    ) -> Optional[WorkSession]:
        return await self.find_one_where(
            session,
            WorkSession.player_id == player_id,
            WorkSession.status == WorkStatus.WORKING.value,
            for_update=True,
        )

    async def find_latest(
        self, session: AsyncSession, player_id: str, for_update: bool = True
    ) -> Optional[WorkSession]:
        return await self.find_one_where(
            session,
            WorkSession.player_id == player_id,
            order_by=[WorkSession.started_at.desc(), WorkSession.id.desc()],
            for_update=for_update,
        )


# ============================================================================
# WorkService
# ============================================================================


class WorkService(BaseService):
    """
    Work session state machine.

    Public Methods
    --------------
    - start_work()
    - collect_work()
    - cancel_work()
    - get_work_status()
    """

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
        self._session_repo = WorkSessionRepository(
            model_class=WorkSession,
            logger=get_logger(f"{__name__}.WorkSessionRepository"),
        )

    # ------------------------------------------------------------------ #
    # Config
    # ------------------------------------------------------------------ #

    def _duration(self) -> int:
        return int(self.get_config("work.duration_seconds", 32400))

    def _post_collect_cooldown(self) -> int:
        return int(self.get_config("work.cooldown_after_collect_seconds", 10800))

    def _cooldown_remaining(self, player: Player, now: datetime) -> int:
        last_collected = ensure_utc(player.last_work_collected_at)
        if last_collected is None:
            return 0
        return seconds_remaining(last_collected, now, self._post_collect_cooldown())

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def start_work(self, player_id: Any) -> Dict[str, Any]:
        """
        Start a work shift.

        Raises:
            AlreadyWorkingError: A session is already `working` (payload carries it)
            WorkCooldownError: Collected less than the post-collect cooldown ago
        """
        player_id = InputValidator.validate_player_id(player_id)
        now = self.now()

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)

            active = await self._session_repo.find_active(session, player_id)
            if active is not None:
                remaining = seconds_remaining(ensure_utc(active.finish_at), now, 0)
                raise AlreadyWorkingError(
                    "start_work",
                    "You are already working",
                    details={"session": active.to_dict(), "remaining": remaining},
                )

            remaining = self._cooldown_remaining(player, now)
            if remaining > 0:
                raise WorkCooldownError("start work", remaining)

            work = self._session_repo.add(
                session,
                WorkSession(
                    player_id=player_id,
                    started_at=now,
                    finish_at=now + timedelta(seconds=self._duration()),
                    status=WorkStatus.WORKING.value,
                ),
            )
            await self._session_repo.flush(session)

            self.log_operation("start_work", player_id=player_id, session_id=work.id)
            await self.emit_event(
                "work.started",
                {
                    "player_id": player_id,
                    "session_id": work.id,
                    "finish_at": work.finish_at,
                },
            )
            return {"session": work.to_dict(), "duration": self._duration()}

    async def collect_work(self, player_id: Any) -> Dict[str, Any]:
        """
        Collect the most recent session.

        Returns:
            {"total_reward", "base_reward", "bonus", "new_silver", "streak", "session"}

        Raises:
            NoSessionError: The player never worked
            NoFinishedSessionError: The most recent session was cancelled
            StillWorkingError: The shift has time left
            AlreadyCollectedError: Already paid; carries the post-collect cooldown
        """
        player_id = InputValidator.validate_player_id(player_id)
        now = self.now()

        async with DatabaseService.get_transaction() as session:
            player = await self._players.get_or_create_locked(session, player_id)
            work = await self._session_repo.find_latest(session, player_id)

            if work is None:
                raise NoSessionError("collect", "You have not started any work")

            if work.status == WorkStatus.CANCELLED.value:
                raise NoFinishedSessionError(
                    "collect", "Your last shift was cancelled; there is nothing to collect"
                )

            if work.status == WorkStatus.COLLECTED.value:
                raise AlreadyCollectedError(
                    "start work", self._cooldown_remaining(player, now)
                )

            if work.status == WorkStatus.WORKING.value:
                finish_at = ensure_utc(work.finish_at)
                if now < finish_at:
                    remaining = seconds_remaining(finish_at, now, 0)
                    raise StillWorkingError(
                        "collect", remaining, extra={"session": work.to_dict()}
                    )
                work.status = WorkStatus.FINISHED.value

            return await self._pay(session, player, work, now)

    async def _pay(
        self, session: AsyncSession, player: Player, work: WorkSession, now: datetime
    ) -> Dict[str, Any]:
        window = timedelta(seconds=int(self.get_config("work.streak_window_seconds", 172800)))
        base_reward = int(self.get_config("work.reward_silver", 100))
        per_day = int(self.get_config("work.streak_bonus_per_day", 5))
        cap_days = int(self.get_config("work.streak_cap_days", 30))

        streak = next_streak(
            player.work_streak,
            ensure_utc(player.last_work_collected_at),
            now,
            window,
            cap_days,
        )
        bonus = work_streak_bonus(streak, per_day, cap_days)
        total = base_reward + bonus

        await self._players.apply_currency_deltas(
            session, player, {"silver": total}, source="work"
        )
        player.work_streak = streak
        player.last_work_collected_at = now
        work.status = WorkStatus.COLLECTED.value
        work.collected_at = now

        self.log_operation(
            "collect_work",
            player_id=player.id,
            session_id=work.id,
            streak=streak,
            total_reward=total,
        )
        await self.emit_event(
            "work.collected",
            {
                "player_id": player.id,
                "session_id": work.id,
                "total_reward": total,
                "streak": streak,
            },
        )
        return {
            "total_reward": total,
            "base_reward": base_reward,
            "bonus": bonus,
            "new_silver": player.silver,
            "streak": streak,
            "session": work.to_dict(),
        }

    async def cancel_work(self, player_id: Any) -> Dict[str, Any]:
        """Abandon the running shift: no pay, no cooldown stamp."""
        player_id = InputValidator.validate_player_id(player_id)

        async with DatabaseService.get_transaction() as session:
            await self._players.get_or_create_locked(session, player_id)
            work = await self._session_repo.find_active(session, player_id)
            if work is None:
                raise NoSessionError("cancel", "You are not working right now")

            work.status = WorkStatus.CANCELLED.value

            self.log_operation("cancel_work", player_id=player_id, session_id=work.id)
            await self.emit_event(
                "work.cancelled", {"player_id": player_id, "session_id": work.id}
            )
            return {"session": work.to_dict()}

    async def get_work_status(self, player_id: Any) -> Dict[str, Any]:
        """
        Read-only view of the latest session.

        `collect_in` is the time left on a running shift; `start_in` the
        post-collect cooldown. The stored status is reported as is, so a
        shift past its finish time still reads `working` until collected.
        """
        player_id = InputValidator.validate_player_id(player_id)
        now = self.now()

        async with DatabaseService.get_session() as session:
            player = await self._players.repository.get(session, player_id)
            work = await self._session_repo.find_latest(session, player_id, for_update=False)

            collect_in = 0
            if work is not None and work.status == WorkStatus.WORKING.value:
                collect_in = seconds_remaining(ensure_utc(work.finish_at), now, 0)

            return {
                "session": work.to_dict() if work is not None else None,
                "collect_in": collect_in,
                "start_in": self._cooldown_remaining(player, now) if player else 0,
                "streak": player.work_streak if player else 0,
            }
