"""
Player Service
==============

Purpose
-------
Owns the player ledger: lazy creation, balance reads, and the single
currency-adjustment choke point every reward and spend path goes through.

Domain
------
- Idempotent get-or-create with row lock (`get_or_create_locked`)
- Signed currency deltas, clamped at zero (`apply_currency_deltas`)
- Balance, profile and prestige operations

Guarantees
----------
- Balances never go negative; every write goes through
  `apply_currency_deltas`
- A player row is created exactly once; `player.created` fires inside the
  creating transaction so CRITICAL listeners (the starter kit) can extend it
  or abort it
- Validation happens before any transaction is opened

Events
------
- player.created: {"session", "player", "player_id"}
- currency.adjusted: {"player_id", "deltas", "applied", "balances", "source"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from funtan.core.clock import Clock, utc_now
from funtan.core.database.service import DatabaseService
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.enums import Currency
from funtan.database.models.player import Player
from funtan.modules.shared.base_repository import BaseRepository
from funtan.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus


# ============================================================================
# Repository
# ============================================================================


class PlayerRepository(BaseRepository[Player]):
    """Player rows, keyed by platform id."""

    async def insert_if_absent(self, session: AsyncSession, player_id: str) -> bool:
        """
        INSERT ... ON CONFLICT DO NOTHING.

        Returns True when this call created the row. Concurrent first
        interactions race on the primary key; exactly one of them wins.
        """
        dialect = session.bind.dialect.name if session.bind is not None else "sqlite"
        insert = postgresql_insert if dialect == "postgresql" else sqlite_insert

        stmt = (
            insert(Player)
            .values(id=player_id)
            .on_conflict_do_nothing(index_elements=[Player.id])
        )
        result = await session.execute(stmt)
        created = result.rowcount == 1

        self.log.debug(
            "Repository.insert_if_absent: Player",
            extra={"player_id": player_id, "inserted": created},
        )
        return created


# ============================================================================
# PlayerService
# ============================================================================


class PlayerService(BaseService):
    """
    Player ledger operations.

    Public Methods
    --------------
    - get_or_create_locked() -> locked Player inside a caller's transaction
    - apply_currency_deltas() -> in-session balance mutation (choke point)
    - ensure_player() -> idempotent create
    - get_balance() -> four balances
    - adjust_currency() -> signed deltas in their own transaction
    - add_prestige() -> +1 prestige, capped
    - get_profile() -> balances, prestige, streak and equipped ids
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config_manager, event_bus, logger, clock)
        self._player_repo = PlayerRepository(
            model_class=Player,
            logger=get_logger(f"{__name__}.PlayerRepository"),
        )

    @property
    def repository(self) -> PlayerRepository:
        return self._player_repo

    # ========================================================================
    # IN-SESSION PRIMITIVES
    # ========================================================================

    async def get_or_create_locked(self, session: AsyncSession, player_id: str) -> Player:
        """
        Return the player row locked FOR UPDATE, creating it if absent.

        Must be the first lock taken in any transaction (lock order: player
        row, then everything else).
        """
        player = await self._player_repo.get_for_update(session, player_id)
        if player is not None:
            return player

        created = await self._player_repo.insert_if_absent(session, player_id)
        player = await self._player_repo.get_for_update(session, player_id)
        if player is None:
            # Only reachable if the row vanished between insert and select.
            raise RuntimeError(f"Player {player_id} missing after insert")

        if created:
            self.log_operation("player_created", player_id=player_id)
            await self.emit_event(
                "player.created",
                {"session": session, "player": player, "player_id": player_id},
            )
        return player

    async def apply_currency_deltas(
        self,
        session: AsyncSession,
        player: Player,
        deltas: Mapping[str, int],
        source: str = "adjust",
    ) -> Dict[str, int]:
        """
        Apply signed deltas to a locked player, clamping each balance at zero.

        `deltas` must already be validated (known currency keys, integer
        values). Returns the change actually applied per currency, which
        differs from the request when a balance was clamped.
        """
        applied: Dict[str, int] = {}
        for currency, delta in deltas.items():
            before = getattr(player, currency)
            after = max(0, before + delta)
            setattr(player, currency, after)
            applied[currency] = after - before

        self.log.info(
            "Currency adjusted",
            extra={
                "player_id": player.id,
                "requested": dict(deltas),
                "applied": applied,
                "source": source,
            },
        )
        await self.emit_event(
            "currency.adjusted",
            {
                "player_id": player.id,
                "deltas": dict(deltas),
                "applied": applied,
                "balances": player.balances(),
                "source": source,
            },
        )
        return applied

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def ensure_player(self, player_id: Any) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)

        async with DatabaseService.get_transaction() as session:
            player = await self.get_or_create_locked(session, player_id)
            return {"player_id": player.id, **player.balances()}

    async def get_balance(self, player_id: Any) -> Dict[str, int]:
        """
        Read the four balances.

        Players who do not exist yet are created first, so the starter kit
        is granted on any first interaction.
        """
        player_id = InputValidator.validate_player_id(player_id)

        async with DatabaseService.get_transaction() as session:
            player = await self.get_or_create_locked(session, player_id)
            return player.balances()

    async def adjust_currency(
        self, player_id: Any, deltas: Any, source: str = "adjust"
    ) -> Dict[str, Any]:
        """
        Apply `{currency: signed_delta}` in one transaction.

        Raises:
            InvalidUserError: Bad player id
            ValidationError: Empty map, non-integral or non-finite delta
            InvalidCurrencyTypeError: Unknown currency key
        """
        player_id = InputValidator.validate_player_id(player_id)
        deltas = InputValidator.validate_currency_deltas(deltas, Currency.values())

        async with DatabaseService.get_transaction() as session:
            player = await self.get_or_create_locked(session, player_id)
            applied = await self.apply_currency_deltas(session, player, deltas, source)
            return {
                "player_id": player.id,
                "applied": applied,
                "balances": player.balances(),
            }

    async def add_prestige(self, player_id: Any) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)
        max_level = int(self.get_config("player.prestige_max_level", 999))

        async with DatabaseService.get_transaction() as session:
            player = await self.get_or_create_locked(session, player_id)
            capped = player.prestige >= max_level
            if not capped:
                player.prestige += 1

            self.log_operation(
                "add_prestige",
                player_id=player_id,
                prestige=player.prestige,
                capped=capped,
            )
            return {"player_id": player.id, "prestige": player.prestige, "capped": capped}

    async def get_profile(self, player_id: Any) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)

        async with DatabaseService.get_transaction() as session:
            player = await self.get_or_create_locked(session, player_id)
            return {
                "player_id": player.id,
                "balances": player.balances(),
                "prestige": player.prestige,
                "work_streak": player.work_streak,
                "equipped_weapon_inv_id": player.equipped_weapon_inv_id,
                "equipped_gear_inv_id": player.equipped_gear_inv_id,
            }
