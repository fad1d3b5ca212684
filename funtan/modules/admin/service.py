"""
Admin Service
=============

Privileged variants of the currency and item primitives, plus the per-server
admin registry.

No authorization happens here. The dispatcher verifies the actor before
calling; these methods only validate their inputs (actor -> InvalidUser,
target -> InvalidInput) and delegate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from funtan.core.clock import Clock, utc_now
from funtan.core.database.service import DatabaseService
from funtan.core.logging.logger import get_logger
from funtan.core.validation.input_validator import InputValidator
from funtan.database.models.server_admin import ServerAdmin
from funtan.modules.shared.base_repository import BaseRepository
from funtan.modules.shared.base_service import BaseService
from funtan.modules.shared.exceptions import InvalidUserError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from funtan.core.config.manager import ConfigManager
    from funtan.core.event.bus import EventBus
    from funtan.modules.inventory.service import InventoryService
    from funtan.modules.player.service import PlayerService

MAX_ROLE_LENGTH = 32


class ServerAdminRepository(BaseRepository[ServerAdmin]):
    async def find_entry(
        self, session: AsyncSession, server_id: str, player_id: str, for_update: bool = False
    ) -> Optional[ServerAdmin]:
        return await self.find_one_where(
            session,
            ServerAdmin.server_id == server_id,
            ServerAdmin.player_id == player_id,
            for_update=for_update,
        )


class AdminService(BaseService):
    """
    Public Methods
    --------------
    - admin_adjust_currency()
    - admin_grant_item()
    - add_server_admin() / remove_server_admin()
    - list_server_admins() / is_server_admin()
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        players: PlayerService,
        inventory: InventoryService,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config_manager, event_bus, logger, clock)
        self._players = players
        self._inventory = inventory
        self._admin_repo = ServerAdminRepository(
            model_class=ServerAdmin,
            logger=get_logger(f"{__name__}.ServerAdminRepository"),
        )

    @staticmethod
    def _validate_parties(actor_id: Any, target_id: Any) -> tuple[str, str]:
        actor_id = InputValidator.validate_player_id(
            actor_id, "actor_id", error_cls=InvalidUserError
        )
        target_id = InputValidator.validate_player_id(
            target_id, "target_id", error_cls=ValidationError
        )
        return actor_id, target_id

    # ========================================================================
    # PRIVILEGED PRIMITIVES
    # ========================================================================

    async def admin_adjust_currency(
        self, actor_id: Any, target_id: Any, deltas: Any
    ) -> Dict[str, Any]:
        actor_id, target_id = self._validate_parties(actor_id, target_id)

        self.log_operation("admin_adjust_currency", actor_id=actor_id, target_id=target_id)
        result = await self._players.adjust_currency(
            target_id, deltas, source=f"admin:{actor_id}"
        )
        return {"actor_id": actor_id, "target_id": target_id, **result}

    async def admin_grant_item(
        self,
        actor_id: Any,
        target_id: Any,
        kind: Any,
        catalog_id: Any,
        quantity: Any = 1,
    ) -> Dict[str, Any]:
        actor_id, target_id = self._validate_parties(actor_id, target_id)

        self.log_operation(
            "admin_grant_item",
            actor_id=actor_id,
            target_id=target_id,
            kind=kind,
            catalog_id=catalog_id,
        )
        result = await self._inventory.give_item(target_id, kind, catalog_id, quantity)
        return {"actor_id": actor_id, "target_id": target_id, **result}

    # ========================================================================
    # SERVER ADMIN REGISTRY
    # ========================================================================

    async def add_server_admin(
        self, server_id: Any, player_id: Any, role: Any = "admin"
    ) -> Dict[str, Any]:
        """Register (or re-role) an admin for a server."""
        server_id = InputValidator.validate_player_id(
            server_id, "server_id", error_cls=ValidationError
        )
        player_id = InputValidator.validate_player_id(player_id, error_cls=ValidationError)
        role = InputValidator.validate_string(role, "role", max_length=MAX_ROLE_LENGTH)

        async with DatabaseService.get_transaction() as session:
            entry = await self._admin_repo.find_entry(
                session, server_id, player_id, for_update=True
            )
            created = entry is None
            if created:
                entry = self._admin_repo.add(
                    session, ServerAdmin(server_id=server_id, player_id=player_id, role=role)
                )
            else:
                entry.role = role
            await self._admin_repo.flush(session)

            self.log_operation(
                "add_server_admin",
                server_id=server_id,
                target_id=player_id,
                role=role,
                new_entry=created,
            )
            return {**entry.to_dict(), "created": created}

    async def remove_server_admin(self, server_id: Any, player_id: Any) -> Dict[str, Any]:
        server_id = InputValidator.validate_player_id(
            server_id, "server_id", error_cls=ValidationError
        )
        player_id = InputValidator.validate_player_id(player_id, error_cls=ValidationError)

        async with DatabaseService.get_transaction() as session:
            entry = await self._admin_repo.find_entry(
                session, server_id, player_id, for_update=True
            )
            if entry is None:
                raise NotFoundError("Server admin", player_id)
            await self._admin_repo.delete(session, entry)

            self.log_operation("remove_server_admin", server_id=server_id, target_id=player_id)
            return {"server_id": server_id, "player_id": player_id, "removed": True}

    async def list_server_admins(self, server_id: Any) -> List[Dict[str, Any]]:
        server_id = InputValidator.validate_player_id(
            server_id, "server_id", error_cls=ValidationError
        )

        async with DatabaseService.get_session() as session:
            entries = await self._admin_repo.find_many_where(
                session,
                ServerAdmin.server_id == server_id,
                order_by=[ServerAdmin.created_at, ServerAdmin.id],
            )
            return [entry.to_dict() for entry in entries]

    async def is_server_admin(self, server_id: Any, player_id: Any) -> bool:
        server_id = InputValidator.validate_player_id(
            server_id, "server_id", error_cls=ValidationError
        )
        player_id = InputValidator.validate_player_id(player_id, error_cls=ValidationError)

        async with DatabaseService.get_session() as session:
            return await self._admin_repo.exists(
                session,
                ServerAdmin.server_id == server_id,
                ServerAdmin.player_id == player_id,
            )
