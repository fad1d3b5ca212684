"""
Integration tests for DatabaseService lifecycle and transactions (SQLite).
"""

import pytest
from sqlalchemy import select

from funtan.core.database.service import DatabaseNotInitializedError, DatabaseService
from funtan.database.models.player import Player
from funtan.modules.shared.exceptions import NotFoundError

pytestmark = pytest.mark.integration


class TestLifecycle:
    async def test_uninitialized_use_raises(self):
        await DatabaseService.shutdown()

        with pytest.raises(DatabaseNotInitializedError):
            async with DatabaseService.get_session():
                pass

    async def test_initialize_is_idempotent(self, database, tmp_path):
        await DatabaseService.initialize(f"sqlite+aiosqlite:///{tmp_path / 'other.db'}")

        assert DatabaseService.is_initialized()
        assert DatabaseService.dialect_name() == "sqlite"

    async def test_health_check(self, database):
        assert await DatabaseService.health_check() is True

    async def test_health_check_uninitialized(self):
        assert await DatabaseService.health_check() is False


class TestTransactions:
    async def test_commit_on_success(self, database):
        async with DatabaseService.get_transaction() as session:
            session.add(Player(id="1001", bronze=5))

        async with DatabaseService.get_session() as session:
            player = await session.get(Player, "1001")

        assert player is not None
        assert player.bronze == 5

    async def test_rollback_on_domain_error(self, database):
        with pytest.raises(NotFoundError):
            async with DatabaseService.get_transaction() as session:
                session.add(Player(id="1001"))
                await session.flush()
                raise NotFoundError("Monster", "m404")

        async with DatabaseService.get_session() as session:
            result = await session.execute(select(Player))
            assert result.scalars().all() == []

    async def test_locked_entity_helper(self, database):
        async with DatabaseService.get_transaction() as session:
            session.add(Player(id="1001"))

        async with DatabaseService.get_transaction() as session:
            player = await DatabaseService.get_locked_entity(session, Player, "1001")
            assert player is not None
