"""
Concurrent engine calls against the file-backed SQLite database.

Each operation opens with BEGIN IMMEDIATE, so racing read-then-write
sequences for one player must serialize exactly as they do on PostgreSQL.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from funtan.core.database.service import DatabaseService
from funtan.database.models.enums import WorkStatus
from funtan.database.models.work_session import WorkSession
from funtan.modules.shared.result import ReasonCode

pytestmark = pytest.mark.integration

RACERS = 4


class TestConcurrentWork:
    async def test_work_started_once(self, engine):
        """Only one racing start_work opens a session."""
        await engine.ensure_player("1001")

        results = await asyncio.gather(*(engine.start_work("1001") for _ in range(RACERS)))

        async with DatabaseService.get_session() as session:
            working = await session.scalar(
                select(func.count())
                .select_from(WorkSession)
                .where(
                    WorkSession.player_id == "1001",
                    WorkSession.status == WorkStatus.WORKING.value,
                )
            )

        assert sum(r.success for r in results) == 1
        assert {r.reason for r in results if not r.success} == {ReasonCode.ALREADY_WORKING}
        assert working == 1

    async def test_work_collected_once(self, engine, clock):
        await engine.start_work("1001")
        clock.advance(hours=9)

        results = await asyncio.gather(*(engine.collect_work("1001") for _ in range(RACERS)))
        balance = await engine.get_balance("1001")

        assert sum(r.success for r in results) == 1
        assert {r.reason for r in results if not r.success} == {ReasonCode.ALREADY_COLLECTED}
        assert balance.data["silver"] == 100


class TestConcurrentDaily:
    async def test_daily_claimed_once(self, engine, clock):
        """Racing claims after the cooldown pay exactly one reward."""
        await engine.claim_daily("1001")
        clock.advance(hours=25)

        results = await asyncio.gather(*(engine.claim_daily("1001") for _ in range(RACERS)))
        balance = await engine.get_balance("1001")

        assert sum(r.success for r in results) == 1
        assert {r.reason for r in results if not r.success} == {ReasonCode.COOLDOWN}
        assert balance.data["bronze"] == 105


class TestConcurrentHunt:
    async def test_hunt_cooldown_not_bypassed(self, engine):
        await engine.ensure_player("1001")

        results = await asyncio.gather(*(engine.hunt("1001", "m0a") for _ in range(RACERS)))
        balance = await engine.get_balance("1001")

        assert sum(r.success for r in results) == 1
        assert {r.reason for r in results if not r.success} == {ReasonCode.COOLDOWN}
        assert balance.data["gems"] == 1


class TestConcurrentCurrency:
    async def test_increments_are_not_lost(self, engine):
        await engine.ensure_player("1001")

        await asyncio.gather(*(engine.adjust_currency("1001", {"bronze": 1}) for _ in range(10)))
        balance = await engine.get_balance("1001")

        assert balance.data["bronze"] == 10
