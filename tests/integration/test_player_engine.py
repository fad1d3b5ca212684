"""
Integration tests for player creation, currencies and prestige.

Runs the GameEngine against a throwaway SQLite database.
"""

import pytest

from funtan.core.database.service import DatabaseService
from funtan.core.event.bus import ListenerPriority
from funtan.modules.shared.result import ReasonCode

pytestmark = pytest.mark.integration


# ============================================================================
# PLAYER CREATION & STARTER KIT
# ============================================================================


class TestEnsurePlayer:
    async def test_new_player_starts_at_zero(self, engine):
        """A first interaction creates the player with empty balances."""
        result = await engine.ensure_player("1001")

        assert result.success
        assert result.data == {
            "player_id": "1001",
            "bronze": 0,
            "silver": 0,
            "gems": 0,
            "gold": 0,
        }

    async def test_ensure_is_idempotent(self, engine, event_bus):
        created = []
        event_bus.subscribe("player.created", lambda data: created.append(data["player_id"]))

        await engine.ensure_player("1001")
        await engine.ensure_player("1001")

        assert created == ["1001"]

    async def test_integer_ids_are_accepted(self, engine):
        result = await engine.ensure_player(123456789012345678)
        assert result.data["player_id"] == "123456789012345678"

    async def test_invalid_player_id(self, engine):
        result = await engine.ensure_player("   ")

        assert not result.success
        assert result.reason is ReasonCode.INVALID_USER

    async def test_starter_kit_is_equipped(self, engine):
        """New players hold w0 and g0, both equipped, for 12 power."""
        equipped = await engine.get_equipped("1001")

        assert equipped.success
        assert equipped.data["weapon"]["catalog_id"] == "w0"
        assert equipped.data["gear"]["catalog_id"] == "g0"
        assert equipped.data["power"] == 12

    async def test_starter_kit_granted_once(self, engine):
        await engine.ensure_player("1001")
        await engine.ensure_player("1001")

        inventory = await engine.get_inventory("1001")

        assert [(i["catalog_id"], i["count"]) for i in inventory.data["items"]] == [
            ("w0", 1),
            ("g0", 1),
        ]


class TestStarterKitDisabled:
    @pytest.fixture
    def config_overrides(self):
        return {"player": {"starter_kit_enabled": False}}

    async def test_no_items_without_starter_kit(self, engine):
        await engine.ensure_player("1001")

        inventory = await engine.get_inventory("1001")
        equipped = await engine.get_equipped("1001")

        assert inventory.data["items"] == []
        assert equipped.data == {"weapon": None, "gear": None, "power": 0}


class TestStarterBackfill:
    @pytest.fixture
    def config_overrides(self):
        return {"player": {"starter_kit_enabled": False}}

    async def test_backfill_grants_and_equips(self, engine):
        await engine.ensure_player("1001")

        result = await engine.grant_missing_starters()
        equipped = await engine.get_equipped("1001")

        assert result.success
        assert result.data["checked"] == 1
        assert [g["player_id"] for g in result.data["granted"]] == ["1001"]
        assert set(result.data["granted"][0]) == {"player_id", "weapon", "gear"}
        assert equipped.data["weapon"]["catalog_id"] == "w0"
        assert equipped.data["gear"]["catalog_id"] == "g0"
        assert equipped.data["power"] == 12

    async def test_backfill_runs_once(self, engine):
        await engine.ensure_player("1001")

        await engine.grant_missing_starters()
        second = await engine.grant_missing_starters()
        inventory = await engine.get_inventory("1001")

        assert second.data == {"checked": 1, "granted": []}
        assert len(inventory.data["items"]) == 2

    async def test_only_missing_kind_is_granted(self, engine):
        """A player who already holds a weapon only receives starter gear."""
        given = await engine.give_item("1001", "weapon", "w4")
        assert given.success

        result = await engine.grant_missing_starters(["1001"])
        inventory = await engine.get_inventory("1001")

        assert set(result.data["granted"][0]) == {"player_id", "gear"}
        assert sorted(i["catalog_id"] for i in inventory.data["items"]) == ["g0", "w4"]

    async def test_explicit_ids_limit_the_run(self, engine):
        await engine.ensure_player("1001")
        await engine.ensure_player("2002")

        result = await engine.grant_missing_starters(["2002"])
        untouched = await engine.get_inventory("1001")

        assert result.data["checked"] == 1
        assert [g["player_id"] for g in result.data["granted"]] == ["2002"]
        assert untouched.data["items"] == []

    async def test_invalid_id_is_rejected(self, engine):
        result = await engine.grant_missing_starters(["   "])

        assert not result.success
        assert result.reason is ReasonCode.INVALID_USER


class TestStarterKitFailure:
    async def test_failing_listener_rolls_back_creation(self, engine, event_bus):
        """A CRITICAL listener failure aborts the creating transaction."""

        async def broken(data):
            raise RuntimeError("grant failed")

        event_bus.subscribe(
            "player.created", broken, priority=ListenerPriority.CRITICAL, identifier="broken"
        )

        result = await engine.ensure_player("1001")
        assert not result.success
        assert result.reason is ReasonCode.ERROR

        async with DatabaseService.get_session() as session:
            player = await engine.services.player.repository.get(session, "1001")
        assert player is None


# ============================================================================
# CURRENCY
# ============================================================================


class TestAdjustCurrency:
    async def test_signed_deltas(self, engine):
        await engine.adjust_currency("1001", {"bronze": 100, "gems": 3})
        result = await engine.adjust_currency("1001", {"bronze": -40})

        assert result.success
        assert result.data["balances"]["bronze"] == 60
        assert result.data["balances"]["gems"] == 3

    async def test_clamps_at_zero(self, engine):
        """Over-spending clamps at zero and reports what was actually applied."""
        await engine.adjust_currency("1001", {"silver": 10})

        result = await engine.adjust_currency("1001", {"silver": -25})

        assert result.data["balances"]["silver"] == 0
        assert result.data["applied"] == {"silver": -10}

    async def test_unknown_currency(self, engine):
        result = await engine.adjust_currency("1001", {"platinum": 5})

        assert not result.success
        assert result.reason is ReasonCode.INVALID_CURRENCY_TYPE

    async def test_fractional_delta(self, engine):
        result = await engine.adjust_currency("1001", {"bronze": 1.5})
        assert result.reason is ReasonCode.INVALID_INPUT

    async def test_empty_deltas(self, engine):
        result = await engine.adjust_currency("1001", {})
        assert result.reason is ReasonCode.INVALID_INPUT

    async def test_rejected_adjust_changes_nothing(self, engine):
        await engine.adjust_currency("1001", {"bronze": 5})
        await engine.adjust_currency("1001", {"bronze": 5, "mana": 1})

        balance = await engine.get_balance("1001")
        assert balance.data["bronze"] == 5

    async def test_currency_event(self, engine, event_bus):
        seen = []
        event_bus.subscribe("currency.adjusted", lambda data: seen.append(data["applied"]))

        await engine.adjust_currency("1001", {"gold": 2})

        assert seen == [{"gold": 2}]


# ============================================================================
# PRESTIGE & PROFILE
# ============================================================================


class TestPrestige:
    @pytest.fixture
    def config_overrides(self):
        return {"player": {"prestige_max_level": 2}}

    async def test_prestige_caps(self, engine):
        first = await engine.add_prestige("1001")
        second = await engine.add_prestige("1001")
        third = await engine.add_prestige("1001")

        assert first.data["prestige"] == 1
        assert second.data["prestige"] == 2
        assert third.data == {"player_id": "1001", "prestige": 2, "capped": True}

    async def test_profile(self, engine):
        await engine.add_prestige("1001")

        profile = await engine.get_profile("1001")

        assert profile.data["prestige"] == 1
        assert profile.data["work_streak"] == 0
        assert profile.data["equipped_weapon_inv_id"] is not None
        assert profile.data["equipped_gear_inv_id"] is not None
