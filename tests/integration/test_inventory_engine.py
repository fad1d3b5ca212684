"""
Integration tests for inventory stacks and equipment slots.
"""

import pytest
from sqlalchemy import select

from funtan.core.database.service import DatabaseService
from funtan.database.models.inventory import InventoryItem
from funtan.modules.shared.result import ReasonCode

pytestmark = pytest.mark.integration


async def _give(engine, player_id, kind, catalog_id, quantity=1):
    result = await engine.give_item(player_id, kind, catalog_id, quantity)
    assert result.success, result.error
    return result.data["item"]


# ============================================================================
# GRANTS
# ============================================================================


class TestGiveItem:
    async def test_grants_stack(self, engine):
        """Two grants of the same item share one row with count 2."""
        first = await _give(engine, "1001", "weapon", "w3")
        second = await _give(engine, "1001", "weapon", "w3")

        assert first["id"] == second["id"]
        assert second["count"] == 2

    async def test_grant_copies_catalog_stats(self, engine):
        item = await _give(engine, "1001", "gear", "g4")

        assert item["item_type"] == "gear"
        assert item["defense"] == 8
        assert item["attack"] == 0
        assert item["tier"] == 2

    async def test_grant_quantity(self, engine):
        item = await _give(engine, "1001", "weapon", "w1", quantity=5)
        assert item["count"] == 5

    async def test_unknown_catalog_id(self, engine):
        result = await engine.give_item("1001", "weapon", "w999")
        assert result.reason is ReasonCode.NOT_FOUND

    async def test_gear_id_as_weapon(self, engine):
        result = await engine.give_item("1001", "weapon", "g1")
        assert result.reason is ReasonCode.NOT_FOUND

    @pytest.mark.parametrize("quantity", [0, -2, 1.5])
    async def test_bad_quantity(self, engine, quantity):
        result = await engine.give_item("1001", "weapon", "w1", quantity)
        assert result.reason is ReasonCode.INVALID_INPUT

    async def test_bad_kind(self, engine):
        result = await engine.give_item("1001", "potion", "w1")
        assert result.reason is ReasonCode.INVALID_INPUT


# ============================================================================
# REMOVAL
# ============================================================================


class TestRemoveInventoryCount:
    async def test_partial_removal(self, engine):
        item = await _give(engine, "1001", "weapon", "w3", quantity=3)

        result = await engine.remove_inventory_count(item["id"], 2)

        assert result.data == {
            "inventory_id": item["id"],
            "removed": 2,
            "remaining": 1,
            "deleted": False,
        }

    async def test_row_deleted_at_zero(self, engine):
        item = await _give(engine, "1001", "weapon", "w3")

        result = await engine.remove_inventory_count(item["id"], 1)
        inventory = await engine.get_inventory("1001", "weapon")

        assert result.data["deleted"] is True
        assert "w3" not in [i["catalog_id"] for i in inventory.data["items"]]

    async def test_removal_never_clamps(self, engine):
        item = await _give(engine, "1001", "weapon", "w3", quantity=2)

        result = await engine.remove_inventory_count(item["id"], 5)
        inventory = await engine.get_inventory("1001", "weapon")

        assert result.reason is ReasonCode.INVALID_INPUT
        assert result.data["deficit"] == 3
        stack = next(i for i in inventory.data["items"] if i["catalog_id"] == "w3")
        assert stack["count"] == 2

    async def test_missing_row(self, engine):
        result = await engine.remove_inventory_count(99999, 1)
        assert result.reason is ReasonCode.NOT_FOUND


# ============================================================================
# EQUIPMENT
# ============================================================================


class TestEquip:
    async def test_equip_changes_power(self, engine):
        item = await _give(engine, "1001", "weapon", "w4")

        result = await engine.equip("1001", item["id"], "weapon")
        equipped = await engine.get_equipped("1001")

        assert result.success
        assert result.data["slot"] == "weapon"
        assert equipped.data["power"] == 11 + 5

    async def test_equip_someone_elses_item(self, engine):
        """Ownership is checked, and the other player's slots are untouched."""
        item = await _give(engine, "2002", "weapon", "w4")
        theirs_before = await engine.get_equipped("2002")

        result = await engine.equip("1001", item["id"], "weapon")
        mine = await engine.get_equipped("1001")
        theirs_after = await engine.get_equipped("2002")

        assert result.reason is ReasonCode.FORBIDDEN
        assert mine.data["weapon"]["catalog_id"] == "w0"
        assert theirs_after.data == theirs_before.data
        assert theirs_after.data["weapon"]["catalog_id"] == "w0"

    async def test_equip_wrong_slot(self, engine):
        item = await _give(engine, "1001", "gear", "g4")

        result = await engine.equip("1001", item["id"], "weapon")

        assert result.reason is ReasonCode.INVALID_TYPE

    async def test_equip_missing_row(self, engine):
        await engine.ensure_player("1001")
        result = await engine.equip("1001", 4242, "gear")
        assert result.reason is ReasonCode.NOT_FOUND

    async def test_equip_bad_slot(self, engine):
        result = await engine.equip("1001", 1, "helmet")
        assert result.reason is ReasonCode.INVALID_INPUT

    async def test_removed_equipped_item_resolves_empty(self, engine):
        """A slot pointing at a deleted row reads as empty."""
        equipped = await engine.get_equipped("1001")
        weapon_id = equipped.data["weapon"]["id"]

        await engine.remove_inventory_count(weapon_id, 1)
        after = await engine.get_equipped("1001")

        assert after.data["weapon"] is None
        assert after.data["power"] == 5

    async def test_inventory_listing_order(self, engine):
        """Stacks list by tier, then insertion."""
        await _give(engine, "1001", "weapon", "w4")
        await _give(engine, "1001", "gear", "g4")

        inventory = await engine.get_inventory("1001")

        assert [i["catalog_id"] for i in inventory.data["items"]] == ["w0", "g0", "w4", "g4"]

    async def test_inventory_filtered_by_kind(self, engine):
        await engine.ensure_player("1001")
        inventory = await engine.get_inventory("1001", "gear")
        assert [i["catalog_id"] for i in inventory.data["items"]] == ["g0"]


class TestStackUniqueness:
    async def test_one_row_per_stack(self, engine):
        """The unique constraint holds after repeated grants."""
        for _ in range(3):
            await _give(engine, "1001", "gear", "g4")

        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(InventoryItem).where(InventoryItem.catalog_id == "g4")
            )
            g4_rows = list(result.scalars().all())

        assert len(g4_rows) == 1
        assert g4_rows[0].count == 3
