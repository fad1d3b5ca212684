"""
Unit tests for the static catalog and the monster tier index.
"""

import pytest

from funtan.modules.catalog import Catalog, TierIndex, default_catalog
from funtan.modules.catalog.data import GEAR, MONSTERS, WEAPONS, Monster
from funtan.modules.shared.exceptions import NotFoundError

pytestmark = pytest.mark.unit


@pytest.fixture
def catalog() -> Catalog:
    return default_catalog()


# ============================================================================
# CATALOG DATA
# ============================================================================


class TestCatalogData:
    """Integrity of the shipped tables."""

    def test_ids_are_unique(self):
        for table in (WEAPONS, GEAR, MONSTERS):
            ids = [entry.id for entry in table]
            assert len(ids) == len(set(ids))

    def test_starter_items_exist(self, catalog):
        """The starter kit resolves to tier-0 items with 12 combined power."""
        weapon = catalog.get_item("weapon", "w0")
        gear = catalog.get_item("gear", "g0")

        assert weapon.tier == 0 and gear.tier == 0
        assert weapon.attack + gear.defense == 12

    def test_weapons_have_no_defense(self, catalog):
        assert all(w.defense == 0 for w in catalog.entries("weapons"))

    def test_gear_has_no_attack(self, catalog):
        assert all(g.attack == 0 for g in catalog.entries("gear"))


class TestCatalogLookup:
    """Lookups and listings."""

    def test_get_item_wrong_kind_is_not_found(self, catalog):
        """A weapon id looked up as gear does not resolve."""
        with pytest.raises(NotFoundError):
            catalog.get_item("gear", "w1")

    def test_require_monster_unknown(self, catalog):
        with pytest.raises(NotFoundError) as exc_info:
            catalog.require_monster("m999")
        assert exc_info.value.details["identifier"] == "m999"

    def test_entries_sorted_by_tier_then_numeric_id(self, catalog):
        """w10 sorts after w9, and tiers never go backwards."""
        weapons = catalog.entries("weapons")
        tiers = [w.tier for w in weapons]

        assert tiers == sorted(tiers)
        assert weapons[0].id == "w0"

    def test_monster_entries_include_tier_zero(self, catalog):
        ids = [m.id for m in catalog.entries("monsters")]
        assert ids[:2] == ["m0a", "m0b"]

    def test_weapon_to_dict(self, catalog):
        data = catalog.get_weapon("w1").to_dict()
        assert data["attack"] == 5
        assert data["tier"] == 1


# ============================================================================
# TIER INDEX
# ============================================================================


class TestTierIndex:
    """Best-tier selection and eligibility."""

    def test_tiers_ascending(self, catalog):
        index = catalog.tier_index
        assert list(index.tiers) == sorted(index.tiers)

    def test_min_threshold_per_tier(self, catalog):
        index = catalog.tier_index
        assert index.min_thresholds[0] == 0
        assert index.min_thresholds[1] == 15

    def test_best_tier_for_starter_power(self, catalog):
        """12 power cannot reach tier 1 (threshold 15)."""
        tier, monsters = catalog.tier_index.best_tier(12)

        assert tier == 0
        assert [m.id for m in monsters] == ["m0a", "m0b"]

    def test_best_tier_at_exact_threshold(self, catalog):
        tier, _ = catalog.tier_index.best_tier(15)
        assert tier == 1

    def test_best_tier_stops_at_first_gap(self):
        """Walking stops at the first unreachable tier."""
        index = TierIndex.build(
            [
                Monster("a", "A", 0, 0, 1),
                Monster("b", "B", 1, 50, 1),
                Monster("c", "C", 2, 40, 1),
            ]
        )
        tier, _ = index.best_tier(45)
        assert tier == 0

    def test_best_tier_empty_index(self):
        tier, monsters = TierIndex.build([]).best_tier(100)
        assert tier == 0
        assert monsters == ()

    def test_eligible_monsters(self, catalog):
        eligible = catalog.tier_index.eligible_monsters(12)

        assert set(eligible) == {0}
        assert [m.id for m in eligible[0]] == ["m0a", "m0b"]

    def test_eligible_omits_unreachable_tiers(self, catalog):
        eligible = catalog.tier_index.eligible_monsters(15)
        assert [m.id for m in eligible[1]] == ["m1", "m2"]
        assert 2 not in eligible
