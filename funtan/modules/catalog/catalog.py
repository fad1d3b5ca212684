"""
Catalog lookups.

`Catalog` wraps the static tables with id lookups and the tier index. One
instance is built at startup and injected into every service that needs it.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple, Union

from funtan.database.models.enums import ItemKind
from funtan.modules.catalog.data import GEAR, MONSTERS, WEAPONS, Gear, Monster, Weapon
from funtan.modules.catalog.tier_index import TierIndex
from funtan.modules.shared.exceptions import NotFoundError

CatalogItem = Union[Weapon, Gear]

CATALOG_KINDS = ("weapons", "gear", "monsters")


class Catalog:
    """Immutable view over weapons, gear and monsters."""

    def __init__(
        self,
        weapons: Iterable[Weapon] = WEAPONS,
        gear: Iterable[Gear] = GEAR,
        monsters: Iterable[Monster] = MONSTERS,
    ) -> None:
        self._weapons: Dict[str, Weapon] = {w.id: w for w in weapons}
        self._gear: Dict[str, Gear] = {g.id: g for g in gear}
        self._monsters: Dict[str, Monster] = {m.id: m for m in monsters}
        self.tier_index = TierIndex.build(self._monsters.values())

    def get_weapon(self, catalog_id: str) -> Optional[Weapon]:
        return self._weapons.get(catalog_id)

    def get_gear(self, catalog_id: str) -> Optional[Gear]:
        return self._gear.get(catalog_id)

    def get_monster(self, monster_id: str) -> Optional[Monster]:
        return self._monsters.get(monster_id)

    def get_item(self, kind: str, catalog_id: str) -> CatalogItem:
        """
        Resolve a weapon or gear entry.

        Raises:
            NotFoundError: Unknown catalog id for that kind
        """
        item: Optional[CatalogItem]
        if kind == ItemKind.WEAPON.value:
            item = self.get_weapon(catalog_id)
        else:
            item = self.get_gear(catalog_id)
        if item is None:
            raise NotFoundError(f"Catalog {kind}", catalog_id)
        return item

    def require_monster(self, monster_id: str) -> Monster:
        monster = self.get_monster(monster_id)
        if monster is None:
            raise NotFoundError("Monster", monster_id)
        return monster

    def entries(self, kind: str) -> List[Union[Weapon, Gear, Monster]]:
        """Entries of one catalog table, sorted by tier then id."""
        source = {
            "weapons": self._weapons,
            "gear": self._gear,
            "monsters": self._monsters,
        }[kind]
        return sorted(source.values(), key=lambda entry: (entry.tier, _id_key(entry.id)))


def _id_key(catalog_id: str) -> Tuple[int, str]:
    # numeric part first so "w10" sorts after "w9"
    digits = "".join(ch for ch in catalog_id if ch.isdigit())
    return (int(digits) if digits else 0, catalog_id)


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    return Catalog()
