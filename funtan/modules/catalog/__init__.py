"""Static weapons, gear and monsters plus the tier index."""

from funtan.modules.catalog.catalog import CATALOG_KINDS, Catalog, CatalogItem, default_catalog
from funtan.modules.catalog.data import Gear, Monster, Weapon
from funtan.modules.catalog.tier_index import TierIndex

__all__ = [
    "CATALOG_KINDS",
    "Catalog",
    "CatalogItem",
    "Gear",
    "Monster",
    "TierIndex",
    "Weapon",
    "default_catalog",
]
