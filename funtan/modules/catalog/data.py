"""
Static catalog tables.

Weapons and gear carry a combat stat (attack or defense) and a bonus-gem
value; monsters carry a power threshold and a gem reward. Tier 0 holds the
starter equipment and monsters every new player can beat.

Entries are frozen dataclasses and the tables are tuples; nothing here is
mutated at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Weapon:
    id: str
    name: str
    tier: int
    attack: int
    gems: int
    rarity: str

    kind = "weapon"

    @property
    def defense(self) -> int:
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "attack": self.attack,
            "gems": self.gems,
            "rarity": self.rarity,
        }


@dataclass(frozen=True)
class Gear:
    id: str
    name: str
    tier: int
    defense: int
    gems: int
    rarity: str

    kind = "gear"

    @property
    def attack(self) -> int:
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "defense": self.defense,
            "gems": self.gems,
            "rarity": self.rarity,
        }


@dataclass(frozen=True)
class Monster:
    id: str
    name: str
    tier: int
    threshold: int
    gems: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "threshold": self.threshold,
            "gems": self.gems,
        }


# ============================================================================
# WEAPONS
# ============================================================================

WEAPONS = (
    Weapon("w0", "Training Stick", 0, 7, 0, "brown"),
    Weapon("w1", "Rusty Sword", 1, 5, 0, "common"),
    Weapon("w2", "Wooden Club", 1, 6, 0, "common"),
    Weapon("w3", "Short Dagger", 2, 9, 0, "common"),
    Weapon("w4", "Hunting Spear", 2, 11, 0, "uncommon"),
    Weapon("w5", "Iron Blade", 3, 16, 0, "uncommon"),
    Weapon("w6", "War Hammer", 3, 18, 0, "uncommon"),
    Weapon("w7", "Steel Longsword", 4, 24, 1, "rare"),
    Weapon("w8", "Reinforced Axe", 4, 26, 1, "rare"),
    Weapon("w9", "Flanged Mace", 5, 33, 1, "rare"),
    Weapon("w10", "Keen Rapier", 5, 35, 1, "rare"),
    Weapon("w11", "Knight's Claymore", 6, 44, 2, "epic"),
    Weapon("w12", "Stormcaller Spear", 6, 46, 2, "epic"),
    Weapon("w13", "Dragonfang Blade", 7, 58, 3, "epic"),
    Weapon("w14", "Titan Maul", 7, 62, 3, "epic"),
    Weapon("w15", "Void Edge", 8, 78, 4, "legendary"),
    Weapon("w16", "Sunforged Halberd", 8, 82, 4, "legendary"),
    Weapon("w17", "Abyssal Cleaver", 9, 100, 6, "mythic"),
    Weapon("w18", "Celestial Pike", 9, 104, 6, "mythic"),
    Weapon("w19", "Eternal Greatsword", 10, 130, 8, "ancient"),
    Weapon("w20", "Mythic Soulblade", 11, 220, 20, "mystical"),
)

# ============================================================================
# GEAR
# ============================================================================

GEAR = (
    Gear("g0", "Padded Rags", 0, 5, 0, "brown"),
    Gear("g1", "Cloth Tunic", 1, 2, 0, "common"),
    Gear("g2", "Leather Vest", 1, 3, 0, "common"),
    Gear("g3", "Padded Jacket", 2, 6, 0, "common"),
    Gear("g4", "Studded Leather", 2, 8, 0, "uncommon"),
    Gear("g5", "Chain Shirt", 3, 12, 0, "uncommon"),
    Gear("g6", "Scale Mail", 3, 14, 0, "uncommon"),
    Gear("g7", "Brigandine", 4, 20, 1, "rare"),
    Gear("g8", "Iron Plate", 4, 22, 1, "rare"),
    Gear("g9", "Knight's Guard", 5, 30, 1, "rare"),
    Gear("g10", "Guardian Mail", 5, 32, 1, "rare"),
    Gear("g11", "Tempered Cuirass", 6, 40, 2, "epic"),
    Gear("g12", "Aegis Plate", 6, 42, 2, "epic"),
    Gear("g13", "Dragonhide Armor", 7, 54, 3, "epic"),
    Gear("g14", "Stormguard Vest", 7, 56, 3, "epic"),
    Gear("g15", "Celestial Mail", 8, 70, 4, "legendary"),
    Gear("g16", "Sunplate Armor", 8, 74, 4, "legendary"),
    Gear("g17", "Abyssal Shroud", 9, 92, 6, "mythic"),
    Gear("g18", "Eternal Breastplate", 9, 96, 6, "mythic"),
    Gear("g19", "Worldbreaker Armor", 10, 120, 8, "ancient"),
    Gear("g20", "Mystic Wardrobe", 11, 200, 20, "mystical"),
)

# ============================================================================
# MONSTERS
# ============================================================================

MONSTERS = (
    Monster("m0a", "Slime", 0, 0, 1),
    Monster("m0b", "Cave Bat", 0, 10, 1),
    Monster("m1", "Rat", 1, 15, 1),
    Monster("m2", "Wild Boar", 1, 15, 1),
    Monster("m3", "Giant Spider", 2, 40, 1),
    Monster("m4", "Forest Wolf", 2, 40, 1),
    Monster("m5", "Bandit", 3, 75, 3),
    Monster("m6", "Ogre Brute", 3, 75, 3),
    Monster("m7", "Stone Golem", 4, 120, 4),
    Monster("m8", "Warg Rider", 4, 120, 4),
    Monster("m9", "Harpy", 5, 175, 6),
    Monster("m10", "Troll", 5, 175, 6),
    Monster("m11", "Wyvern", 6, 240, 8),
    Monster("m12", "Ironclad Knight", 6, 240, 8),
    Monster("m13", "Basilisk", 7, 315, 11),
    Monster("m14", "Fire Drake", 7, 315, 11),
    Monster("m15", "Storm Elemental", 8, 400, 13),
    Monster("m16", "Titan Warden", 8, 400, 13),
    Monster("m17", "Leviathan Spawn", 9, 495, 17),
    Monster("m18", "Void Reaver", 9, 495, 17),
    Monster("m19", "Ancient Colossus", 10, 600, 20),
    Monster("m20", "Mythic Seraph", 11, 715, 24),
)
