"""
Enumerations shared by models and services.

Values are the strings stored in the database and accepted from callers.
"""

from __future__ import annotations

from enum import Enum


class Currency(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    GEMS = "gems"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


class ItemKind(str, Enum):
    """Inventory item kind; doubles as the equipment slot name."""

    WEAPON = "weapon"
    GEAR = "gear"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


class WorkStatus(str, Enum):
    WORKING = "working"
    FINISHED = "finished"
    COLLECTED = "collected"
    CANCELLED = "cancelled"
