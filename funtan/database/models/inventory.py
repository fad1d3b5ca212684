"""
Inventory Model
===============

Stacked item rows: at most one row per (player, catalog id, item kind), with
a positive count. Display fields are copied from the catalog at grant time.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from funtan.core.database.base import Base, IdMixin, TimestampMixin


class InventoryItem(Base, IdMixin, TimestampMixin):
    """One stack of a catalog item owned by a player."""

    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("player_id", "catalog_id", "item_type"),
        CheckConstraint("count > 0", name="count_positive"),
        Index("ix_inventory_player_type", "player_id", "item_type"),
    )

    player_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        doc="Owning player id",
    )

    item_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        doc="'weapon' or 'gear'",
    )

    catalog_id: Mapped[str] = mapped_column(String(32), nullable=False)

    # ========================================================================
    # DENORMALIZED CATALOG FIELDS
    # ========================================================================

    tier: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="common")
    item_name: Mapped[str] = mapped_column(String(64), nullable=False)
    attack: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    defense: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Stack size; the row is deleted when it would reach zero",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "item_type": self.item_type,
            "catalog_id": self.catalog_id,
            "tier": self.tier,
            "rarity": self.rarity,
            "item_name": self.item_name,
            "attack": self.attack,
            "defense": self.defense,
            "count": self.count,
        }

    def __repr__(self) -> str:
        return (
            f"<InventoryItem(id={self.id}, player_id={self.player_id!r}, "
            f"catalog_id={self.catalog_id!r}, count={self.count})>"
        )
