"""
Player Model
============

One row per player: the four currency balances, prestige, equipped-item
references and work-streak bookkeeping. The unit of account for every reward.

Schema-only representation. Balances are only ever changed through
`PlayerService.apply_currency_deltas`, which clamps at zero; the check
constraints are a backstop.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from funtan.core.database.base import Base, TimestampMixin


class Player(Base, TimestampMixin):
    """Player ledger row, created lazily on first interaction."""

    # ========================================================================
    # TABLE CONFIGURATION
    # ========================================================================

    __tablename__ = "players"
    __table_args__ = (
        CheckConstraint("bronze >= 0", name="bronze_non_negative"),
        CheckConstraint("silver >= 0", name="silver_non_negative"),
        CheckConstraint("gold >= 0", name="gold_non_negative"),
        CheckConstraint("gems >= 0", name="gems_non_negative"),
    )

    # ========================================================================
    # IDENTITY
    # ========================================================================

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        doc="Stable platform player id",
    )

    # ========================================================================
    # CURRENCIES
    # ========================================================================

    bronze: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    silver: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    gold: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    gems: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    prestige: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Prestige counter",
    )

    # ========================================================================
    # EQUIPMENT (weak references into inventory)
    # ========================================================================

    equipped_weapon_inv_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=None,
        doc="Inventory row id of the equipped weapon; may dangle after removal",
    )

    equipped_gear_inv_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=None,
        doc="Inventory row id of the equipped gear; may dangle after removal",
    )

    # ========================================================================
    # WORK STREAK
    # ========================================================================

    work_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_work_collected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        doc="When the last work session was paid out",
    )

    def balances(self) -> dict[str, int]:
        return {
            "bronze": self.bronze,
            "silver": self.silver,
            "gold": self.gold,
            "gems": self.gems,
        }

    def __repr__(self) -> str:
        return f"<Player(id={self.id!r}, bronze={self.bronze}, gems={self.gems})>"
