"""
Hunt tracking models
====================

Per-(player, monster tier) cooldown stamps and kill counters.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from funtan.core.database.base import Base


class HuntCooldown(Base):
    __tablename__ = "hunt_cooldowns"

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    monster_tier: Mapped[int] = mapped_column(Integer, primary_key=True)

    last_hunt_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="When the player last hunted in this tier",
    )


class HuntRecord(Base):
    __tablename__ = "hunt_records"

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    monster_tier: Mapped[int] = mapped_column(Integer, primary_key=True)

    kills: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Cumulative successful hunts in this tier",
    )
