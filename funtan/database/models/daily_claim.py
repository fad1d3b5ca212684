"""
DailyClaim Model
================

One row per player, created on the first claim attempt.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from funtan.core.database.base import Base, TimestampMixin


class DailyClaim(Base, TimestampMixin):
    __tablename__ = "daily_claims"

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    last_claim_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        doc="When the last successful claim happened",
    )

    streak: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Consecutive claims within the streak window",
    )
