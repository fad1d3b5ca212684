"""
WorkSession Model
=================

Timed work shifts. Lifecycle: working -> finished -> collected, or
working -> cancelled. A player has at most one `working` row; the engine
enforces this under the player row lock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from funtan.core.clock import ensure_utc
from funtan.core.database.base import Base, IdMixin, TimestampMixin
from funtan.database.models.enums import WorkStatus


class WorkSession(Base, IdMixin, TimestampMixin):
    __tablename__ = "work_sessions"
    __table_args__ = (
        Index("ix_work_sessions_player_status", "player_id", "status"),
        Index("ix_work_sessions_player_started", "player_id", "started_at"),
    )

    player_id: Mapped[str] = mapped_column(String(64), nullable=False)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    finish_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="Scheduled end of the shift",
    )

    collected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=WorkStatus.WORKING.value,
    )

    def to_dict(self) -> dict:
        collected_at = ensure_utc(self.collected_at)
        return {
            "id": self.id,
            "player_id": self.player_id,
            "status": self.status,
            "started_at": ensure_utc(self.started_at).isoformat(),
            "finish_at": ensure_utc(self.finish_at).isoformat(),
            "collected_at": collected_at.isoformat() if collected_at else None,
        }
