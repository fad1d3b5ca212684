"""
ServerAdmin Model
=================

Per-server admin registry. Stores data only; authorization decisions are
made by the dispatcher.
"""

from __future__ import annotations

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from funtan.core.database.base import Base, IdMixin, TimestampMixin


class ServerAdmin(Base, IdMixin, TimestampMixin):
    __tablename__ = "server_admins"
    __table_args__ = (UniqueConstraint("server_id", "player_id"),)

    server_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="admin")

    def to_dict(self) -> dict:
        return {
            "server_id": self.server_id,
            "player_id": self.player_id,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
