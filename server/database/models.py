"""
SQLAlchemy models for the Banker Pro snapshot store.

Architecture:
- RoomSnapshot: the latest full snapshot of one room, keyed by its
  rendezvous id, with a version that increases on every write
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utc_now() -> datetime:
    """Generate timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class RoomSnapshot(Base):
    """
    Latest snapshot of a room.

    Peers watching a room poll ``version`` and reload ``payload`` when it
    moves forward.
    """

    __tablename__ = "room_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    room_key: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        index=True,
        comment="Rendezvous id of the room",
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # JSONB on PostgreSQL, plain JSON elsewhere
    payload: Mapped[Dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<RoomSnapshot(room_key={self.room_key}, version={self.version})>"
