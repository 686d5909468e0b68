"""
Repository pattern for the shared snapshot store.

Each room keeps exactly one row keyed by its rendezvous id. Every save
replaces the payload and bumps the version; watchers poll the version to
notice updates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RoomSnapshot
from .session import session_scope

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """
    Repository for room snapshot operations.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with a database session.

        Args:
            session: Active async SQLAlchemy session
        """
        self.session = session

    async def save_snapshot(self, room_key: str, payload: Dict[str, Any]) -> int:
        """
        Store the latest snapshot for a room.

        Args:
            room_key: Rendezvous id of the room
            payload: Serialized game state

        Returns:
            The new version number (1 for the first save)
        """
        row = await self.get_snapshot(room_key)
        if row is None:
            row = RoomSnapshot(room_key=room_key, version=1, payload=payload)
            self.session.add(row)
        else:
            row.version += 1
            row.payload = payload

        await self.session.flush()
        logger.debug("Saved snapshot %s v%d", room_key, row.version)
        return row.version

    async def get_snapshot(self, room_key: str) -> Optional[RoomSnapshot]:
        stmt = select(RoomSnapshot).where(RoomSnapshot.room_key == room_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_version(self, room_key: str) -> Optional[int]:
        """Current version of a room's snapshot, None if never saved."""
        stmt = select(RoomSnapshot.version).where(RoomSnapshot.room_key == room_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_snapshot(self, room_key: str) -> bool:
        stmt = delete(RoomSnapshot).where(RoomSnapshot.room_key == room_key)
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def list_room_keys(self) -> List[str]:
        stmt = select(RoomSnapshot.room_key).order_by(RoomSnapshot.room_key)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


def snapshot_writer(room_key: str):
    """Build a HostSession listener that stores every snapshot under ``room_key``."""

    async def _write(snapshot: Dict[str, Any]) -> None:
        async with session_scope() as session:
            await SnapshotRepository(session).save_snapshot(room_key, snapshot)

    return _write


async def watch_snapshots(
    room_key: str,
    interval: float = 1.0,
    since_version: int = 0,
) -> AsyncIterator[Tuple[int, Dict[str, Any]]]:
    """
    Poll a room's snapshot and yield ``(version, payload)`` whenever the
    version moves past the last one seen.

    Runs until the consumer stops iterating.
    """
    last_seen = since_version
    while True:
        async with session_scope() as session:
            row = await SnapshotRepository(session).get_snapshot(room_key)
            update = (row.version, row.payload) if row is not None and row.version > last_seen else None

        if update is not None:
            last_seen = update[0]
            yield update
        else:
            await asyncio.sleep(interval)
