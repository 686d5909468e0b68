from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from banker.config import GameRules
from banker.exceptions import RoomNotFoundError
from banker.lobby import create_room, generate_room_code, normalize_room_code, rendezvous_id
from banker.replication import HostSession, SnapshotListener

logger = logging.getLogger(__name__)


class RoomRegistry:
    """In-memory registry of hosted rooms, keyed by room code."""

    def __init__(self, rendezvous_prefix: str, room_code_length: int = 6):
        self._rooms: Dict[str, HostSession] = {}
        self._lock = asyncio.Lock()
        self.rendezvous_prefix = rendezvous_prefix
        self.room_code_length = room_code_length

    def rendezvous_id(self, code: str) -> str:
        return rendezvous_id(code, self.rendezvous_prefix)

    async def create_room(
        self,
        host_name: str,
        rules: Optional[GameRules] = None,
        listeners: Optional[List[SnapshotListener]] = None,
    ) -> HostSession:
        """Bootstrap a room under a code no other live room uses."""
        async with self._lock:
            code = generate_room_code(self.room_code_length)
            while code in self._rooms:
                code = generate_room_code(self.room_code_length)

            state = create_room(host_name, rules=rules, room_code=code)
            session = HostSession(state, listeners=listeners)
            self._rooms[code] = session

        logger.info("Hosting room %s (%s)", code, self.rendezvous_id(code))
        return session

    def get(self, code: str) -> HostSession:
        """
        Raises:
            RoomNotFoundError: If no room uses this code
        """
        session = self._rooms.get(normalize_room_code(code))
        if session is None:
            raise RoomNotFoundError(f"Room {code} not found")
        return session

    async def close(self, code: str) -> bool:
        async with self._lock:
            session = self._rooms.pop(normalize_room_code(code), None)
        if session is None:
            return False
        await session.close()
        logger.info("Closed room %s", session.room_code)
        return True

    async def close_all(self) -> None:
        for code in list(self._rooms):
            await self.close(code)

    def codes(self) -> List[str]:
        return sorted(self._rooms)
