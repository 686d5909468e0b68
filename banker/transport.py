"""
Message channel between a host and one peer.

The replication layer only needs to send and receive JSON-safe dicts. The
in-memory pipe below backs the tests and the table simulator; the server
adapts websockets to the same interface.
"""

from __future__ import annotations

import asyncio
import itertools
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from banker.exceptions import ConnectionClosed

_ids = itertools.count(1)


class Connection(ABC):
    """One end of a bidirectional message channel."""

    def __init__(self, connection_id: Optional[str] = None):
        self.connection_id = connection_id or f"conn-{next(_ids)}"

    @abstractmethod
    async def send(self, message: Dict[str, Any]) -> None:
        """Deliver a message to the other end.

        Raises:
            ConnectionClosed: If the channel is gone
        """

    @abstractmethod
    async def receive(self) -> Dict[str, Any]:
        """Wait for the next message from the other end.

        Raises:
            ConnectionClosed: When the other end closes
        """

    @abstractmethod
    async def close(self) -> None:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connection_id})"


_CLOSED = object()


class MemoryConnection(Connection):
    """Queue-backed endpoint. Create pairs with ``memory_pipe``."""

    def __init__(self, inbox: asyncio.Queue, outbox: asyncio.Queue, connection_id: Optional[str] = None):
        super().__init__(connection_id)
        self._inbox = inbox
        self._outbox = outbox
        self.closed = False
        self.partner: Optional[MemoryConnection] = None

    async def send(self, message: Dict[str, Any]) -> None:
        if self.closed or (self.partner is not None and self.partner.closed):
            raise ConnectionClosed(f"{self.connection_id} is closed")
        await self._outbox.put(message)

    async def receive(self) -> Dict[str, Any]:
        if self.closed:
            raise ConnectionClosed(f"{self.connection_id} is closed")
        message = await self._inbox.get()
        if message is _CLOSED:
            self.closed = True
            raise ConnectionClosed(f"{self.connection_id} was closed by the other end")
        return message

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake up pending receives on both ends
        await self._inbox.put(_CLOSED)
        await self._outbox.put(_CLOSED)


def memory_pipe(name: str = "") -> Tuple[MemoryConnection, MemoryConnection]:
    """Return ``(host_end, peer_end)`` of a fresh in-memory channel."""
    to_host: asyncio.Queue = asyncio.Queue()
    to_peer: asyncio.Queue = asyncio.Queue()
    suffix = name or str(next(_ids))
    host_end = MemoryConnection(to_host, to_peer, connection_id=f"host-{suffix}")
    peer_end = MemoryConnection(to_peer, to_host, connection_id=f"peer-{suffix}")
    host_end.partner, peer_end.partner = peer_end, host_end
    return host_end, peer_end
