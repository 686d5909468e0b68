"""
Host-authoritative state replication.

The host owns the only mutable GameState. Peers forward intents and replace
their whole local copy whenever a SYNC arrives; they never apply intents
themselves.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from banker.exceptions import (
    AdmissionError,
    BankerError,
    ClaimRefusedError,
    ConnectionClosed,
    InvalidMessageError,
    NotJoinedError,
)
from banker.game import apply_intent
from banker.lobby import new_player_id
from banker.player import Player
from banker.protocol import (
    ErrorMessage,
    Heartbeat,
    Intent,
    PlayerJoin,
    Sync,
    encode_message,
    parse_message,
)
from banker.snapshot import restore_snapshot, serialize_snapshot
from banker.state import GameState, ViewMode
from banker.transport import Connection, memory_pipe

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[Dict[str, Any]], Awaitable[None]]


class HostSession:
    """Owns a room's GameState and serves any number of peer connections.

    Responsibilities:
    - Send a SYNC to every connection as soon as it is accepted
    - Apply inbound intents one at a time under a single lock
    - Broadcast the new snapshot to every open connection after each change
    - Report refused requests to their sender only

    Each connection gets its own outbound queue drained by a writer task, so
    a slow peer never holds up the lock.
    """

    def __init__(self, state: GameState, listeners: Optional[List[SnapshotListener]] = None):
        self._state = state
        self._connections: Dict[str, Connection] = {}
        self._outboxes: Dict[str, asyncio.Queue] = {}
        self._writers: Dict[str, asyncio.Task] = {}
        self._bindings: Dict[str, str] = {}  # connection_id -> player_id
        self._claim_tokens: Dict[str, str] = {}  # player_id -> token
        self._lock = asyncio.Lock()
        self._listeners: List[SnapshotListener] = list(listeners or [])
        self.version = 0

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def room_code(self) -> str:
        return self._state.room_code

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> Dict[str, Any]:
        return serialize_snapshot(self._state)

    def player_for(self, connection: Connection) -> Optional[str]:
        """Player id bound to a connection, None until it has joined."""
        return self._bindings.get(connection.connection_id)

    def issue_claim_token(self, player_id: str) -> str:
        """Create the secret a connection must present to speak for ``player_id``.

        Issuing a new token revokes the previous one.

        Raises:
            ClaimRefusedError: If no such player is seated
        """
        if self._state.get_player(player_id) is None:
            raise ClaimRefusedError(f"Unknown player id {player_id}")
        token = secrets.token_urlsafe(16)
        self._claim_tokens[player_id] = token
        return token

    def _check_claim(self, player_id: str, claim_token: Optional[str]) -> None:
        if self._state.get_player(player_id) is None:
            raise ClaimRefusedError(f"Unknown player id {player_id}")
        expected = self._claim_tokens.get(player_id)
        if expected is None or claim_token is None or not secrets.compare_digest(expected, claim_token):
            raise ClaimRefusedError(f"No valid claim for player {player_id}")
        if player_id in self._bindings.values():
            raise ClaimRefusedError(f"Player {player_id} is already connected")

    # ---- Connection lifecycle ----

    async def accept(
        self,
        connection: Connection,
        player_id: Optional[str] = None,
        claim_token: Optional[str] = None,
    ) -> None:
        """Register a connection and send it the current state.

        Args:
            connection: New peer connection
            player_id: Existing player the connection speaks for, if any
            claim_token: Secret from ``issue_claim_token`` proving the claim
        """
        async with self._lock:
            self._connections[connection.connection_id] = connection
            outbox: asyncio.Queue = asyncio.Queue()
            self._outboxes[connection.connection_id] = outbox
            self._writers[connection.connection_id] = asyncio.create_task(self._write_loop(connection, outbox))

            if player_id is not None:
                try:
                    self._check_claim(player_id, claim_token)
                except ClaimRefusedError as exc:
                    logger.info("Room %s refused claim from %r: %s", self.room_code, connection, exc)
                    self._reply_error(connection, exc)
                else:
                    self._bindings[connection.connection_id] = player_id
            logger.debug("Room %s accepted %r (player=%s)", self.room_code, connection, self.player_for(connection))
            self._send(connection, Sync(state=self.snapshot()))

    async def disconnect(self, connection: Connection) -> None:
        self._drop(connection)
        writer = self._writers.pop(connection.connection_id, None)
        if writer is not None:
            writer.cancel()
        logger.info("Room %s lost %r", self.room_code, connection)

    async def serve(
        self,
        connection: Connection,
        player_id: Optional[str] = None,
        claim_token: Optional[str] = None,
    ) -> None:
        """Accept a connection and handle its messages until it closes."""
        await self.accept(connection, player_id, claim_token)
        try:
            while True:
                data = await connection.receive()
                await self.handle_message(data, connection)
        except ConnectionClosed:
            pass
        finally:
            await self.disconnect(connection)

    async def close(self) -> None:
        """Stop every writer and close every open connection."""
        writers = list(self._writers.values())
        for writer in writers:
            writer.cancel()
        await asyncio.gather(*writers, return_exceptions=True)
        for connection in list(self._connections.values()):
            await connection.close()
        self._connections.clear()
        self._outboxes.clear()
        self._writers.clear()
        self._bindings.clear()

    # ---- Intents ----

    async def handle_message(self, data: Any, connection: Connection) -> None:
        """Parse and apply one inbound message from a peer connection."""
        async with self._lock:
            try:
                message = parse_message(data)
                if isinstance(message, (Sync, ErrorMessage, Heartbeat)):
                    raise InvalidMessageError(f"{message.type} is not accepted by the host")

                sender_id = self._bindings.get(connection.connection_id)
                if isinstance(message, PlayerJoin):
                    if sender_id is not None:
                        raise AdmissionError("Connection has already joined")
                elif sender_id is None:
                    raise NotJoinedError("Join the room before sending game actions")

                new_state = apply_intent(self._state, message, sender_id)
            except BankerError as exc:
                logger.info("Room %s refused message from %r: %s", self.room_code, connection, exc)
                self._reply_error(connection, exc)
                return

            if isinstance(message, PlayerJoin):
                self._bindings[connection.connection_id] = message.player.id
            await self._commit(new_state)

    async def submit(self, intent: Intent, sender_id: Optional[str] = None) -> GameState:
        """Apply an intent raised on the host itself.

        Raises:
            AdmissionError: If a join or start request is refused
        """
        async with self._lock:
            new_state = apply_intent(self._state, intent, sender_id)
            await self._commit(new_state)
            return self._state

    async def _commit(self, new_state: GameState) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        self.version += 1
        snapshot = self.snapshot()
        self.broadcast(Sync(state=snapshot))
        for listener in self._listeners:
            try:
                await listener(snapshot)
            except Exception as e:
                logger.error("Snapshot listener failed for room %s: %s", self.room_code, e)

    # ---- Outbound ----

    def broadcast(self, message: Any) -> None:
        """Queue a message for every open connection."""
        for connection in list(self._connections.values()):
            self._send(connection, message)

    def send_to(self, connection: Connection, message: Any) -> None:
        """Queue a message for one connection, behind anything already queued."""
        self._send(connection, message)

    def _send(self, connection: Connection, message: Any) -> None:
        outbox = self._outboxes.get(connection.connection_id)
        if outbox is not None:
            outbox.put_nowait(encode_message(message))

    def _reply_error(self, connection: Connection, error: BankerError) -> None:
        self._send(connection, ErrorMessage(code=error.code, message=str(error)))

    def _drop(self, connection: Connection) -> None:
        self._connections.pop(connection.connection_id, None)
        self._outboxes.pop(connection.connection_id, None)
        self._bindings.pop(connection.connection_id, None)

    async def _write_loop(self, connection: Connection, outbox: asyncio.Queue) -> None:
        while True:
            payload = await outbox.get()
            try:
                await connection.send(payload)
            except ConnectionClosed:
                logger.debug("Dropping closed connection %r", connection)
                self._drop(connection)
                self._writers.pop(connection.connection_id, None)
                return


class PeerSession:
    """A peer's view of a room, kept in step with the host by SYNC messages."""

    def __init__(
        self,
        connection: Connection,
        local_player_id: Optional[str] = None,
        view_mode: ViewMode = ViewMode.BOARD,
    ):
        self._connection = connection
        self.local_player_id = local_player_id
        self.view_mode = view_mode
        self.state: Optional[GameState] = None
        self.last_error: Optional[ErrorMessage] = None
        self.connected = True
        self.sync_count = 0
        self._changed = asyncio.Condition()

    @property
    def is_my_turn(self) -> bool:
        if self.state is None or not self.state.players or self.local_player_id is None:
            return False
        return self.state.get_current_player().id == self.local_player_id

    # ---- Outbound ----

    async def send_intent(self, intent: Intent) -> None:
        """Forward an intent to the host without touching local state.

        Raises:
            ConnectionClosed: If the host is gone
        """
        try:
            await self._connection.send(encode_message(intent))
        except ConnectionClosed:
            await self._mark_disconnected()
            raise

    async def join(self, name: str, player_id: Optional[str] = None) -> str:
        """Ask the host to admit this peer. Returns the player id used."""
        self.local_player_id = player_id or self.local_player_id or new_player_id()
        await self.send_intent(PlayerJoin(player=Player(id=self.local_player_id, name=name)))
        return self.local_player_id

    def set_view_mode(self, view_mode: ViewMode) -> None:
        self.view_mode = view_mode
        if self.state is not None:
            self.state = replace(self.state, view_mode=view_mode)

    # ---- Inbound ----

    def apply_sync(self, snapshot: Dict[str, Any]) -> GameState:
        """Replace the local state, keeping only local-only fields."""
        self.state = restore_snapshot(snapshot, local_player_id=self.local_player_id, view_mode=self.view_mode)
        self.sync_count += 1
        return self.state

    async def handle_message(self, data: Any) -> None:
        try:
            message = parse_message(data)
        except InvalidMessageError as e:
            logger.warning("Ignoring malformed message from host: %s", e)
            return

        if isinstance(message, Sync):
            try:
                self.apply_sync(message.state)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring SYNC with an unreadable snapshot: %r", e)
                return
        elif isinstance(message, ErrorMessage):
            logger.info("Host refused request: [%s] %s", message.code, message.message)
            self.last_error = message
        elif isinstance(message, Heartbeat):
            return
        else:
            logger.warning("Ignoring %s sent to a peer", message.type)
            return

        async with self._changed:
            self._changed.notify_all()

    async def run(self) -> None:
        """Receive from the host until the connection closes."""
        try:
            while True:
                data = await self._connection.receive()
                await self.handle_message(data)
        except ConnectionClosed:
            await self._mark_disconnected()

    async def wait_for_sync(self, after: Optional[int] = None) -> GameState:
        """Wait until a SYNC newer than ``after`` (default: the latest seen) arrives.

        Raises:
            ConnectionClosed: If the host goes away first
        """
        target = self.sync_count if after is None else after
        async with self._changed:
            await self._changed.wait_for(lambda: self.sync_count > target or not self.connected)
        if self.sync_count <= target:
            raise ConnectionClosed("Host connection lost")
        return self.state

    async def wait_for_error(self) -> ErrorMessage:
        """Wait until the host reports a refused request."""
        async with self._changed:
            await self._changed.wait_for(lambda: self.last_error is not None or not self.connected)
        if self.last_error is None:
            raise ConnectionClosed("Host connection lost")
        error, self.last_error = self.last_error, None
        return error

    async def close(self) -> None:
        await self._connection.close()
        await self._mark_disconnected()

    async def _mark_disconnected(self) -> None:
        if self.connected:
            logger.info("Disconnected from host")
        self.connected = False
        async with self._changed:
            self._changed.notify_all()


async def open_memory_peer(
    host: HostSession,
    player_id: Optional[str] = None,
    view_mode: ViewMode = ViewMode.BOARD,
) -> Tuple[PeerSession, List[asyncio.Task]]:
    """Connect a new in-memory peer to a host.

    Returns the peer, once its first SYNC has arrived, and the two tasks
    pumping messages for it. Passing ``player_id`` claims that seated player.

    Raises:
        ClaimRefusedError: If ``player_id`` is not seated at the table
    """
    claim_token = host.issue_claim_token(player_id) if player_id is not None else None
    host_end, peer_end = memory_pipe()
    peer = PeerSession(peer_end, local_player_id=player_id, view_mode=view_mode)
    tasks = [
        asyncio.create_task(host.serve(host_end, player_id, claim_token)),
        asyncio.create_task(peer.run()),
    ]
    await peer.wait_for_sync(after=0)
    return peer, tasks
