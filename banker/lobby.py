"""
Room bootstrap and lobby admission.

A room is identified by a short code. Peers reach the host through a
rendezvous id built from a fixed prefix and that code.
"""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from dataclasses import replace
from typing import Optional

from banker.config import DEFAULT_RULES, PLAYER_COLORS, GameRules
from banker.eventlog import LogType
from banker.exceptions import (
    AdmissionError,
    DuplicatePlayerNameError,
    GameInProgressError,
    NotEnoughPlayersError,
    NotRoomOwnerError,
    RoomFullError,
)
from banker.player import Player
from banker.state import GamePhase, GameState

logger = logging.getLogger(__name__)

RENDEZVOUS_PREFIX = "monopoly-banker-pro-v2-"
ROOM_CODE_LENGTH = 6
MIN_PLAYERS = 2

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    """Random uppercase alphanumeric room code."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def normalize_room_code(code: str) -> str:
    return code.strip().upper()


def rendezvous_id(code: str, prefix: str = RENDEZVOUS_PREFIX) -> str:
    """Build the identifier peers connect to. Codes are case-insensitive."""
    return f"{prefix}{normalize_room_code(code)}"


def new_player_id() -> str:
    return uuid.uuid4().hex[:9]


def create_room(
    host_name: str,
    rules: Optional[GameRules] = None,
    room_code: Optional[str] = None,
    host_id: Optional[str] = None,
) -> GameState:
    """
    Bootstrap a room with the host as its only player.

    Args:
        host_name: Display name of the hosting player
        rules: Rules for the room (defaults apply when omitted)
        room_code: Fixed code, generated when omitted
        host_id: Fixed player id for the host, generated when omitted

    Returns:
        A GameState in the LOBBY phase
    """
    code = normalize_room_code(room_code) if room_code else generate_room_code()
    state = GameState(room_code=code, rules=rules or DEFAULT_RULES, phase=GamePhase.SETUP)
    state = replace(state, phase=GamePhase.LOBBY)
    state = state.with_log(f"SYSTEM: Room {code} opened", LogType.INFO)

    logger.info("Room %s created by %s", code, host_name)
    return admit_player(state, Player(id=host_id or new_player_id(), name=host_name))


def next_color(state: GameState) -> Optional[str]:
    """First palette colour no player uses yet, None when the room is full."""
    used = {p.color for p in state.players}
    for color in PLAYER_COLORS:
        if color not in used:
            return color
    return None


def admit_player(state: GameState, player: Player) -> GameState:
    """
    Append a joining player to the lobby.

    Only the joiner's id and name are taken from the request. Colour and
    starting cash are assigned here.

    Raises:
        GameInProgressError: If the room already left the lobby
        DuplicatePlayerNameError: If the name is taken
        RoomFullError: If every colour is in use
    """
    if state.phase != GamePhase.LOBBY:
        raise GameInProgressError(f"Room {state.room_code} is no longer accepting players")

    name = player.name.strip()
    if not name:
        raise AdmissionError("Player name must not be empty")
    if any(existing.name == name for existing in state.players):
        raise DuplicatePlayerNameError(f"Name '{name}' is already taken")
    if state.get_player(player.id) is not None:
        raise AdmissionError(f"Player id {player.id} is already in use")

    color = next_color(state)
    if color is None:
        raise RoomFullError(f"Room {state.room_code} is full")

    admitted = Player(
        id=player.id,
        name=name,
        color=color,
        money=state.rules.starting_cash,
    )
    state = replace(state, players=state.players + (admitted,))
    logger.info("Player %s (%s) joined room %s", name, player.id, state.room_code)
    return state.with_log(f"{name} joined the session.", LogType.INFO)


def start_game(state: GameState, sender_id: Optional[str] = None) -> GameState:
    """
    Move the room from the lobby into the first turn.

    Raises:
        GameInProgressError: If the game already started
        NotRoomOwnerError: If someone other than the room's first player asks
        NotEnoughPlayersError: With fewer than two players
    """
    if state.phase != GamePhase.LOBBY:
        raise GameInProgressError(f"Room {state.room_code} has already started")
    if sender_id is not None and state.players and sender_id != state.players[0].id:
        raise NotRoomOwnerError("Only the host can start the game")
    if len(state.players) < MIN_PLAYERS:
        raise NotEnoughPlayersError(f"At least {MIN_PLAYERS} players are needed")

    logger.info("Room %s started with %d players", state.room_code, len(state.players))
    state = replace(state, phase=GamePhase.ROLL, current_player_index=0)
    return state.with_log("SYSTEM: Game Sequence Initiated", LogType.ALERT)
