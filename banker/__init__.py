"""
Banker Pro game engine

A host-authoritative rules engine for a property-trading board game,
replicated to peers as full state snapshots.
"""

from .board import STANDARD_BOARD, Board
from .config import DEFAULT_RULES, GameRules, HouseBuilding
from .game import apply_intent, reduce
from .lobby import admit_player, create_room, rendezvous_id, start_game
from .player import Player, PropertyState
from .replication import HostSession, PeerSession
from .state import GamePhase, GameState

__all__ = [
    "STANDARD_BOARD",
    "Board",
    "DEFAULT_RULES",
    "GameRules",
    "HouseBuilding",
    "apply_intent",
    "reduce",
    "admit_player",
    "create_room",
    "rendezvous_id",
    "start_game",
    "Player",
    "PropertyState",
    "HostSession",
    "PeerSession",
    "GamePhase",
    "GameState",
]
