"""
Immutable game state.

Every reduction returns a new GameState. Untouched players, property entries
and log entries are shared with the previous state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from banker.board import STANDARD_BOARD
from banker.config import DEFAULT_RULES, GameRules
from banker.eventlog import LogEntry, LogType, new_entry
from banker.player import Player, PropertyState
from banker.spaces import BoardSpace


class GamePhase(Enum):
    """Stage of the per-turn state machine."""

    SETUP = "SETUP"
    LOBBY = "LOBBY"
    ROLL = "ROLL"
    ACTION = "ACTION"
    AUCTION = "AUCTION"
    TRADE_PROPOSAL = "TRADE_PROPOSAL"  # reserved, trades execute immediately


IN_GAME_PHASES = frozenset(
    {GamePhase.ROLL, GamePhase.ACTION, GamePhase.AUCTION, GamePhase.TRADE_PROPOSAL}
)


class ViewMode(Enum):
    """Local display preference, never replicated."""

    BOARD = "BOARD"
    PLAYER_WALLET = "PLAYER_WALLET"


@dataclass(frozen=True)
class AuctionState:
    """Auction in progress for the space the current player landed on."""

    active: bool
    property_id: int


@dataclass(frozen=True)
class TradeOffer:
    """Cash and spaces moving between a proposer and a counterpart."""

    from_player_id: str
    to_player_id: str
    offered_cash: int = 0
    offered_properties: Tuple[int, ...] = ()
    offered_jail_cards: int = 0
    requested_cash: int = 0
    requested_properties: Tuple[int, ...] = ()
    requested_jail_cards: int = 0


@dataclass(frozen=True)
class GameState:
    """The single aggregate root replicated to every peer."""

    room_code: str = ""
    rules: GameRules = DEFAULT_RULES
    players: Tuple[Player, ...] = ()
    current_player_index: int = 0
    properties: Mapping[int, PropertyState] = field(default_factory=dict)
    phase: GamePhase = GamePhase.SETUP
    dice: Tuple[int, int] = (0, 0)
    last_roll_was_double: bool = False
    consecutive_doubles: int = 0
    auction: Optional[AuctionState] = None
    active_trade: Optional[TradeOffer] = None
    logs: Tuple[LogEntry, ...] = ()
    # Local-only fields, not part of the authoritative snapshot
    local_player_id: Optional[str] = None
    view_mode: ViewMode = ViewMode.BOARD

    def get_current_player(self) -> Player:
        """Get the player whose turn it is."""
        return self.players[self.current_player_index]

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def index_of(self, player_id: str) -> Optional[int]:
        for index, player in enumerate(self.players):
            if player.id == player_id:
                return index
        return None

    def current_space(self) -> BoardSpace:
        """Space the current player is standing on."""
        return STANDARD_BOARD.get_space(self.get_current_player().position)

    @property
    def dice_total(self) -> int:
        return self.dice[0] + self.dice[1]

    @property
    def has_rolled(self) -> bool:
        return self.dice != (0, 0)

    def with_player(self, index: int, **changes) -> GameState:
        """Return a copy with one player replaced."""
        players = list(self.players)
        players[index] = replace(players[index], **changes)
        return replace(self, players=tuple(players))

    def with_property(self, space_id: int, ownership: PropertyState) -> GameState:
        """Return a copy with one property entry set."""
        properties = dict(self.properties)
        properties[space_id] = ownership
        return replace(self, properties=properties)

    def with_log(self, message: str, log_type: LogType = LogType.INFO) -> GameState:
        """Return a copy with one entry appended to the audit trail."""
        return replace(self, logs=self.logs + (new_entry(message, log_type),))
