"""
Wire messages exchanged between the host and its peers.

Every message is a JSON object with a ``type`` discriminant. Parsing goes
through one pydantic ``TypeAdapter`` over the closed union, so an unknown
type or a malformed payload is rejected before it reaches the engine.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from banker.exceptions import InvalidMessageError
from banker.player import Player
from banker.state import TradeOffer


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---- Host -> peer ----


class Sync(_Message):
    type: Literal["SYNC"] = "SYNC"
    state: Dict[str, Any]


class ErrorMessage(_Message):
    type: Literal["ERROR"] = "ERROR"
    code: str
    message: str


class Heartbeat(_Message):
    type: Literal["HEARTBEAT"] = "HEARTBEAT"


# ---- Peer -> host ----


class PlayerJoin(_Message):
    type: Literal["PLAYER_JOIN"] = "PLAYER_JOIN"
    player: Player


class StartGame(_Message):
    type: Literal["START_GAME"] = "START_GAME"


class RollDice(_Message):
    type: Literal["ACTION_ROLL"] = "ACTION_ROLL"
    d1: int = Field(ge=1, le=6)
    d2: int = Field(ge=1, le=6)


class BuyProperty(_Message):
    type: Literal["ACTION_BUY"] = "ACTION_BUY"


class StartAuction(_Message):
    type: Literal["ACTION_AUCTION_START"] = "ACTION_AUCTION_START"


class ResolveAuction(_Message):
    type: Literal["ACTION_AUCTION_RESOLVE"] = "ACTION_AUCTION_RESOLVE"
    amount: int
    winner_id: str


class PayRent(_Message):
    type: Literal["ACTION_PAY_RENT"] = "ACTION_PAY_RENT"


class EndTurn(_Message):
    type: Literal["ACTION_END_TURN"] = "ACTION_END_TURN"


class ProposeTrade(_Message):
    type: Literal["ACTION_TRADE"] = "ACTION_TRADE"
    offer: TradeOffer


class PayJailFine(_Message):
    type: Literal["ACTION_PAY_JAIL_FINE"] = "ACTION_PAY_JAIL_FINE"


class BuildHouse(_Message):
    type: Literal["ACTION_BUILD_HOUSE"] = "ACTION_BUILD_HOUSE"
    space_id: int = Field(ge=0, le=39)


# Intents the reducer understands
TurnIntent = Union[
    RollDice,
    BuyProperty,
    StartAuction,
    ResolveAuction,
    PayRent,
    EndTurn,
    ProposeTrade,
    PayJailFine,
    BuildHouse,
]

Intent = Union[PlayerJoin, StartGame, TurnIntent]

Message = Annotated[
    Union[
        Sync,
        ErrorMessage,
        Heartbeat,
        PlayerJoin,
        StartGame,
        RollDice,
        BuyProperty,
        StartAuction,
        ResolveAuction,
        PayRent,
        EndTurn,
        ProposeTrade,
        PayJailFine,
        BuildHouse,
    ],
    Field(discriminator="type"),
]

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(data: Any) -> Message:
    """Validate a decoded JSON payload into a message.

    Raises:
        InvalidMessageError: If the payload is not a known, well-formed message
    """
    try:
        return _message_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvalidMessageError(str(exc)) from exc


def encode_message(message: _Message) -> Dict[str, Any]:
    """Dump a message to a JSON-safe dict."""
    return message.model_dump(mode="json")
