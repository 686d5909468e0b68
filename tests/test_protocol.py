"""
Tests for wire message parsing.
"""

import pytest

from banker.exceptions import InvalidMessageError
from banker.player import Player
from banker.protocol import (
    BuildHouse,
    Heartbeat,
    PlayerJoin,
    ProposeTrade,
    RollDice,
    Sync,
    encode_message,
    parse_message,
)


def test_parse_roll():
    message = parse_message({"type": "ACTION_ROLL", "d1": 3, "d2": 5})
    assert isinstance(message, RollDice)
    assert (message.d1, message.d2) == (3, 5)


def test_encode_roll():
    assert encode_message(RollDice(d1=2, d2=6)) == {"type": "ACTION_ROLL", "d1": 2, "d2": 6}


def test_parse_join_with_minimal_player():
    message = parse_message({"type": "PLAYER_JOIN", "player": {"id": "abc", "name": "Bob"}})
    assert isinstance(message, PlayerJoin)
    assert message.player == Player(id="abc", name="Bob")


def test_parse_trade_offer():
    message = parse_message(
        {
            "type": "ACTION_TRADE",
            "offer": {
                "from_player_id": "p0",
                "to_player_id": "p1",
                "offered_cash": 50,
                "offered_properties": [1, 3],
            },
        }
    )
    assert isinstance(message, ProposeTrade)
    assert tuple(message.offer.offered_properties) == (1, 3)
    assert message.offer.requested_cash == 0


def test_parse_sync_and_heartbeat():
    assert isinstance(parse_message({"type": "SYNC", "state": {"phase": "LOBBY"}}), Sync)
    assert isinstance(parse_message({"type": "HEARTBEAT"}), Heartbeat)


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "ACTION_TELEPORT"},
        {"d1": 1, "d2": 2},
        {"type": "ACTION_ROLL", "d1": 0, "d2": 7},
        {"type": "ACTION_AUCTION_RESOLVE", "amount": 10},
        {"type": "ACTION_BUILD_HOUSE", "space_id": 40},
        "not a message",
    ],
)
def test_malformed_messages_are_rejected(payload):
    with pytest.raises(InvalidMessageError):
        parse_message(payload)


def test_build_house_space_range():
    assert parse_message({"type": "ACTION_BUILD_HOUSE", "space_id": 39}) == BuildHouse(space_id=39)
