"""Shared test fixtures for Banker Pro tests."""

from dataclasses import replace

import pytest

from banker.lobby import admit_player, create_room, start_game
from banker.player import Player, PropertyState
from banker.state import GamePhase

NAMES = ["Alice", "Bob", "Charlie", "Diana"]


def build_game(num_players=2, rules=None):
    """Started game with players p0..pN-1, p0 to move."""
    state = create_room(NAMES[0], rules=rules, room_code="TEST01", host_id="p0")
    for i in range(1, num_players):
        state = admit_player(state, Player(id=f"p{i}", name=NAMES[i]))
    return start_game(state, sender_id="p0")


@pytest.fixture
def lobby():
    """Room in the LOBBY phase with only the host."""
    return create_room("Alice", room_code="TEST01", host_id="p0")


@pytest.fixture
def two_player_game():
    return build_game(2)


@pytest.fixture
def four_player_game():
    return build_game(4)


@pytest.fixture
def game_factory():
    return build_game


@pytest.fixture
def landed():
    """Put the current player on a space in the ACTION phase, as if they just rolled."""

    def _landed(state, position, dice=(3, 4)):
        state = state.with_player(state.current_player_index, position=position)
        return replace(
            state,
            phase=GamePhase.ACTION,
            dice=dice,
            last_roll_was_double=dice[0] == dice[1],
        )

    return _landed


@pytest.fixture
def own():
    """Give spaces to a player."""

    def _own(state, owner_id, *space_ids, houses=0, mortgaged=False):
        for space_id in space_ids:
            state = state.with_property(
                space_id, PropertyState(owner_id=owner_id, houses=houses, is_mortgaged=mortgaged)
            )
        return state

    return _own
