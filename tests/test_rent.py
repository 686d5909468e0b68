"""
Tests for rent, tax and their settlement through the turn engine.
"""

from dataclasses import replace

import pytest

from banker.board import STANDARD_BOARD
from banker.eventlog import LogType
from banker.game import reduce
from banker.player import PropertyState
from banker.protocol import PayRent
from banker.rules import calculate_rent, owns_color_group, tax_amount
from banker.spaces import PropertyGroup
from banker.state import GamePhase

OLD_KENT_ROAD = STANDARD_BOARD.get_space(1)
KINGS_CROSS = STANDARD_BOARD.get_space(5)
ELECTRIC_COMPANY = STANDARD_BOARD.get_space(12)


class TestCalculateRent:
    """Pure rent queries."""

    def test_unowned_space_has_no_rent(self):
        assert calculate_rent(OLD_KENT_ROAD, "p0", {}, 7) == 0

    def test_base_rent(self):
        properties = {1: PropertyState(owner_id="p0")}
        assert calculate_rent(OLD_KENT_ROAD, "p0", properties, 7) == 2

    def test_full_colour_group_doubles_base_rent(self):
        properties = {1: PropertyState(owner_id="p0"), 3: PropertyState(owner_id="p0")}
        assert calculate_rent(OLD_KENT_ROAD, "p0", properties, 7) == 4

    def test_split_colour_group_does_not_double(self):
        properties = {1: PropertyState(owner_id="p0"), 3: PropertyState(owner_id="p1")}
        assert calculate_rent(OLD_KENT_ROAD, "p0", properties, 7) == 2

    @pytest.mark.parametrize("houses,expected", [(1, 10), (2, 30), (3, 90), (4, 160), (5, 250)])
    def test_house_tiers(self, houses, expected):
        properties = {
            1: PropertyState(owner_id="p0", houses=houses),
            3: PropertyState(owner_id="p0", houses=houses),
        }
        assert calculate_rent(OLD_KENT_ROAD, "p0", properties, 7) == expected

    def test_mortgaged_space_has_no_rent(self):
        properties = {1: PropertyState(owner_id="p0", is_mortgaged=True)}
        assert calculate_rent(OLD_KENT_ROAD, "p0", properties, 7) == 0

    @pytest.mark.parametrize("owned,expected", [(1, 25), (2, 50), (3, 100), (4, 200)])
    def test_railroad_rent_doubles_per_station(self, owned, expected):
        stations = STANDARD_BOARD.get_all_railroads()[:owned]
        properties = {space_id: PropertyState(owner_id="p0") for space_id in stations}
        assert calculate_rent(KINGS_CROSS, "p0", properties, 7) == expected

    def test_mortgaged_station_does_not_count(self):
        properties = {5: PropertyState(owner_id="p0"), 15: PropertyState(owner_id="p0", is_mortgaged=True)}
        assert calculate_rent(KINGS_CROSS, "p0", properties, 7) == 25

    def test_single_utility_is_four_times_dice(self):
        properties = {12: PropertyState(owner_id="p0")}
        assert calculate_rent(ELECTRIC_COMPANY, "p0", properties, 7) == 28

    def test_both_utilities_is_ten_times_dice(self):
        properties = {12: PropertyState(owner_id="p0"), 28: PropertyState(owner_id="p0")}
        assert calculate_rent(ELECTRIC_COMPANY, "p0", properties, 7) == 70

    def test_fixed_taxes(self):
        assert tax_amount(STANDARD_BOARD.get_space(4)) == 200
        assert tax_amount(STANDARD_BOARD.get_space(38)) == 100
        assert tax_amount(STANDARD_BOARD.get_space(0)) == 0

    def test_owns_color_group(self):
        properties = {37: PropertyState(owner_id="p0")}
        assert not owns_color_group(PropertyGroup.DARK_BLUE, "p0", properties)
        properties[39] = PropertyState(owner_id="p0")
        assert owns_color_group(PropertyGroup.DARK_BLUE, "p0", properties)
        assert not owns_color_group(PropertyGroup.DARK_BLUE, "p1", properties)


class TestPayRent:
    """Rent and tax settlement."""

    def test_rent_moves_from_payer_to_owner(self, two_player_game, landed, own):
        state = own(replace(two_player_game, current_player_index=1), "p0", 1)
        state = landed(state, 1)

        result = reduce(state, PayRent(), sender_id="p1")

        assert result.players[1].money == 1498
        assert result.players[0].money == 1502
        assert result.logs[-1].type == LogType.TRANSACTION
        assert result.logs[-1].message == "RENT: Bob -> Alice [$2]"
        assert result.current_player_index == 0
        assert result.phase == GamePhase.ROLL

    def test_utility_rent_uses_last_dice_total(self, two_player_game, landed, own):
        state = own(replace(two_player_game, current_player_index=1), "p0", 12)
        state = landed(state, 12, dice=(5, 6))

        result = reduce(state, PayRent())

        assert result.players[1].money == 1500 - 44
        assert result.players[0].money == 1500 + 44

    def test_income_tax(self, two_player_game, landed):
        result = reduce(landed(two_player_game, 4), PayRent(), sender_id="p0")

        assert result.players[0].money == 1300
        assert result.logs[-1].message == "TAX PAID: Alice - $200"
        assert result.current_player_index == 1

    def test_luxury_tax(self, two_player_game, landed):
        result = reduce(landed(two_player_game, 38), PayRent())
        assert result.players[0].money == 1400

    def test_rent_on_own_space_is_ignored(self, two_player_game, landed, own):
        state = landed(own(two_player_game, "p0", 1), 1)
        assert reduce(state, PayRent()) is state

    def test_rent_on_unowned_space_is_ignored(self, two_player_game, landed):
        state = landed(two_player_game, 1)
        assert reduce(state, PayRent()) is state

    def test_rent_can_leave_a_negative_balance(self, two_player_game, landed, own):
        state = own(replace(two_player_game, current_player_index=1), "p0", 39, houses=5)
        state = own(state, "p0", 37, houses=5)
        state = state.with_player(1, money=100)

        result = reduce(landed(state, 39), PayRent())

        assert result.players[1].money == 100 - 2000

    def test_rent_after_doubles_grants_bonus_roll(self, two_player_game, landed, own):
        state = own(replace(two_player_game, current_player_index=1), "p0", 1)
        state = landed(state, 1, dice=(2, 2))

        result = reduce(state, PayRent())

        assert result.current_player_index == 1
        assert result.phase == GamePhase.ROLL
        assert "Bonus roll" in result.logs[-1].message

    def test_only_current_player_may_pay(self, two_player_game, landed, own):
        state = own(replace(two_player_game, current_player_index=1), "p0", 1)
        state = landed(state, 1)
        assert reduce(state, PayRent(), sender_id="p0") is state
