"""
Pure rule queries: rent, taxes, group ownership and build eligibility.

Nothing here touches game state; callers pass in the current ownership map.
"""

from typing import Mapping

from banker.board import STANDARD_BOARD, Board
from banker.config import TAX_AMOUNTS, GameRules, HouseBuilding
from banker.player import PropertyState
from banker.spaces import BoardSpace, PropertyGroup, SpaceType

MAX_HOUSES = 5  # 5 houses == hotel


def owns_color_group(
    group: PropertyGroup,
    owner_id: str,
    properties: Mapping[int, PropertyState],
    board: Board = STANDARD_BOARD,
) -> bool:
    """Check if a player owns every space in a group."""
    group_spaces = board.get_group(group)
    if not group_spaces:
        return False
    return all(
        space.id in properties and properties[space.id].owner_id == owner_id
        for space in group_spaces
    )


def _count_unmortgaged(
    group: PropertyGroup,
    owner_id: str,
    properties: Mapping[int, PropertyState],
    board: Board,
) -> int:
    count = 0
    for space in board.get_group(group):
        ownership = properties.get(space.id)
        if ownership and ownership.owner_id == owner_id and not ownership.is_mortgaged:
            count += 1
    return count


def calculate_rent(
    space: BoardSpace,
    owner_id: str,
    properties: Mapping[int, PropertyState],
    dice_total: int,
    board: Board = STANDARD_BOARD,
) -> int:
    """
    Calculate the rent owed for landing on a space.

    Args:
        space: Space landed on
        owner_id: Owner to compute station/utility counts for
        properties: Current ownership map
        dice_total: Combined value of the last roll (needed for utilities)

    Returns:
        Rent amount, 0 for unowned, mortgaged or non-ownable spaces
    """
    ownership = properties.get(space.id)
    if ownership is None or ownership.is_mortgaged:
        return 0

    if space.group == PropertyGroup.UTILITY:
        owned = _count_unmortgaged(PropertyGroup.UTILITY, owner_id, properties, board)
        return dice_total * 10 if owned == 2 else dice_total * 4

    if space.group == PropertyGroup.RAILROAD:
        owned = _count_unmortgaged(PropertyGroup.RAILROAD, owner_id, properties, board)
        if owned == 0:
            return 0
        return 25 * (2 ** (owned - 1))

    if space.type == SpaceType.PROPERTY:
        if ownership.houses > 0:
            return space.rent_with_houses(ownership.houses)
        if owns_color_group(space.group, owner_id, properties, board):
            return space.base_rent * 2
        return space.base_rent

    return 0


def tax_amount(space: BoardSpace) -> int:
    """Fixed tax for Income Tax (200) and Luxury Tax (100)."""
    return TAX_AMOUNTS.get(space.id, 0)


def can_build_house(
    space: BoardSpace,
    owner_id: str,
    properties: Mapping[int, PropertyState],
    rules: GameRules,
    board: Board = STANDARD_BOARD,
) -> bool:
    """
    Check if a player can build a house on a site.

    Requirements:
    - Space is a colour-group site
    - Player owns the whole group and nothing in it is mortgaged
    - Site is below hotel level
    - Under the even policy, the site is at the group minimum
    """
    if space.type != SpaceType.PROPERTY:
        return False

    group_spaces = board.get_group(space.group)
    if not owns_color_group(space.group, owner_id, properties, board):
        return False
    if any(properties[s.id].is_mortgaged for s in group_spaces):
        return False

    current = properties[space.id].houses
    if current >= MAX_HOUSES:
        return False

    if rules.house_building == HouseBuilding.EVEN:
        return current == min(properties[s.id].houses for s in group_spaces)
    return True
