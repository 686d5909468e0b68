"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    PROPERTY = "PROPERTY"
    RAILROAD = "RAILROAD"
    UTILITY = "UTILITY"
    GO = "GO"
    JAIL = "JAIL"
    GO_TO_JAIL = "GO_TO_JAIL"
    FREE_PARKING = "FREE_PARKING"
    TAX = "TAX"
    CHANCE = "CHANCE"
    COMMUNITY_CHEST = "COMMUNITY_CHEST"


class PropertyGroup(Enum):
    """Colour sets plus the pseudo-groups for stations, utilities and corners."""

    BROWN = "BROWN"
    LIGHT_BLUE = "LIGHT_BLUE"
    PINK = "PINK"
    ORANGE = "ORANGE"
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"
    DARK_BLUE = "DARK_BLUE"
    RAILROAD = "RAILROAD"
    UTILITY = "UTILITY"
    SPECIAL = "SPECIAL"


OWNABLE_TYPES = frozenset({SpaceType.PROPERTY, SpaceType.RAILROAD, SpaceType.UTILITY})


@dataclass(frozen=True)
class BoardSpace:
    """A single board space. Non-ownable spaces leave the money fields at zero."""

    id: int
    name: str
    type: SpaceType
    group: PropertyGroup = PropertyGroup.SPECIAL
    price: int = 0
    base_rent: int = 0
    rent_house_1: int = 0
    rent_house_2: int = 0
    rent_house_3: int = 0
    rent_house_4: int = 0
    rent_hotel: int = 0
    house_cost: int = 0
    mortgage_value: int = 0

    def __post_init__(self) -> None:
        if self.mortgage_value == 0 and self.price:
            object.__setattr__(self, "mortgage_value", self.price // 2)

    @property
    def is_ownable(self) -> bool:
        return self.type in OWNABLE_TYPES

    @property
    def rent_tiers(self) -> Tuple[int, int, int, int, int]:
        """Rent with 1-4 houses and with a hotel."""
        return (
            self.rent_house_1,
            self.rent_house_2,
            self.rent_house_3,
            self.rent_house_4,
            self.rent_hotel,
        )

    def rent_with_houses(self, houses: int) -> int:
        """
        Rent for an improved site.

        Args:
            houses: Number of houses (1-4) or 5 for hotel

        Returns:
            Rent amount, 0 when the count is outside 1-5
        """
        if 1 <= houses <= 5:
            return self.rent_tiers[houses - 1]
        return 0

    def __repr__(self) -> str:
        return f"BoardSpace(id={self.id}, name='{self.name}', type={self.type.value})"
