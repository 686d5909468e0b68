"""
Game configuration settings.
"""

from dataclasses import dataclass
from enum import Enum


class HouseBuilding(Enum):
    """House building policy for a colour group."""

    EVEN = "even"  # no site may get ahead of its group-mates
    ANY = "any"


@dataclass(frozen=True)
class GameRules:
    """Configuration for a game."""

    starting_cash: int = 1500
    go_salary: int = 200
    parking_bonus: int = 0  # 0 for off
    house_building: HouseBuilding = HouseBuilding.EVEN
    mortgage_interest: float = 0.10
    auction_enabled: bool = True
    jail_fine: int = 50


DEFAULT_RULES = GameRules()

PLAYER_COLORS = ("#EF4444", "#3B82F6", "#10B981", "#F59E0B", "#8B5CF6", "#EC4899")

INCOME_TAX_SPACE = 4
LUXURY_TAX_SPACE = 38
TAX_AMOUNTS = {INCOME_TAX_SPACE: 200, LUXURY_TAX_SPACE: 100}
