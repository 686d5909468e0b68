"""
Player state and property ownership.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Player:
    """Represents the complete state of a player in the game."""

    id: str
    name: str
    color: str = ""
    money: int = 0
    position: int = 0
    is_in_jail: bool = False
    jail_turns: int = 0
    get_out_of_jail_free_cards: int = 0

    def __repr__(self) -> str:
        return (
            f"Player(id={self.id!r}, name='{self.name}', "
            f"money={self.money}, position={self.position}, in_jail={self.is_in_jail})"
        )


@dataclass(frozen=True)
class PropertyState:
    """Tracks ownership state of a property."""

    owner_id: Optional[str] = None
    houses: int = 0
    is_mortgaged: bool = False

    def has_hotel(self) -> bool:
        """Check if property has a hotel (represented as 5 houses)."""
        return self.houses == 5
