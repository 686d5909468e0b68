from typing import Dict, List, Tuple

from banker.spaces import BoardSpace, PropertyGroup, SpaceType

BOARD_SIZE = 40
JAIL_POSITION = 10


def _site(space_id, name, group, price, base, r1, r2, r3, r4, hotel, house_cost) -> BoardSpace:
    return BoardSpace(
        id=space_id,
        name=name,
        type=SpaceType.PROPERTY,
        group=group,
        price=price,
        base_rent=base,
        rent_house_1=r1,
        rent_house_2=r2,
        rent_house_3=r3,
        rent_house_4=r4,
        rent_hotel=hotel,
        house_cost=house_cost,
    )


def _station(space_id: int, name: str) -> BoardSpace:
    return BoardSpace(space_id, name, SpaceType.RAILROAD, PropertyGroup.RAILROAD, price=200, base_rent=25)


def _utility(space_id: int, name: str) -> BoardSpace:
    return BoardSpace(space_id, name, SpaceType.UTILITY, PropertyGroup.UTILITY, price=150)


def _special(space_id: int, name: str, space_type: SpaceType) -> BoardSpace:
    return BoardSpace(space_id, name, space_type)


class Board:
    """The game board with 40 spaces."""

    def __init__(self):
        self.spaces: Tuple[BoardSpace, ...] = self._create_standard_board()
        self.color_groups: Dict[PropertyGroup, List[int]] = self._build_groups()

    def _create_standard_board(self) -> Tuple[BoardSpace, ...]:
        """Create the standard 40-space board."""
        brown, light_blue, pink = PropertyGroup.BROWN, PropertyGroup.LIGHT_BLUE, PropertyGroup.PINK
        orange, red, yellow = PropertyGroup.ORANGE, PropertyGroup.RED, PropertyGroup.YELLOW
        green, dark_blue = PropertyGroup.GREEN, PropertyGroup.DARK_BLUE
        return (
            # Bottom row (0-10)
            _special(0, "GO", SpaceType.GO),
            _site(1, "Old Kent Road", brown, 60, 2, 10, 30, 90, 160, 250, 50),
            _special(2, "Community Chest", SpaceType.COMMUNITY_CHEST),
            _site(3, "Whitechapel Road", brown, 60, 4, 20, 60, 180, 320, 450, 50),
            _special(4, "Income Tax", SpaceType.TAX),
            _station(5, "Kings Cross Station"),
            _site(6, "The Angel Islington", light_blue, 100, 6, 30, 90, 270, 400, 550, 50),
            _special(7, "Chance", SpaceType.CHANCE),
            _site(8, "Euston Road", light_blue, 100, 6, 30, 90, 270, 400, 550, 50),
            _site(9, "Pentonville Road", light_blue, 120, 8, 40, 100, 300, 450, 600, 50),
            _special(10, "Jail / Just Visiting", SpaceType.JAIL),
            # Left side (11-20)
            _site(11, "St. Charles Place", pink, 140, 10, 50, 150, 450, 625, 750, 100),
            _utility(12, "Electric Company"),
            _site(13, "States Ave", pink, 140, 10, 50, 150, 450, 625, 750, 100),
            _site(14, "Virginia Ave", pink, 160, 12, 60, 180, 500, 700, 900, 100),
            _station(15, "Pennsylvania Railroad"),
            _site(16, "St. James Place", orange, 180, 14, 70, 200, 550, 750, 950, 100),
            _special(17, "Community Chest", SpaceType.COMMUNITY_CHEST),
            _site(18, "Tennessee Ave", orange, 180, 14, 70, 200, 550, 750, 950, 100),
            _site(19, "New York Ave", orange, 200, 16, 80, 220, 600, 800, 1000, 100),
            _special(20, "Free Parking", SpaceType.FREE_PARKING),
            # Top row (21-30)
            _site(21, "Kentucky Ave", red, 220, 18, 90, 250, 700, 875, 1050, 150),
            _special(22, "Chance", SpaceType.CHANCE),
            _site(23, "Indiana Ave", red, 220, 18, 90, 250, 700, 875, 1050, 150),
            _site(24, "Illinois Ave", red, 240, 20, 100, 300, 750, 925, 1100, 150),
            _station(25, "B. & O. Railroad"),
            _site(26, "Atlantic Ave", yellow, 260, 22, 110, 330, 800, 975, 1150, 150),
            _site(27, "Ventnor Ave", yellow, 260, 22, 110, 330, 800, 975, 1150, 150),
            _utility(28, "Water Works"),
            _site(29, "Marvin Gardens", yellow, 280, 24, 120, 360, 850, 1025, 1200, 150),
            _special(30, "Go To Jail", SpaceType.GO_TO_JAIL),
            # Right side (31-39)
            _site(31, "Pacific Ave", green, 300, 26, 130, 390, 900, 1100, 1275, 200),
            _site(32, "North Carolina Ave", green, 300, 26, 130, 390, 900, 1100, 1275, 200),
            _special(33, "Community Chest", SpaceType.COMMUNITY_CHEST),
            _site(34, "Pennsylvania Ave", green, 320, 28, 150, 450, 1000, 1200, 1400, 200),
            _station(35, "Short Line"),
            _special(36, "Chance", SpaceType.CHANCE),
            _site(37, "Park Place", dark_blue, 350, 35, 175, 500, 1100, 1300, 1500, 200),
            _special(38, "Luxury Tax", SpaceType.TAX),
            _site(39, "Boardwalk", dark_blue, 400, 50, 200, 600, 1400, 1700, 2000, 200),
        )

    def _build_groups(self) -> Dict[PropertyGroup, List[int]]:
        """Map every ownable group (colour sets, stations, utilities) to its space ids."""
        groups: Dict[PropertyGroup, List[int]] = {}
        for space in self.spaces:
            if space.is_ownable:
                groups.setdefault(space.group, []).append(space.id)
        return groups

    def get_space(self, position: int) -> BoardSpace:
        """Get the space at the given position."""
        return self.spaces[position % BOARD_SIZE]

    def get_group(self, group: PropertyGroup) -> List[BoardSpace]:
        """Get all spaces in a group."""
        return [self.spaces[i] for i in self.color_groups.get(group, [])]

    def get_all_railroads(self) -> List[int]:
        """Get positions of all railroad spaces."""
        return list(self.color_groups[PropertyGroup.RAILROAD])

    def get_all_utilities(self) -> List[int]:
        """Get positions of all utility spaces."""
        return list(self.color_groups[PropertyGroup.UTILITY])


STANDARD_BOARD = Board()
