from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from banker.config import GameRules, HouseBuilding


class RulesConfig(BaseModel):
    starting_cash: int = Field(1500, ge=0)
    go_salary: int = Field(200, ge=0)
    house_building: HouseBuilding = HouseBuilding.EVEN
    auction_enabled: bool = True
    jail_fine: int = Field(50, ge=0)

    def to_rules(self) -> GameRules:
        return GameRules(
            starting_cash=self.starting_cash,
            go_salary=self.go_salary,
            house_building=self.house_building,
            auction_enabled=self.auction_enabled,
            jail_fine=self.jail_fine,
        )


class CreateRoomRequest(BaseModel):
    host_name: str = Field(..., min_length=1, max_length=32)
    rules: Optional[RulesConfig] = None

    @field_validator("host_name")
    @classmethod
    def strip_host_name(cls, v: str) -> str:
        name = v.strip()
        if not name:
            raise ValueError("host_name must not be blank")
        return name


class CreateRoomResponse(BaseModel):
    room_code: str
    rendezvous_id: str
    player_id: str
    claim_token: str


class PlayerSummary(BaseModel):
    id: str
    name: str
    color: str
    money: int
    position: int
    is_in_jail: bool


class RoomSummary(BaseModel):
    room_code: str
    rendezvous_id: str
    phase: str
    current_player_id: Optional[str] = None
    connections: int
    players: List[PlayerSummary] = Field(default_factory=list)
