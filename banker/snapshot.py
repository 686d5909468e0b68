"""
Public snapshot serialization of GameState.

Produces the JSON-safe dict carried by SYNC messages and stored by the
snapshot store. Local-only fields (``local_player_id``, ``view_mode``) are
never written; the receiving side supplies its own.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from banker.config import GameRules, HouseBuilding
from banker.eventlog import LogEntry, LogType
from banker.player import Player, PropertyState
from banker.state import AuctionState, GamePhase, GameState, TradeOffer, ViewMode


def _serialize_trade(offer: TradeOffer) -> Dict[str, Any]:
    return {
        "from_player_id": offer.from_player_id,
        "to_player_id": offer.to_player_id,
        "offered_cash": offer.offered_cash,
        "offered_properties": list(offer.offered_properties),
        "offered_jail_cards": offer.offered_jail_cards,
        "requested_cash": offer.requested_cash,
        "requested_properties": list(offer.requested_properties),
        "requested_jail_cards": offer.requested_jail_cards,
    }


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a stable JSON dict.

    The snapshot includes:
    - room code and rules
    - players in turn order with money, position and jail status
    - property ownership keyed by space id (as strings, for JSON)
    - phase, dice and doubles tracking
    - auction and reserved trade slot
    - the full audit log
    """
    rules = game.rules
    players: List[Dict[str, Any]] = [
        {
            "id": p.id,
            "name": p.name,
            "color": p.color,
            "money": p.money,
            "position": p.position,
            "is_in_jail": p.is_in_jail,
            "jail_turns": p.jail_turns,
            "get_out_of_jail_free_cards": p.get_out_of_jail_free_cards,
        }
        for p in game.players
    ]

    properties: Dict[str, Any] = {
        str(space_id): {
            "owner_id": ownership.owner_id,
            "houses": ownership.houses,
            "is_mortgaged": ownership.is_mortgaged,
        }
        for space_id, ownership in sorted(game.properties.items())
    }

    auction = None
    if game.auction is not None:
        auction = {"active": game.auction.active, "property_id": game.auction.property_id}

    return {
        "room_code": game.room_code,
        "rules": {
            "starting_cash": rules.starting_cash,
            "go_salary": rules.go_salary,
            "parking_bonus": rules.parking_bonus,
            "house_building": rules.house_building.value,
            "mortgage_interest": rules.mortgage_interest,
            "auction_enabled": rules.auction_enabled,
            "jail_fine": rules.jail_fine,
        },
        "players": players,
        "current_player_index": game.current_player_index,
        "properties": properties,
        "phase": game.phase.value,
        "dice": list(game.dice),
        "last_roll_was_double": game.last_roll_was_double,
        "consecutive_doubles": game.consecutive_doubles,
        "auction": auction,
        "active_trade": _serialize_trade(game.active_trade) if game.active_trade else None,
        "logs": [
            {"id": e.id, "timestamp": e.timestamp, "message": e.message, "type": e.type.value}
            for e in game.logs
        ],
    }


def restore_snapshot(
    snapshot: Dict[str, Any],
    local_player_id: Optional[str] = None,
    view_mode: ViewMode = ViewMode.BOARD,
) -> GameState:
    """Rebuild a GameState from a serialized snapshot.

    Raises:
        KeyError / ValueError: If the snapshot is missing fields or holds unknown enum values
    """
    raw_rules = snapshot["rules"]
    rules = GameRules(
        starting_cash=raw_rules["starting_cash"],
        go_salary=raw_rules["go_salary"],
        parking_bonus=raw_rules["parking_bonus"],
        house_building=HouseBuilding(raw_rules["house_building"]),
        mortgage_interest=raw_rules["mortgage_interest"],
        auction_enabled=raw_rules["auction_enabled"],
        jail_fine=raw_rules.get("jail_fine", 50),
    )

    players = tuple(Player(**raw) for raw in snapshot["players"])
    properties = {
        int(space_id): PropertyState(**raw) for space_id, raw in snapshot["properties"].items()
    }

    auction = None
    if snapshot.get("auction"):
        auction = AuctionState(**snapshot["auction"])

    trade = None
    raw_trade = snapshot.get("active_trade")
    if raw_trade:
        trade = TradeOffer(
            **{
                **raw_trade,
                "offered_properties": tuple(raw_trade["offered_properties"]),
                "requested_properties": tuple(raw_trade["requested_properties"]),
            }
        )

    d1, d2 = snapshot["dice"]
    return GameState(
        room_code=snapshot["room_code"],
        rules=rules,
        players=players,
        current_player_index=snapshot["current_player_index"],
        properties=properties,
        phase=GamePhase(snapshot["phase"]),
        dice=(d1, d2),
        last_roll_was_double=snapshot["last_roll_was_double"],
        consecutive_doubles=snapshot["consecutive_doubles"],
        auction=auction,
        active_trade=trade,
        logs=tuple(
            LogEntry(id=e["id"], timestamp=e["timestamp"], message=e["message"], type=LogType(e["type"]))
            for e in snapshot["logs"]
        ),
        local_player_id=local_player_id,
        view_mode=view_mode,
    )
