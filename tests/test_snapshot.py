import json
from dataclasses import replace

from banker.game import reduce
from banker.protocol import StartAuction
from banker.snapshot import restore_snapshot, serialize_snapshot
from banker.state import GamePhase, ViewMode


def test_basic_snapshot_structure(two_player_game):
    snap = serialize_snapshot(two_player_game)

    assert snap["room_code"] == "TEST01"
    assert snap["phase"] == "ROLL"
    assert snap["dice"] == [0, 0]
    assert snap["rules"]["house_building"] == "even"
    assert len(snap["players"]) == 2
    assert set(snap["players"][0]) == {
        "id",
        "name",
        "color",
        "money",
        "position",
        "is_in_jail",
        "jail_turns",
        "get_out_of_jail_free_cards",
    }
    assert snap["logs"][-1]["type"] == "ALERT"


def test_local_fields_are_not_replicated(two_player_game):
    state = replace(two_player_game, local_player_id="p1", view_mode=ViewMode.PLAYER_WALLET)
    snap = serialize_snapshot(state)
    assert "local_player_id" not in snap
    assert "view_mode" not in snap


def test_snapshot_is_json_safe(two_player_game, landed, own):
    state = reduce(landed(own(two_player_game, "p1", 3, houses=2), 1), StartAuction())
    snap = serialize_snapshot(state)

    decoded = json.loads(json.dumps(snap))

    assert decoded["properties"] == {"3": {"owner_id": "p1", "houses": 2, "is_mortgaged": False}}
    assert decoded["auction"] == {"active": True, "property_id": 1}


def test_restore_rebuilds_state_with_local_fields(two_player_game, landed, own):
    state = reduce(landed(own(two_player_game, "p1", 3, houses=2), 1), StartAuction())
    payload = json.loads(json.dumps(serialize_snapshot(state)))

    restored = restore_snapshot(payload, local_player_id="p1", view_mode=ViewMode.PLAYER_WALLET)

    assert restored.local_player_id == "p1"
    assert restored.view_mode == ViewMode.PLAYER_WALLET
    assert restored.phase == GamePhase.AUCTION
    assert restored.properties[3].houses == 2
    assert replace(restored, local_player_id=None, view_mode=ViewMode.BOARD) == state
