import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from server.app import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _create_room(client: TestClient, host_name: str = "Alice", **rules) -> dict:
    body = {"host_name": host_name}
    if rules:
        body["rules"] = rules
    resp = client.post("/rooms", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_room(client):
    data = _create_room(client)

    assert len(data["room_code"]) == 6
    assert data["rendezvous_id"] == f"monopoly-banker-pro-v2-{data['room_code']}"
    assert isinstance(data["player_id"], str)
    assert data["claim_token"]


def test_room_summary_accepts_lowercase_code(client):
    data = _create_room(client)

    resp = client.get(f"/rooms/{data['room_code'].lower()}")

    assert resp.status_code == 200
    summary = resp.json()
    assert summary["phase"] == "LOBBY"
    assert summary["players"][0]["name"] == "Alice"
    assert summary["players"][0]["id"] == data["player_id"]
    assert summary["current_player_id"] == data["player_id"]


def test_custom_rules(client):
    data = _create_room(client, starting_cash=2000)
    snap = client.get(f"/rooms/{data['room_code']}/snapshot").json()
    assert snap["rules"]["starting_cash"] == 2000
    assert snap["players"][0]["money"] == 2000


def test_unknown_room_is_404(client):
    assert client.get("/rooms/NOPE00").status_code == 404
    assert client.get("/rooms/NOPE00/snapshot").status_code == 404
    assert client.delete("/rooms/NOPE00").status_code == 404


def test_create_room_requires_a_name(client):
    assert client.post("/rooms", json={"host_name": ""}).status_code == 422
    assert client.post("/rooms", json={"host_name": "   "}).status_code == 422


def test_host_name_is_trimmed(client):
    data = _create_room(client, host_name="  Alice  ")
    summary = client.get(f"/rooms/{data['room_code']}").json()
    assert summary["players"][0]["name"] == "Alice"


def test_close_room(client):
    data = _create_room(client)
    assert client.delete(f"/rooms/{data['room_code']}").status_code == 200
    assert client.get(f"/rooms/{data['room_code']}").status_code == 404


def test_websocket_join_and_start(client):
    data = _create_room(client)
    code, host_id = data["room_code"], data["player_id"]
    claim = f"player_id={host_id}&claim_token={data['claim_token']}"

    with client.websocket_connect(f"/ws/rooms/{code}?{claim}") as host_ws:
        first = host_ws.receive_json()
        assert first["type"] == "SYNC"
        assert first["state"]["phase"] == "LOBBY"

        with client.websocket_connect(f"/ws/rooms/{code}") as bob_ws:
            assert bob_ws.receive_json()["type"] == "SYNC"

            bob_ws.send_json({"type": "PLAYER_JOIN", "player": {"id": "bob-1", "name": "Bob"}})
            for ws in (host_ws, bob_ws):
                message = ws.receive_json()
                assert [p["name"] for p in message["state"]["players"]] == ["Alice", "Bob"]

            bob_ws.send_json({"type": "START_GAME"})
            refused = bob_ws.receive_json()
            assert refused["type"] == "ERROR"
            assert refused["code"] == "not_room_owner"

            host_ws.send_json({"type": "START_GAME"})
            for ws in (host_ws, bob_ws):
                assert ws.receive_json()["state"]["phase"] == "ROLL"

            host_ws.send_json({"type": "ACTION_ROLL", "d1": 3, "d2": 4})
            for ws in (host_ws, bob_ws):
                state = ws.receive_json()["state"]
                assert state["players"][0]["position"] == 7
                assert state["phase"] == "ACTION"


def test_websocket_reports_bad_payloads(client):
    data = _create_room(client)

    with client.websocket_connect(f"/ws/rooms/{data['room_code']}") as ws:
        ws.receive_json()
        ws.send_text("not json")
        message = ws.receive_json()
        assert message["type"] == "ERROR"
        assert message["code"] == "invalid_message"

        ws.send_json({"type": "ACTION_ROLL", "d1": 1, "d2": 2})
        assert ws.receive_json()["code"] == "not_joined"


def test_websocket_unknown_room_closes_4404(client):
    with client.websocket_connect("/ws/rooms/NOPE00") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 4404


def test_websocket_claim_requires_the_token(client):
    data = _create_room(client)
    code, host_id = data["room_code"], data["player_id"]

    for query in (f"player_id={host_id}", f"player_id={host_id}&claim_token=guessed"):
        with client.websocket_connect(f"/ws/rooms/{code}?{query}") as ws:
            refused = ws.receive_json()
            assert refused["type"] == "ERROR"
            assert refused["code"] == "claim_refused"
            assert ws.receive_json()["type"] == "SYNC"

            ws.send_json({"type": "START_GAME"})
            assert ws.receive_json()["code"] == "not_joined"

    assert client.get(f"/rooms/{code}").json()["phase"] == "LOBBY"


def test_websocket_claim_is_held_by_one_connection(client):
    data = _create_room(client)
    claim = f"player_id={data['player_id']}&claim_token={data['claim_token']}"

    with client.websocket_connect(f"/ws/rooms/{data['room_code']}?{claim}") as host_ws:
        assert host_ws.receive_json()["type"] == "SYNC"

        with client.websocket_connect(f"/ws/rooms/{data['room_code']}?{claim}") as copy_ws:
            assert copy_ws.receive_json()["code"] == "claim_refused"


def test_websocket_rejects_binary_frames(client):
    data = _create_room(client)

    with client.websocket_connect(f"/ws/rooms/{data['room_code']}") as ws:
        ws.receive_json()
        ws.send_bytes(b"\x00\x01")
        message = ws.receive_json()
        assert message["type"] == "ERROR"
        assert message["code"] == "invalid_message"

        ws.send_json({"type": "PLAYER_JOIN", "player": {"id": "bob-1", "name": "Bob"}})
        assert ws.receive_json()["type"] == "SYNC"
