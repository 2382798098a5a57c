import pytest
from fastapi.testclient import TestClient

from wavelength.application import app
from wavelength.runtime_constants import SCALES


@pytest.fixture
def client():
    return TestClient(app)


def test_root_reports_service(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "service": "wavelength-backend"}


def test_health_summary(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert isinstance(body["activeRooms"], int)
    assert set(body["websocket"]) == {"activeConnections", "peakConnections", "connectAttempts"}


def test_ws_stats_shape(client):
    body = client.get("/api/ws-stats").json()
    assert {"generatedAt", "activeRooms", "stats", "rooms"} <= set(body)
    assert "sendFailures" in body["stats"]


def test_unknown_room_snapshot_is_404(client):
    response = client.get("/api/rooms/NOPE404")
    assert response.status_code == 404


def test_scale_catalog(client):
    body = client.get("/api/scales").json()
    assert body["count"] == len(SCALES)
    assert body["scales"][0]["id"] == SCALES[0]["id"]
    assert {"id", "left", "right"} <= set(body["scales"][0])


def test_websocket_join_and_snapshot(client):
    with client.websocket_connect("/api/ws") as ws:
        connected = ws.receive_json()
        assert connected["type"] == "connected"
        peer_id = connected["peerId"]

        ws.send_json({"type": "room:join", "roomCode": "apiroom", "name": "Ana"})
        state = ws.receive_json()
        assert state["type"] == "room:state"
        assert state["roomCode"] == "APIROOM"
        assert state["hostId"] == peer_id
        assert state["players"] == [{"id": peer_id, "name": "Ana"}]

        snapshot = client.get("/api/rooms/apiroom")
        assert snapshot.status_code == 200
        body = snapshot.json()
        assert body["roomCode"] == "APIROOM"
        assert body["phase"] == "lobby"
        assert "type" not in body


def test_websocket_ping_and_garbage_frames(client):
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["type"] == "connected"
        ws.send_text("not json")
        ws.send_json(["not", "an", "object"])
        ws.send_json({"type": "ping"})
        pong = ws.receive_json()
        assert pong["type"] == "pong"
        assert pong["serverTime"] > 0


def test_websocket_survives_oversized_number_frame(client):
    with client.websocket_connect("/api/ws") as ws:
        assert ws.receive_json()["type"] == "connected"
        ws.send_text('{"type": "noop", "pad": ' + "9" * 5000 + "}")
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"
