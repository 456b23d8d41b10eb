"""
WebSocket and HTTP tests against the FastAPI app.
"""

import pytest
from fastapi.testclient import TestClient

from oddtrick_engine.main import create_app
from oddtrick_engine.rules import RuleConfig, rules_for_mode
from oddtrick_engine.settings import ServerSettings


@pytest.fixture
def client():
    app = create_app(ServerSettings(redeal_delay=0))
    with TestClient(app) as test_client:
        yield test_client


def join(ws, room_id, seat, mode=2, **extra):
    ws.send_json({"type": "joinRoom", "roomId": room_id, "seat": seat, "mode": mode, **extra})
    return ws.receive_json()


def test_root_and_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "version" in response.json()

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["rooms"] == 0


def test_unknown_room_is_404(client):
    assert client.get("/rooms/nowhere").status_code == 404


def test_join_and_start(client):
    with client.websocket_connect("/ws") as ws0:
        joined = join(ws0, "duel", 0, name="Alice")
        assert joined["type"] == "joined"
        assert joined["seat"] == 0
        assert joined["roomId"] == "duel"
        assert joined["sessionId"]
        assert joined["occupancy"] == [0]
        assert joined["state"]["phase"] == "waiting"
        assert joined["state"]["players"][0]["name"] == "Alice"

        with client.websocket_connect("/ws") as ws1:
            joined = join(ws1, "duel", 1)
            assert joined["state"]["phase"] == "setup"

            update = ws0.receive_json()
            assert update["type"] == "gameState"
            assert update["occupancy"] == [0, 1]

            info = client.get("/rooms/duel").json()
            assert info["gameMode"] == 2
            assert info["occupancy"] == [0, 1]

            ws0.send_json({"type": "playerAction", "action": {"type": "startGame"}})
            for ws in (ws0, ws1):
                update = ws.receive_json()
                assert update["state"]["phase"] == "bidding"
                assert update["state"]["currentPlayerIndex"] == 1
                assert len(update["state"]["players"][0]["cards"]) == 9

            # Seat 0 is not the first bidder
            ws0.send_json({"type": "playerAction", "action": {"type": "bid", "amount": 2}})
            error = ws0.receive_json()
            assert error["type"] == "error"
            assert error["code"] == "NOT_YOUR_TURN"

            ws1.send_json({"type": "requestState"})
            snapshot = ws1.receive_json()
            assert snapshot["type"] == "gameState"
            assert snapshot["state"]["phase"] == "bidding"


def test_leaving_mid_game_returns_room_to_waiting(client):
    with client.websocket_connect("/ws") as ws0:
        join(ws0, "duel", 0)
        with client.websocket_connect("/ws") as ws1:
            join(ws1, "duel", 1)
            ws0.receive_json()

            ws1.send_json({"type": "playerAction", "action": {"type": "startGame"}})
            ws0.receive_json()
            ws1.receive_json()

            ws1.send_json({"type": "leaveRoom"})
            update = ws0.receive_json()
            assert update["state"]["phase"] == "waiting"
            assert update["occupancy"] == [0]
            assert update["state"]["players"][1]["name"] == "Player 2"


def test_join_errors(client):
    with client.websocket_connect("/ws") as ws0:
        join(ws0, "room", 0, mode=4)

        with client.websocket_connect("/ws") as ws1:
            error = join(ws1, "room", 0, mode=4)
            assert error["type"] == "error"
            assert error["code"] == "SEAT_TAKEN"

            error = join(ws1, "room", 1, mode=2)
            assert error["code"] == "MODE_MISMATCH"

            error = join(ws1, "room", 7, mode=4)
            assert error["code"] == "INVALID_SEAT"

        error = join(ws0, "other", 1, mode=4)
        assert error["code"] == "ACTION_NOT_ALLOWED"


def test_malformed_messages(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("this is not json")
        assert ws.receive_json()["code"] == "MALFORMED_MESSAGE"

        ws.send_json({"type": "teleport"})
        assert ws.receive_json()["code"] == "MALFORMED_MESSAGE"

        ws.send_json({"type": "playerAction", "action": {"type": "bid", "amount": "lots"}})
        assert ws.receive_json()["code"] == "MALFORMED_MESSAGE"


def test_actions_before_joining(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "playerAction", "action": {"type": "startGame"}})
        assert ws.receive_json()["code"] == "ACTION_NOT_ALLOWED"

        ws.send_json({"type": "requestState"})
        assert ws.receive_json()["code"] == "ACTION_NOT_ALLOWED"


def test_settings_from_env():
    settings = ServerSettings.from_env({
        "PORT": "9000",
        "LOG_LEVEL": "DEBUG",
        "RELOAD": "true",
        "REDEAL_DELAY": "0.5",
        "OUTBOX_SIZE": "8",
        "HIDE_OPPONENT_HANDS": "1",
    })
    assert settings.port == 9000
    assert settings.log_level == "debug"
    assert settings.reload
    assert settings.redeal_delay == 0.5
    assert settings.outbox_size == 8
    assert settings.hide_opponent_hands

    defaults = ServerSettings.from_env({})
    assert defaults.port == 8080
    assert not defaults.reload


def test_rules_for_mode():
    rules = rules_for_mode(2)
    assert rules.cards_per_seat == 9
    assert rules.max_bid == 9
    assert rules_for_mode(4, redeal_delay=0).redeal_delay == 0

    with pytest.raises(ValueError):
        rules_for_mode(3)
    with pytest.raises(ValueError):
        RuleConfig(seat_count=4, cards_per_seat=14)
