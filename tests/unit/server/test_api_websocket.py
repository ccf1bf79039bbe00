"""Tests for the push-style WebSocket endpoint."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketDisconnect

from tilbot.config.loader import ProjectLoader
from tilbot.runtime.registry import SessionRegistry
from tilbot.server.api import create_app
from tests.factories import connector, fast_settings, make_document, text_block


@pytest.fixture
def on_log() -> MagicMock:
    return MagicMock()


@pytest.fixture
def registry(pick_document, on_log) -> SessionRegistry:
    return SessionRegistry(
        ProjectLoader.parse(pick_document), settings=fast_settings(), on_log=on_log
    )


@pytest.fixture
def client(registry):
    with TestClient(create_app(registry)) as test_client:
        yield test_client


def test_first_block_is_pushed_on_connect(client):
    with client.websocket_connect("/ws?session_id=abc") as ws:
        frame = ws.receive_json()

    assert frame == {
        "event": "bot message",
        "data": {"type": "MC", "content": "Pick", "params": {"options": ["Yes", "No"]}},
    }


def test_user_message_gets_reply(client):
    # Arrange
    with client.websocket_connect("/ws?session_id=abc") as ws:
        ws.receive_json()

        # Act
        ws.send_json({"event": "user_message", "data": "Yes"})
        frame = ws.receive_json()

    # Assert
    assert frame["event"] == "bot message"
    assert frame["data"]["content"] == "You said yes"


def test_log_and_unknown_frames_do_not_break_session(client, on_log):
    with client.websocket_connect("/ws?session_id=abc") as ws:
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json({"data": "no event"})
        ws.send_json({"event": "typing"})
        ws.send_json({"event": "message_sent"})
        ws.send_json({"event": "log", "data": {"clicked": "Yes"}})
        ws.send_json({"event": "user_message", "data": "No"})
        frame = ws.receive_json()

    assert frame["data"]["content"] == "You said no"
    on_log.assert_called_once_with("abc", {"clicked": "Yes"})


@pytest.mark.parametrize("ack", ["message sent", "message_sent"])
def test_display_acknowledgement_is_recognised(client, ack):
    with patch("tilbot.server.api.logger") as api_logger:
        with client.websocket_connect("/ws?session_id=abc") as ws:
            ws.receive_json()
            ws.send_json({"event": ack})
            ws.send_json({"event": "user_message", "data": "Yes"})
            frame = ws.receive_json()

    assert frame["data"]["content"] == "You said yes"
    api_logger.warning.assert_not_called()


def test_duplicate_session_is_refused(client):
    client.post("/sessions", json={"session_id": "abc"})

    with client.websocket_connect("/ws?session_id=abc") as ws:
        frame = ws.receive_json()

    assert frame["event"] == "error"
    assert frame["data"]["error"] == "SessionExistsError"


def test_resolution_failure_is_pushed_as_error():
    project = ProjectLoader.parse(make_document({"1": text_block("Hi", [connector("go", 9)])}))
    registry = SessionRegistry(project, settings=fast_settings())

    with TestClient(create_app(registry)) as client:
        with client.websocket_connect("/ws?session_id=abc") as ws:
            ws.receive_json()
            ws.send_json({"event": "user_message", "data": "go"})
            frame = ws.receive_json()

    assert frame["event"] == "error"
    assert frame["data"]["error"] == "GraphResolutionError"
    assert "9" not in frame["data"]["message"]


def test_refused_without_project(tmp_path, monkeypatch):
    monkeypatch.delenv("TILBOT_CONFIG_PATH", raising=False)
    monkeypatch.chdir(tmp_path)

    with TestClient(create_app()) as client:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws"):
                pass

    assert exc_info.value.code == 1013
