"""Tests for the REST session endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tilbot.config.loader import ProjectLoader
from tilbot.runtime.registry import SessionRegistry
from tilbot.server.api import create_app
from tests.factories import fast_settings


@pytest.fixture
def registry(pick_document) -> SessionRegistry:
    return SessionRegistry(ProjectLoader.parse(pick_document), settings=fast_settings())


@pytest.fixture
def client(registry):
    with TestClient(create_app(registry)) as test_client:
        yield test_client


def open_session(client: TestClient, session_id: str = "abc") -> dict:
    response = client.post("/sessions", json={"session_id": session_id})
    assert response.status_code == 201
    return response.json()


class TestHealthEndpoints:
    """Tests for /health, /ready and /version."""

    def test_health_with_project(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["registry"]["status"] == "healthy"

    def test_ready_with_project(self, client):
        data = client.get("/ready").json()

        assert data["ready"] is True
        assert data["checks"] == {"project": True}

    def test_version_structure(self, client):
        data = client.get("/version").json()

        assert set(data) == {"version", "major", "minor", "patch"}
        assert isinstance(data["major"], int)


class TestSessionLifecycle:
    """Opening, talking to and closing polled sessions."""

    def test_create_session_returns_first_message(self, client):
        data = open_session(client)

        assert data["session_id"] == "abc"
        assert data["state"] == "awaiting_input"
        assert data["current_block_id"] == "1"
        assert data["messages"] == [
            {"type": "MC", "content": "Pick", "params": {"options": ["Yes", "No"]}}
        ]

    def test_create_session_generates_id(self, client):
        response = client.post("/sessions", json={})

        assert response.status_code == 201
        assert response.json()["session_id"]

    def test_duplicate_session_conflicts(self, client):
        open_session(client)

        response = client.post("/sessions", json={"session_id": "abc"})

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "Session already exists."
        assert data["reference"].startswith("ERR-")

    def test_matching_message_transitions(self, client):
        # Arrange
        open_session(client)

        # Act
        response = client.post("/sessions/abc/messages", json={"message": "Yes"})

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["transitioned"] is True
        assert [m["content"] for m in data["messages"]] == ["You said yes"]

    def test_non_matching_message_stalls(self, client):
        open_session(client)

        data = client.post("/sessions/abc/messages", json={"message": "Maybe"}).json()

        assert data["transitioned"] is False
        assert data["messages"] == []
        assert data["state"] == "awaiting_input"

    def test_empty_message_is_rejected(self, client):
        open_session(client)

        response = client.post("/sessions/abc/messages", json={"message": ""})

        assert response.status_code == 422

    def test_get_session_reports_position(self, client):
        open_session(client)
        client.post("/sessions/abc/messages", json={"message": "No"})

        data = client.get("/sessions/abc").json()

        assert data["current_block_id"] == "3"
        assert data["path"] == []
        assert data["messages"] == []

    def test_poll_messages_is_empty_after_drain(self, client):
        open_session(client)

        data = client.get("/sessions/abc/messages").json()

        assert data["messages"] == []

    def test_list_sessions(self, client):
        open_session(client, "a")
        open_session(client, "b")

        data = client.get("/sessions").json()

        assert sorted(data["sessions"]) == ["a", "b"]
        assert data["count"] == 2

    def test_delete_session(self, client, registry):
        open_session(client)

        response = client.delete("/sessions/abc")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "abc" not in registry
        assert client.get("/sessions/abc").status_code == 404

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/sessions/ghost"),
            ("get", "/sessions/ghost/messages"),
            ("delete", "/sessions/ghost"),
        ],
    )
    def test_unknown_session_is_404(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 404
        assert response.json()["error"] == "Session not found."

    def test_message_to_unknown_session_is_404(self, client):
        response = client.post("/sessions/ghost/messages", json={"message": "Yes"})

        assert response.status_code == 404


class TestLifespanConfiguration:
    """Project loading driven by the environment."""

    def test_unconfigured_app_is_unavailable(self, tmp_path, monkeypatch):
        # Arrange
        monkeypatch.delenv("TILBOT_CONFIG_PATH", raising=False)
        monkeypatch.chdir(tmp_path)

        # Act
        with TestClient(create_app()) as client:
            sessions = client.post("/sessions", json={})
            health = client.get("/health").json()
            ready = client.get("/ready").json()

        # Assert
        assert sessions.status_code == 503
        assert health["status"] == "starting"
        assert ready["ready"] is False

    def test_project_loaded_from_config_path(self, project_dir, monkeypatch):
        monkeypatch.setenv("TILBOT_CONFIG_PATH", str(project_dir / "tilbot.yaml"))

        with patch("tilbot.server.api.setup_logging"):
            with TestClient(create_app()) as client:
                ready = client.get("/ready").json()
                data = client.post("/sessions", json={"session_id": "x"}).json()

        assert ready["ready"] is True
        assert data["messages"][0]["content"] == "Pick"

    def test_broken_project_leaves_app_unconfigured(self, project_dir, monkeypatch):
        (project_dir / "project.json").write_text("{}", encoding="utf-8")
        monkeypatch.setenv("TILBOT_CONFIG_PATH", str(project_dir / "tilbot.yaml"))

        with patch("tilbot.server.api.setup_logging"):
            with TestClient(create_app()) as client:
                response = client.get("/sessions")

        assert response.status_code == 503

    def test_shutdown_closes_sessions(self, registry):
        with TestClient(create_app(registry)) as client:
            open_session(client)
            engine = registry.get("abc")

        assert len(registry) == 0
        assert engine.closed
