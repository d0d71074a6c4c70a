"""Integration tests for the FastAPI app using TestClient.

The app is built with ``create_app(components=...)`` so the lifespan wires
in a TurnPipeline over the deterministic fakes from tests/conftest.py.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from clarity.main import create_app
from clarity.providers.session.memory_session_store import MemorySessionStore
from clarity.utils.errors import LLMError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture()
def upload_dir(tmp_path: Path, document_reader) -> Path:
    """Upload directory whose leadership.pdf is served by the fake reader."""
    directory = (tmp_path / "uploads").resolve()
    directory.mkdir()
    document_reader.documents[str(directory / "leadership.pdf")] = document_reader.documents[
        "leadership.pdf"
    ]
    return directory


@pytest.fixture()
def client(make_pipeline, progress_tracker, session_store, upload_dir: Path):
    components = {
        "pipeline": make_pipeline(),
        "progress_tracker": progress_tracker,
        "session_store": session_store,
        "upload_dir": upload_dir,
        "provider_registry": {
            "llm": "scripted",
            "embedding": "keyword",
            "web_search": None,
            "available": ["scripted", "keyword"],
        },
    }
    with TestClient(create_app(components=components)) as test_client:
        yield test_client


def _create_session(client: TestClient) -> str:
    response = client.post("/api/v1/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health_reports_providers(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0"
        assert body["providers"]["llm"] == "scripted"
        assert body["providers"]["sessions"] == 0

    def test_health_degraded_without_llm(self, make_pipeline, progress_tracker) -> None:
        components = {
            "pipeline": make_pipeline(),
            "progress_tracker": progress_tracker,
            "session_store": MemorySessionStore(),
            "upload_dir": Path("."),
            "provider_registry": {"llm": None, "embedding": None},
        }
        with TestClient(create_app(components=components)) as test_client:
            assert test_client.get("/api/v1/health").json()["status"] == "degraded"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessions:
    def test_create_and_inspect(self, client: TestClient) -> None:
        session_id = _create_session(client)

        response = client.get(f"/api/v1/sessions/{session_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["session_id"] == session_id
        assert body["documents"] == []
        assert body["total_chunks"] == 0
        assert body["dimension"] is None

    def test_delete_then_not_found(self, client: TestClient) -> None:
        session_id = _create_session(client)

        assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 204
        response = client.get(f"/api/v1/sessions/{session_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "SessionNotFoundError"

    def test_delete_unknown_session(self, client: TestClient) -> None:
        assert client.delete("/api/v1/sessions/nope").status_code == 404


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------


class TestTurns:
    def test_plain_turn(self, client: TestClient) -> None:
        session_id = _create_session(client)

        response = client.post(
            f"/api/v1/sessions/{session_id}/turns",
            json={"messages": [{"role": "user", "content": "How do I delegate?"}]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["content"] == "Here is my advice."
        assert body["sources"] == []
        assert body["steps"] == ["CHECK_ATTACHMENTS", "GENERATE_RESPONSE"]
        assert body["used_document_context"] is False

    def test_turn_with_attachment_indexes_session(
        self, client: TestClient, upload_dir: Path
    ) -> None:
        session_id = _create_session(client)

        response = client.post(
            f"/api/v1/sessions/{session_id}/turns",
            json={
                "messages": [{"role": "user", "content": "Summarize the document"}],
                "attachments": ["leadership.pdf"],
            },
        )

        assert response.status_code == 200
        assert response.json()["used_document_context"] is True
        session = client.get(f"/api/v1/sessions/{session_id}").json()
        assert session["documents"] == [str(upload_dir / "leadership.pdf")]
        assert session["total_chunks"] > 0
        assert session["dimension"] == 6

    @pytest.mark.parametrize(
        "attachment",
        ["../secrets.md", "nested/../../secrets.md", "/etc/hosts.txt"],
    )
    def test_attachment_outside_upload_dir_is_forbidden(
        self, client: TestClient, document_reader, upload_dir: Path, attachment: str
    ) -> None:
        (upload_dir.parent / "secrets.md").write_text("salary bands", encoding="utf-8")
        session_id = _create_session(client)

        response = client.post(
            f"/api/v1/sessions/{session_id}/turns",
            json={
                "messages": [{"role": "user", "content": "Summarize the document"}],
                "attachments": [attachment],
            },
        )

        assert response.status_code == 403
        assert document_reader.reads == []
        session = client.get(f"/api/v1/sessions/{session_id}").json()
        assert session["documents"] == []

    def test_unknown_session_returns_404(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/sessions/missing/turns",
            json={"messages": [{"role": "user", "content": "Hi"}]},
        )
        assert response.status_code == 404

    def test_llm_failure_returns_502(self, client: TestClient, chat_provider) -> None:
        chat_provider.chat = AsyncMock(
            side_effect=LLMError(message="upstream unavailable", provider_name="scripted")
        )
        session_id = _create_session(client)

        response = client.post(
            f"/api/v1/sessions/{session_id}/turns",
            json={"messages": [{"role": "user", "content": "Hi"}]},
        )

        assert response.status_code == 502
        assert response.json() == {"error": "LLMError", "detail": "upstream unavailable"}

    @pytest.mark.parametrize(
        "body",
        [
            {"messages": []},
            {"messages": [{"role": "moderator", "content": "x"}]},
            {},
        ],
    )
    def test_invalid_body_returns_422(self, client: TestClient, body: dict) -> None:
        session_id = _create_session(client)
        response = client.post(f"/api/v1/sessions/{session_id}/turns", json=body)
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


class TestProgressWebSocket:
    def test_initial_snapshot(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/progress/session-42") as websocket:
            assert websocket.receive_json() == {
                "session_id": "session-42",
                "step": "CHECK_ATTACHMENTS",
                "message": "",
            }

    def test_snapshot_reflects_last_turn(self, client: TestClient) -> None:
        session_id = _create_session(client)
        client.post(
            f"/api/v1/sessions/{session_id}/turns",
            json={"messages": [{"role": "user", "content": "Hi"}]},
        )

        with client.websocket_connect(f"/ws/progress/{session_id}") as websocket:
            assert websocket.receive_json() == {
                "session_id": session_id,
                "step": "GENERATE_RESPONSE",
                "message": "Thinking...",
            }
