"""Tests for the conversation, progress and activity endpoints."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app import create_app
from workflows.io.database import _TURN_LOCKS

WELCOME = "Hi! I need a few details so we can get back to you."


@pytest.fixture
def client(tmp_path):
    env = {"FORM_DB_PATH": str(tmp_path / "db.json"), "FORM_PROMPT_IN_START": "true"}
    with patch.dict(os.environ, env, clear=False):
        with TestClient(create_app()) as test_client:
            yield test_client


def _start(client, **body):
    response = client.post("/api/forms/contact/conversations", json=body)
    assert response.status_code == 200
    return response.json()


def _say(client, conversation_id, message):
    return client.post(f"/api/conversations/{conversation_id}/messages", json={"message": message})


class TestConversations:
    """Driving the bundled contact form over HTTP."""

    def test_list_forms(self, client):
        response = client.get("/api/forms")
        assert response.status_code == 200
        assert response.json() == {"forms": ["contact"]}

    def test_start_prompts_first_question(self, client):
        data = _start(client)
        assert data["status"] == "waiting"
        assert data["replies"] == [WELCOME + "\n\nWhat is your name?"]
        assert data["values"] == {}
        assert data["progress"] == {"current_stage": "name", "percentage": 0}

    def test_start_with_entities(self, client):
        data = _start(client, entities=[{"type": "name", "entity": "Ada"}], locale="en-GB")
        assert data["values"] == {"name": "Ada"}
        assert data["replies"] == [WELCOME + "\n\nPlease enter email address"]

        state = client.get(f"/api/conversations/{data['conversation_id']}").json()["form_state"]
        assert state["locale"] == "en-GB"

    def test_full_conversation(self, client):
        conversation_id = _start(client)["conversation_id"]
        for message in ("Ada", "ada@example.com", "email", "skip"):
            response = _say(client, conversation_id, message)
            assert response.status_code == 200
            assert response.json()["status"] == "waiting"

        last = _say(client, conversation_id, "yes").json()
        assert last["status"] == "completed"
        assert conversation_id not in _TURN_LOCKS
        assert last["replies"] == ["Thanks Ada, we will be in touch."]
        assert last["values"] == {
            "name": "Ada",
            "email": "ada@example.com",
            "contact_method": "email",
            "age": None,
        }

        conversation = client.get(f"/api/conversations/{conversation_id}").json()
        assert conversation["status"] == "completed"
        roles = [entry["role"] for entry in conversation["transcript"]]
        assert roles[:3] == ["assistant", "user", "assistant"]
        assert roles.count("user") == 5

    def test_finished_conversation_rejects_messages(self, client):
        conversation_id = _start(client)["conversation_id"]
        assert _say(client, conversation_id, "quit").json()["status"] == "cancelled"

        response = _say(client, conversation_id, "Ada")
        assert response.status_code == 409
        assert conversation_id not in _TURN_LOCKS

    def test_state_survives_between_requests(self, client):
        conversation_id = _start(client)["conversation_id"]
        _say(client, conversation_id, "Ada")
        data = _say(client, conversation_id, "go back").json()
        assert data["replies"] == ["What is your name?"]
        assert data["values"] == {"name": "Ada"}

    def test_unknown_form(self, client):
        assert client.post("/api/forms/nope/conversations", json={}).status_code == 404

    def test_unknown_conversation(self, client):
        assert _say(client, "missing", "hi").status_code == 404
        assert "missing" not in _TURN_LOCKS
        assert client.get("/api/conversations/missing").status_code == 404

    def test_root_endpoint(self, client):
        with patch.dict(os.environ, {"ENV": "prod"}):
            assert TestClient(create_app()).get("/").json() == {"status": "ok"}


class TestProgressAndActivity:

    def test_progress(self, client):
        conversation_id = _start(client)["conversation_id"]
        _say(client, conversation_id, "Ada")

        response = client.get(f"/api/conversations/{conversation_id}/progress")
        assert response.status_code == 200
        data = response.json()
        assert data["current_stage"] == "email"
        assert [s["id"] for s in data["stages"]] == ["name", "email", "contact_method", "age", "confirm_contact"]
        assert data["stages"][0]["status"] == "completed"
        assert data["percentage"] == 20

    def test_activity_granularity(self, client):
        conversation_id = _start(client)["conversation_id"]
        _say(client, conversation_id, "Ada")

        high = client.get(f"/api/conversations/{conversation_id}/activity").json()
        assert [a["title"] for a in high["activities"]] == ["Conversation Started"]
        assert high["has_more"] is False

        detailed = client.get(
            f"/api/conversations/{conversation_id}/activity",
            params={"granularity": "detailed", "limit": 1},
        ).json()
        assert [a["detail"] for a in detailed["activities"]] == ["name: Ada"]
        assert detailed["has_more"] is True

    def test_invalid_query(self, client):
        conversation_id = _start(client)["conversation_id"]
        url = f"/api/conversations/{conversation_id}/activity"
        assert client.get(url, params={"granularity": "everything"}).status_code == 422
        assert client.get(url, params={"limit": 0}).status_code == 422

    def test_unknown_conversation(self, client):
        assert client.get("/api/conversations/missing/progress").status_code == 404
        assert client.get("/api/conversations/missing/activity").status_code == 404
