"""
Integration tests for the session route and the /ws/live endpoint.

Runs the app with its lifespan (memory store) through TestClient.
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from mealth.main import app


@pytest.fixture
def api():
    """A TestClient with the app's lifespan running."""
    with TestClient(app) as client:
        yield client


def _receive_until(ws, predicate, limit=50):
    for _ in range(limit):
        msg = json.loads(ws.receive_text())
        if predicate(msg):
            return msg
    pytest.fail("expected message never arrived")


def _ready(slot):
    return lambda m: m["type"] == "snapshot" and m["slot"] == slot and m["status"] == "ready"


class TestSessionRoute:
    def test_issues_cookie(self, api):
        response = api.post("/api/session")
        assert response.status_code == 200
        body = response.json()
        assert body["anonymous"] is True
        assert api.cookies.get("session")

    def test_resumes_existing_session(self, api):
        first = api.post("/api/session").json()
        second = api.post("/api/session").json()
        assert first["session_id"] == second["session_id"]

    def test_sign_out_clears_cookie(self, api):
        api.post("/api/session")
        response = api.delete("/api/session")
        assert response.status_code == 200
        assert not api.cookies.get("session")

    def test_health(self, api):
        assert api.get("/health").json() == {"status": "ok"}


class TestLiveSocket:
    def test_connect_streams_dashboard(self, api):
        with api.websocket_connect("/ws/live") as ws:
            first = json.loads(ws.receive_text())
            assert first["type"] == "session"
            assert first["view"] == "dashboard"

            goals = _receive_until(ws, _ready("goals"))
            assert goals["items"] == []

    def test_uses_session_cookie(self, api):
        session_id = api.post("/api/session").json()["session_id"]
        with api.websocket_connect("/ws/live") as ws:
            first = json.loads(ws.receive_text())
            assert first["session_id"] == session_id

    def test_action_result_and_snapshot(self, api):
        with api.websocket_connect("/ws/live") as ws:
            _receive_until(ws, _ready("goals"))
            ws.send_text(
                json.dumps({"type": "action", "action": "add_goal", "args": {"title": "Walk"}, "request_id": "r1"})
            )

            result = _receive_until(ws, lambda m: m["type"] == "action.result")
            assert result == {"type": "action.result", "action": "add_goal", "ok": True, "request_id": "r1", "error": None}

            goals = _receive_until(ws, lambda m: m["type"] == "snapshot" and m["slot"] == "goals" and m["items"])
            assert goals["items"][0]["title"] == "Walk"
            assert goals["items"][0]["completed"] is False
            assert goals["items"][0]["id"]

    def test_failed_action_reported(self, api):
        with api.websocket_connect("/ws/live") as ws:
            ws.send_text(json.dumps({"type": "action", "action": "log_mood", "args": {"mood": "ecstatic"}}))
            result = _receive_until(ws, lambda m: m["type"] == "action.result")
            assert result["ok"] is False
            assert "Unknown mood" in result["error"]

    def test_view_switch(self, api):
        with api.websocket_connect("/ws/live") as ws:
            ws.send_text(json.dumps({"type": "view", "view": "coping"}))
            gratitude = _receive_until(ws, _ready("gratitude"))
            assert gratitude["version"] == 1

    def test_blogs_seed_samples(self, api):
        with api.websocket_connect("/ws/live") as ws:
            ws.send_text(json.dumps({"type": "view", "view": "blogs"}))
            articles = _receive_until(ws, lambda m: m["type"] == "snapshot" and len(m.get("items", [])) == 3)
            assert {a["readTime"] for a in articles["items"]} == {"8 min read", "6 min read", "10 min read"}

    def test_unknown_view(self, api):
        with api.websocket_connect("/ws/live") as ws:
            ws.send_text(json.dumps({"type": "view", "view": "settings"}))
            result = _receive_until(ws, lambda m: m["type"] == "action.result")
            assert result["ok"] is False

    def test_unknown_action(self, api):
        with api.websocket_connect("/ws/live") as ws:
            ws.send_text(json.dumps({"type": "action", "action": "launch"}))
            result = _receive_until(ws, lambda m: m["type"] == "action.result")
            assert result["error"] == "Unknown action 'launch'"

    def test_malformed_request(self, api):
        with api.websocket_connect("/ws/live") as ws:
            ws.send_text("{not json")
            result = _receive_until(ws, lambda m: m["type"] == "action.result")
            assert result["action"] == "invalid"
            assert result["ok"] is False
