"""
Tests for the session service: SessionManager directly and the FastAPI app
through TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from eduspark_core import DiagramFormatError
from eduspark_server.main import app
from eduspark_server.session_manager import (
    SessionLimitError,
    SessionManager,
    SessionNotFoundError,
    session_manager,
)
from eduspark_server.settings import Settings


@pytest.fixture
def manager(clock):
    return SessionManager(Settings(max_sessions=2), call_later=clock.call_later)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    session_manager.close_all()


class TestSessionManager:
    """Session lifecycle and event forwarding"""

    def test_create_and_close(self, manager, concept_map_data):
        changes = []
        manager.on_change(lambda sid, reason: changes.append(reason))
        session = manager.create_session(concept_map_data)
        assert session.id.startswith("s")
        assert manager.session_count == 1
        assert session.to_summary()["connectors"] == 2

        assert manager.close_session(session.id) is True
        assert manager.close_session(session.id) is False
        assert changes == ["created", "closed"]
        assert session.window.listener_count() == 0

    def test_session_limit(self, manager, concept_map_data):
        manager.create_session(concept_map_data)
        manager.create_session(concept_map_data)
        with pytest.raises(SessionLimitError, match="limit"):
            manager.create_session(concept_map_data)

    def test_bad_payload(self, manager):
        with pytest.raises(DiagramFormatError):
            manager.create_session({"nodes": "nope"})

    def test_unplaceable_node_is_rejected_before_mounting(self, manager, flowchart_data):
        flowchart_data["nodes"][0]["position"]["left"] = "auto"
        with pytest.raises(DiagramFormatError):
            manager.create_session(flowchart_data)
        assert manager.session_count == 0

    def test_unknown_session(self, manager):
        assert manager.get_session("missing") is None
        with pytest.raises(SessionNotFoundError):
            manager.resize("missing", 100, 100)

    def test_pointer_gesture_moves_node(self, manager, flowchart_data):
        session = manager.create_session(flowchart_data)
        manager.pointer(session.id, "pointerdown", 50, 25, node_id="A")
        manager.pointer(session.id, "pointermove", 350, 25)
        manager.pointer(session.id, "pointerup", 350, 25)
        path = session.renderer.connectors[0].path
        assert path.start.as_tuple() == (350, 50)

    def test_pointer_validation(self, manager, flowchart_data):
        session = manager.create_session(flowchart_data)
        with pytest.raises(ValueError):
            manager.pointer(session.id, "pointerdown", 0, 0, node_id="ghost")
        with pytest.raises(ValueError):
            manager.pointer(session.id, "wheel", 0, 0)

    def test_redraws_are_reported(self, manager, flowchart_data):
        changes = []
        manager.on_change(lambda sid, reason: changes.append(reason))
        session = manager.create_session(flowchart_data)
        manager.move_node(session.id, "B", 400, 400)
        assert "redrawn" in changes

    def test_failing_callback_does_not_break_others(self, manager, flowchart_data):
        seen = []

        def broken(sid, reason):
            raise RuntimeError("boom")

        manager.on_change(broken)
        manager.on_change(lambda sid, reason: seen.append(reason))
        manager.create_session(flowchart_data)
        assert seen == ["created"]

    def test_fullscreen_uses_deferred_redraw(self, manager, mind_map_data, clock):
        session = manager.create_session(mind_map_data)
        manager.set_fullscreen(session.id, True)
        assert session.to_state()["fullscreen"] is True
        assert clock.run_pending() == 1
        manager.set_fullscreen(session.id, False)
        assert session.to_state()["fullscreen"] is False

    def test_validate_and_svg(self, manager, concept_map_data):
        concept_map_data["connections"].append({"from": "p", "to": "ghost"})
        session = manager.create_session(concept_map_data)
        report = manager.validate(session.id)
        assert report["summary"]["errors"] == 1
        assert "<svg" in manager.render_svg(session.id)


class TestApi:
    """HTTP and WebSocket surface"""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_session_roundtrip(self, client, flowchart_data):
        response = client.post("/api/sessions", json={"diagram": flowchart_data})
        assert response.status_code == 200
        session = response.json()["session"]
        session_id = session["id"]
        assert session["type"] == "flowchart"
        assert session["connectors"][0]["path"]["points"][0] == [50, 50]

        listed = client.get("/api/sessions").json()["sessions"]
        assert [s["id"] for s in listed] == [session_id]

        moved = client.post(f"/api/sessions/{session_id}/nodes/A/move", json={"left": 300, "top": 0})
        assert moved.status_code == 200
        assert moved.json()["session"]["connectors"][0]["path"]["points"][0] == [350, 50]

        svg = client.get(f"/api/sessions/{session_id}/svg")
        assert svg.headers["content-type"].startswith("image/svg+xml")
        assert "<svg" in svg.text

        assert client.delete(f"/api/sessions/{session_id}").json() == {"success": True}
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_pointer_endpoint(self, client, flowchart_data):
        session_id = client.post("/api/sessions", json={"diagram": flowchart_data}).json()["session"]["id"]
        base = f"/api/sessions/{session_id}/pointer"
        assert client.post(base, json={"type": "pointerdown", "x": 50, "y": 225, "node_id": "B"}).status_code == 200
        client.post(base, json={"type": "pointermove", "x": 650, "y": 425})
        state = client.post(base, json={"type": "pointerup", "x": 650, "y": 425}).json()["session"]
        node = next(n for n in state["nodes"] if n["id"] == "B")
        assert (node["left"], node["top"]) == (600, 400)
        assert client.post(base, json={"type": "pointerdown", "x": 0, "y": 0, "node_id": "zz"}).status_code == 400

    def test_resize_and_fullscreen(self, client, mind_map_data):
        response = client.post("/api/sessions", json={
            "diagram": mind_map_data, "viewport_width": 900, "viewport_height": 700,
        })
        session_id = response.json()["session"]["id"]
        assert response.json()["session"]["container"]["width"] == 900

        state = client.post(f"/api/sessions/{session_id}/resize", json={"width": 1000, "height": 700}).json()
        assert state["session"]["container"]["width"] == 1000

        state = client.post(f"/api/sessions/{session_id}/fullscreen", json={"enabled": True}).json()
        assert state["session"]["fullscreen"] is True

    def test_bad_requests(self, client):
        assert client.post("/api/sessions", json={"diagram": {"title": "?"}}).status_code == 400
        assert client.get("/api/sessions/nope/svg").status_code == 404
        assert client.post("/api/sessions/nope/resize", json={"width": 10, "height": 10}).status_code == 404
        assert client.post("/api/sessions/nope/resize", json={"width": 0, "height": 10}).status_code == 422

    def test_bad_position_is_a_bad_request(self, client, flowchart_data):
        flowchart_data["nodes"][1]["position"]["top"] = "1em"
        response = client.post("/api/sessions", json={"diagram": flowchart_data})
        assert response.status_code == 400
        assert "flowchart-data" in response.json()["detail"]
        assert client.get("/api/sessions").json()["sessions"] == []
        assert client.post("/api/validate", json={"diagram": flowchart_data}).status_code == 400

    def test_static_view_is_a_bad_request(self, client):
        payload = {"diagram": {"type": "timeline-data", "title": "T", "events": []}}
        assert client.post("/api/sessions", json=payload).status_code == 400

    def test_session_limit_is_a_conflict(self, client, concept_map_data, monkeypatch):
        monkeypatch.setattr(session_manager._settings, "max_sessions", 1)
        assert client.post("/api/sessions", json={"diagram": concept_map_data}).status_code == 200
        response = client.post("/api/sessions", json={"diagram": concept_map_data})
        assert response.status_code == 409

    def test_validate_without_session(self, client, concept_map_data):
        concept_map_data["connections"].append({"from": "p", "to": "p"})
        response = client.post("/api/validate", json={"diagram": concept_map_data})
        body = response.json()
        assert body["summary"]["warnings"] == 1
        assert body["summary"]["valid"] is True

    def test_enums(self, client):
        body = client.get("/api/enums/types").json()
        assert "flowchart-data" in body["diagram_types"]
        assert body["flow_kinds"] == ["start-end", "process", "decision"]

    def test_websocket_ping(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}
