"""
Tests for the HTTP surface.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app


CONV = "conversation-aaaa"


@pytest.fixture
def client(registry):
    return TestClient(app)


class TestDetectionEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_message_flow(self, client):
        response = client.post(f"/detection/{CONV}/messages", json={"content": "I feel sad."})
        body = response.json()

        assert response.status_code == 200
        assert body["mode"] == "pattern"
        assert body["detected"] == {"emotions": ["Sad"], "parts": [], "needs": []}
        assert body["summaries"][0]["name"] == "Sad"
        assert body["summaries"][0]["frequency"] == 1

        second = client.post(f"/detection/{CONV}/messages", json={"content": "I need rest."}).json()
        assert second["detected"]["needs"] == ["Rest"]
        assert {s["name"]: s["frequency"] for s in second["summaries"]} == {"Sad": 2, "Rest": 1}

        current = client.get(f"/detection/{CONV}").json()
        assert current["detected"]["emotions"] == ["Sad"]

    def test_unknown_mode_is_rejected(self, client):
        response = client.post(f"/detection/{CONV}/messages", json={"content": "hi", "mode": "tarot"})

        assert response.status_code == 422

    def test_missing_session(self, client):
        assert client.get("/detection/nope").status_code == 404
        assert client.delete("/detection/nope").status_code == 404

    def test_reset(self, client):
        client.post(f"/detection/{CONV}/messages", json={"content": "I feel sad."})

        assert client.delete(f"/detection/{CONV}").json() == {"conversation_id": CONV, "reset": True}
        assert client.get(f"/detection/{CONV}").json()["detected"]["emotions"] == []

    def test_manual_items(self, client):
        added = client.post(f"/detection/{CONV}/parts", json={"name": "Inner child"}).json()
        assert added["detected"]["parts"] == ["Inner child"]

        removed = client.request("DELETE", f"/detection/{CONV}/parts", json={"name": "Inner child"}).json()
        assert removed["detected"]["parts"] == []

        assert client.post(f"/detection/{CONV}/moods", json={"name": "x"}).status_code == 422

    def test_save_persists_current_lists(self, client, patched_storage):
        client.post(f"/detection/{CONV}/messages", json={"content": "I feel sad. I need rest."})

        response = client.post(f"/detection/{CONV}/save", params={"user_id": "u"})

        assert response.status_code == 200
        assert response.json()["saved"]["parts"] is None
        rows = patched_storage.tables["detected_emotions"]
        assert rows[0]["emotions"] == [{"name": "Sad", "frequency": 1, "category": "neutral"}]

    def test_save_reports_storage_failures(self, client, patched_storage):
        patched_storage.failing_tables.add("detected_emotions")
        client.post(f"/detection/{CONV}/messages", json={"content": "I feel sad."})

        response = client.post(f"/detection/{CONV}/save", params={"user_id": "u"})

        assert response.status_code == 500
        assert "Failed to save detected emotions" in response.json()["detail"]


class TestComplexEndpoints:

    def test_create_get_update_delete(self, client, patched_storage):
        created = client.post("/complexes", json={"user_id": "u", "name": "Work stress"})
        assert created.status_code == 201
        complex_id = created.json()["id"]

        fetched = client.get(f"/complexes/{complex_id}", params={"user_id": "u"})
        assert fetched.json()["name"] == "Work stress"

        patched = client.patch(f"/complexes/{complex_id}", params={"user_id": "u"}, json={"name": "Work"})
        assert patched.json()["name"] == "Work"

        assert client.delete(f"/complexes/{complex_id}", params={"user_id": "u"}).json()["deleted"]
        assert client.get(f"/complexes/{complex_id}", params={"user_id": "u"}).status_code == 404

    def test_invalid_name_is_bad_request(self, client, patched_storage):
        response = client.post("/complexes", json={"user_id": "u", "name": "x"})

        assert response.status_code == 400
        assert "at least 2 characters" in response.json()["detail"]

    def test_search_and_stats(self, client, patched_storage):
        patched_storage.seed(
            "complexes",
            {"id": "c1", "user_id": "u", "name": "Work", "created_at": "2025-01-01"},
            {"id": "c2", "user_id": "u", "name": "Family", "created_at": "2025-01-02"},
        )

        found = client.get("/complexes", params={"user_id": "u", "q": "fam"}).json()
        stats = client.get("/complexes/stats", params={"user_id": "u"}).json()

        assert [c["id"] for c in found] == ["c2"]
        assert stats["total_complexes"] == 2

    def test_containing(self, client, patched_storage):
        patched_storage.seed("complexes", {"id": "c1", "user_id": "u", "name": "Work", "created_at": "2025-01-01"})
        patched_storage.seed("conversations", {"id": CONV, "user_id": "u", "complex_id": "c1"})

        response = client.post(
            "/complexes/containing",
            json={"user_id": "u", "kind": "needs", "name": "Rest", "conversation_ids": CONV},
        )

        assert [p["id"] for p in response.json()] == ["c1"]


class TestInsightEndpoints:

    def test_linked_and_aggregate(self, client, patched_storage):
        patched_storage.seed(
            "detected_needs",
            {"conversation_id": CONV, "user_id": "u", "needs": [{"name": "Rest"}]},
        )

        linked = client.post("/insights/linked", json={"user_id": "u", "conversation_ids": [CONV]}).json()
        aggregate = client.get("/insights/aggregate", params={"user_id": "u"}).json()

        assert linked["needs"] == [{"name": "Rest", "frequency": 1}]
        assert aggregate["needs"]["counts"] == {"Rest": 1}
        assert aggregate["total_conversations"] == 1

    def test_linked_ignores_malformed_items(self, client, patched_storage):
        patched_storage.seed(
            "detected_parts",
            {"conversation_id": CONV, "user_id": "u", "parts": [{"name": 7}, {"name": "Critic", "frequency": "2"}]},
        )

        response = client.post("/insights/linked", json={"user_id": "u", "conversation_ids": [CONV]})

        assert response.status_code == 200
        assert response.json()["parts"] == [{"name": "Critic", "frequency": 2}]


class TestServerEntryPoint:

    def test_run_serves_the_app_with_configured_address(self, monkeypatch):
        from app import main

        calls = []
        monkeypatch.setattr("app.main.uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))
        monkeypatch.setattr(main.settings, "host", "127.0.0.1")
        monkeypatch.setattr(main.settings, "port", 9000)

        main.run()

        assert calls == [
            ("app.main:app", {"host": "127.0.0.1", "port": 9000, "log_level": main.settings.log_level.lower()})
        ]
