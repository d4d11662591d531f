"""Tests for the /api endpoints.

All tests run the FastAPI app through ``TestClient`` against a store backed
by a file under ``tmp_path``.  No network is used.
"""

from __future__ import annotations

import json
import math
import sqlite3
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from atlas.api.app import create_app
from atlas.config import settings
from atlas.db import GraphStore
from atlas.db import store as store_module


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store(tmp_path: Path):
    graph_store = GraphStore()
    graph_store.initialize(database_path=tmp_path / "graph.db", seed_with_initial_data=False)
    yield graph_store
    graph_store.close()


@pytest.fixture()
def client(store: GraphStore):
    """TestClient wired to the already-open test store."""
    app = create_app(store=store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


_PAYLOAD = {
    "version": 1,
    "exportedAt": "2024-06-01T10:00:00+00:00",
    "domains": [
        {
            "id": "platform",
            "name": "Platform",
            "description": "Shared services",
            "children": [{"id": "platform-data", "name": "Data"}],
        }
    ],
    "modules": [
        {
            "id": "module-ingest",
            "name": "Ingest",
            "domains": ["platform-data"],
            "dependencies": [],
            "produces": ["artifact-raw"],
            "dataIn": [],
            "metrics": {"tests": 3, "coverage": 40, "automationRate": 10},
        },
        {
            "id": "module-report",
            "name": "Report",
            "domains": ["platform"],
            "dependencies": ["module-ingest"],
            "produces": [],
            "dataIn": [{"id": "in-1", "label": "Raw", "sourceId": "artifact-raw"}],
        },
    ],
    "artifacts": [
        {"id": "artifact-raw", "name": "Raw feed", "producedBy": "module-ingest", "consumerIds": []}
    ],
    "layout": {"nodes": {"module-ingest": {"x": 5, "y": 6}}},
}


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestHealth:
    def test_health_ok(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestReadGraph:
    def test_empty_graph(self, client: TestClient) -> None:
        resp = client.get("/api/graph")
        assert resp.status_code == 200
        data = resp.json()
        assert data["version"] == 1
        assert data["domains"] == []
        assert data["modules"] == []
        assert data["artifacts"] == []
        assert "layout" not in data
        assert "exportedAt" not in data

    def test_closed_store_returns_500(self, client: TestClient, store: GraphStore) -> None:
        store.close()
        resp = client.get("/api/graph")
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to load graph data."}

    def test_cors_allows_any_origin(self, client: TestClient) -> None:
        resp = client.get("/api/graph", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["access-control-allow-origin"] == "*"


class TestWriteGraph:
    def test_post_then_get_round_trips(self, client: TestClient) -> None:
        resp = client.post("/api/graph", json=_PAYLOAD)
        assert resp.status_code == 204
        assert resp.content == b""

        data = client.get("/api/graph").json()
        assert data == _PAYLOAD

    def test_post_persists_to_store(self, client: TestClient, store: GraphStore) -> None:
        client.post("/api/graph", json=_PAYLOAD)
        snapshot = store.load_snapshot()
        assert [m["id"] for m in snapshot.modules] == ["module-ingest", "module-report"]

    def test_invalid_layout_entries_are_dropped(self, client: TestClient) -> None:
        payload = dict(_PAYLOAD, layout={"nodes": {"a": {"x": "left", "y": 1}, "b": {"x": 1, "y": 2}}})
        assert client.post("/api/graph", json=payload).status_code == 204
        assert client.get("/api/graph").json()["layout"] == {"nodes": {"b": {"x": 1, "y": 2}}}

    def test_nan_in_raw_body_is_sanitized(self, client: TestClient) -> None:
        body = json.dumps(
            {"domains": [], "modules": [], "artifacts": [], "layout": {"nodes": {"a": {"x": math.nan, "y": 1}}}}
        )
        resp = client.post("/api/graph", content=body, headers={"Content-Type": "application/json"})
        assert resp.status_code == 204
        assert "layout" not in client.get("/api/graph").json()

    @pytest.mark.parametrize(
        "payload",
        [{}, {"domains": [], "modules": []}, {"domains": {}, "modules": [], "artifacts": []}, []],
    )
    def test_rejects_bad_shape(self, client: TestClient, payload) -> None:
        resp = client.post("/api/graph", json=payload)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid graph data format."}

    def test_rejects_invalid_json(self, client: TestClient) -> None:
        resp = client.post("/api/graph", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert "message" in resp.json()

    def test_rejects_oversized_body(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "max_body_bytes", 32)
        resp = client.post("/api/graph", json=_PAYLOAD)
        assert resp.status_code == 413
        assert resp.json() == {"message": "Graph payload is too large."}

    def test_write_failure_returns_500_and_keeps_data(self, client: TestClient) -> None:
        client.post("/api/graph", json=_PAYLOAD)
        broken = dict(_PAYLOAD, modules=[{"id": "dup"}, {"id": "dup"}])
        resp = client.post("/api/graph", json=broken)
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to save graph data."}
        assert client.get("/api/graph").json()["modules"] == _PAYLOAD["modules"]


class TestStoreFailures:
    def test_corrupt_record_returns_json_500(
        self, client: TestClient, store: GraphStore, tmp_path: Path
    ) -> None:
        client.post("/api/graph", json=_PAYLOAD)
        db_path = tmp_path / "graph.db"
        store.close()
        conn = sqlite3.connect(str(db_path))
        with conn:
            conn.execute("UPDATE modules SET data = ?", ("{broken",))
        conn.close()
        store.initialize(database_path=db_path, seed_with_initial_data=False)

        for url in ("/api/graph", "/api/graph/links"):
            resp = client.get(url)
            assert resp.status_code == 500
            assert resp.json() == {"message": "Failed to load graph data."}

    def test_flush_failure_returns_json_500(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        client.post("/api/graph", json=_PAYLOAD)

        def _failing_flush(conn, path):
            raise OSError("No space left on device")

        monkeypatch.setattr(store_module, "flush_database", _failing_flush)
        resp = client.post("/api/graph", json=dict(_PAYLOAD, modules=[]))
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to save graph data."}

        monkeypatch.undo()
        assert client.get("/api/graph").json()["modules"] == _PAYLOAD["modules"]


class TestLinks:
    def test_links_follow_modules(self, client: TestClient) -> None:
        client.post("/api/graph", json=_PAYLOAD)
        resp = client.get("/api/graph/links")
        assert resp.status_code == 200
        assert resp.json() == [
            {"source": "module-ingest", "target": "platform-data", "type": "domain"},
            {"source": "module-ingest", "target": "artifact-raw", "type": "produces"},
            {"source": "module-report", "target": "platform", "type": "domain"},
            {"source": "module-report", "target": "module-ingest", "type": "dependency"},
            {"source": "artifact-raw", "target": "module-report", "type": "consumes"},
        ]


class TestLifespan:
    def test_app_owns_store_from_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        db_path = tmp_path / "owned" / "graph.db"
        monkeypatch.setattr(settings, "db_path_override", db_path)
        monkeypatch.setattr(settings, "seed_with_initial_data", True)

        app = create_app()
        with TestClient(app) as c:
            data = c.get("/api/graph").json()
            store = c.app.state.store
            assert store.is_open

        assert len(data["modules"]) > 0
        assert db_path.is_file()
        assert not store.is_open
