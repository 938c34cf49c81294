"""Tests for the coverage API endpoints."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from covermap.dependencies import get_coverage_service, get_coverage_store, get_settings
from covermap.engine.service import CoverageService
from covermap.main import create_app
from covermap.precompute.store import CoverageStore
from tests.conftest import SERVICE_URL, FakeArcGIS, make_record, make_settings


class Harness:
    def __init__(self, tmp_path, fake: FakeArcGIS) -> None:
        self.fake = fake
        self.catalog_path = tmp_path / "catalog.json"
        self.catalog_path.write_text(json.dumps({"datasets": [
            {"id": "parcels", "public_web_service": SERVICE_URL, "geometry_type": "POLYGON"},
            {"id": "budget", "geometry_type": "TABLE"},
        ]}), encoding="utf-8")
        self.settings = make_settings(
            catalog_path=str(self.catalog_path),
            coverage_store_path=str(tmp_path / "coverage.json"),
        )
        self.service = CoverageService(self.settings, client_factory=fake.client_factory())
        self.store = CoverageStore(self.settings.coverage_store_path)

        app = create_app()
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_coverage_service] = lambda: self.service
        app.dependency_overrides[get_coverage_store] = lambda: self.store
        self.client = TestClient(app)


@pytest.fixture
def harness(tmp_path) -> Harness:
    return Harness(tmp_path, FakeArcGIS(counts={"CA": 10, "TX": 0, "NY": 2}))


def _events(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


def test_health(harness):
    data = harness.client.get("/api/health").json()
    assert data["status"] == "ok"
    assert data["regions_cached"] == 0
    assert data["analyses_cached"] == 0


def test_health_after_analysis(harness):
    harness.client.post("/api/coverage", json={"service_url": SERVICE_URL})
    data = harness.client.get("/api/health").json()
    assert data["regions_cached"] == 3
    assert data["analyses_cached"] == 1


# ---------------------------------------------------------------------------
# POST /api/coverage
# ---------------------------------------------------------------------------


def test_coverage(harness):
    response = harness.client.post("/api/coverage", json={"service_url": SERVICE_URL, "layer_id": 0})
    assert response.status_code == 200
    data = response.json()
    assert data["summary"]["states_with_data"] == 2
    assert data["summary"]["total_features"] == 12
    assert data["status"] == "2 of 3 states with data · 12 intersections"
    assert data["svg"].startswith("<svg")
    assert data["cached"] is False
    assert data["precomputed"] is False


def test_coverage_cached_on_repeat(harness):
    harness.client.post("/api/coverage", json={"service_url": SERVICE_URL})
    data = harness.client.post("/api/coverage", json={"service_url": f"{SERVICE_URL}/0"}).json()
    assert data["cached"] is True
    assert harness.fake.query_calls == 3


def test_coverage_invalid_url(harness):
    response = harness.client.post("/api/coverage", json={"service_url": "https://example.com/data.csv"})
    assert response.status_code == 422
    assert "ArcGIS REST" in response.json()["detail"]


def test_coverage_boundary_failure(tmp_path):
    harness = Harness(tmp_path, FakeArcGIS(boundary=500))
    response = harness.client.post("/api/coverage", json={"service_url": SERVICE_URL})
    assert response.status_code == 502
    assert response.json()["detail"] == "Coverage analysis unavailable"


# ---------------------------------------------------------------------------
# POST /api/coverage/stream
# ---------------------------------------------------------------------------


def test_coverage_stream(harness):
    response = harness.client.post("/api/coverage/stream", json={"service_url": SERVICE_URL})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = _events(response.text)
    names = [name for name, _ in events]
    assert names == ["progress", "progress", "progress", "progress", "result", "done"]
    assert events[0][1] == {"type": "progress", "completed": 0, "total": 3}
    assert events[3][1] == {"type": "progress", "completed": 3, "total": 3}
    assert events[4][1]["summary"]["total_features"] == 12


def test_coverage_stream_error(harness):
    response = harness.client.post("/api/coverage/stream", json={"service_url": ""})
    events = _events(response.text)
    assert events[0][0] == "error"
    assert "No public web service URL" in events[0][1]["message"]


# ---------------------------------------------------------------------------
# GET /api/datasets/{id}/coverage
# ---------------------------------------------------------------------------


def test_dataset_coverage_live(harness):
    data = harness.client.get("/api/datasets/parcels/coverage").json()
    assert data["precomputed"] is False
    assert data["summary"]["total_features"] == 12


def test_dataset_coverage_precomputed(harness):
    harness.store.save("parcels", make_record({"CA": 5}))
    data = harness.client.get("/api/datasets/parcels/coverage").json()
    assert data["precomputed"] is True
    assert data["status"].endswith("(pre-computed Mar 9, 2025)")
    assert harness.fake.query_calls == 0


def test_dataset_unknown(harness):
    assert harness.client.get("/api/datasets/nope/coverage").status_code == 404


def test_dataset_without_service(harness):
    response = harness.client.get("/api/datasets/budget/coverage")
    assert response.status_code == 422
    assert "No public web service URL" in response.json()["detail"]
