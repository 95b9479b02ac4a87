"""Tests for the /health endpoint."""

from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import FakeHTTPClient
from wikiwisch.config import Config
from wikiwisch.storage.schema import init_db
from wikiwisch.storage.state import StateStore
from wikiwisch.web.app import create_app


def _app(db_path, static_dir):
    config = Config(database_path=db_path, static_dir=static_dir)
    return create_app(
        config,
        store=StateStore(db_path),
        http_client=FakeHTTPClient(lambda url, params: None),
    )


class TestHealthEndpoint:
    def test_healthy_response(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        init_db(db_path)
        client = TestClient(_app(db_path, str(tmp_path / "static")))

        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"

    def test_unhealthy_when_db_missing(self, tmp_path):
        db_path = str(tmp_path / "nonexistent" / "missing.db")
        client = TestClient(_app(db_path, str(tmp_path / "static")), raise_server_exceptions=False)

        resp = client.get("/health")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "unhealthy"
        assert data["database"] == "error"
        assert "detail" in data

    def test_health_not_under_api_prefix(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        init_db(db_path)
        client = TestClient(_app(db_path, str(tmp_path / "static")))

        assert client.get("/health").status_code == 200
        resp = client.get("/api/v1/health")
        assert resp.status_code != 200
