"""Service shell: banner, health check and the error envelope."""
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

import config
from database import get_db
from main import app


class UnreachableStore:
    def __getitem__(self, name):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")


@pytest.fixture()
def bare_client():
    app.dependency_overrides.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_banner(client):
    body = client.get("/").json()

    assert body["message"] == "ShopLite API is running!"
    assert body["endpoints"]["orders"] == "/api/orders"


def test_health_without_database(client):
    body = client.get("/api/health").json()

    assert body["status"] == "ok"
    assert body["database"] == "disconnected"


def test_unknown_route(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Route not found",
        "path": "/api/nothing-here",
        "method": "GET",
    }


def test_unconfigured_database_is_internal_error(bare_client):
    response = bare_client.get("/api/products")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Database not configured"}


def test_store_failure_includes_detail_outside_production():
    app.dependency_overrides[get_db] = lambda: UnreachableStore()
    try:
        response = TestClient(app).get("/api/products")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Something went wrong!"
    assert "connection refused" in body["message"]


def test_store_failure_hides_detail_in_production(monkeypatch):
    monkeypatch.setattr(config, "IS_PRODUCTION", True)
    app.dependency_overrides[get_db] = lambda: UnreachableStore()
    try:
        response = TestClient(app).get("/api/products")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Something went wrong!"}


def test_cors_preflight_for_dev_origin(client):
    response = client.options(
        "/api/products",
        headers={"Origin": "http://localhost:5500", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5500"
