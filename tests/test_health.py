"""Smoke tests for the health endpoints."""
from __future__ import annotations

from app import create_app


def test_health_endpoint() -> None:
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    client = app.test_client()

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json == {"status": "ok"}


def test_database_health_endpoint_ok(client) -> None:
    response = client.get("/db-health")

    assert response.status_code == 200
    assert response.json == {"database": "ok"}


def test_cors_headers_for_dashboard(client) -> None:
    response = client.get("/health", headers={"Origin": "http://localhost:3000"})

    assert response.headers.get("Access-Control-Allow-Origin") in {"*", "http://localhost:3000"}
