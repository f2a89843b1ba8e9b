"""
Tests for health check endpoints.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_readyz_with_google_credentials():
    with (
        patch("app.routes.health.settings.GOOGLE_CLIENT_ID", "id"),
        patch("app.routes.health.settings.GOOGLE_CLIENT_SECRET", "secret"),
        patch("app.routes.health.settings.GOOGLE_REFRESH_TOKEN", "token"),
        patch("app.routes.health.settings.SPREADSHEET_ID", "sheet"),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["configuration"]["issues"] is None


def test_readyz_reports_missing_spreadsheet():
    with (
        patch("app.routes.health.settings.GOOGLE_CLIENT_ID", "id"),
        patch("app.routes.health.settings.GOOGLE_CLIENT_SECRET", "secret"),
        patch("app.routes.health.settings.GOOGLE_REFRESH_TOKEN", "token"),
        patch("app.routes.health.settings.SPREADSHEET_ID", None),
    ):
        response = client.get("/readyz")

    # Should still return 200, but overall_ok should be False
    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["configuration"]["issues"] == ["SPREADSHEET_ID not set"]


def test_cors_preflight_for_allowed_origin():
    response = client.options(
        "/api/fetch-data",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"


def test_cors_preflight_rejects_unknown_origin():
    response = client.options(
        "/api/fetch-data",
        headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 403
