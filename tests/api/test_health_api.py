"""API tests for the health and root endpoints."""

from unittest.mock import AsyncMock, patch

from visa_assistant.api.v1.endpoints import health


def test_root(test_client):
    response = test_client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"


def test_health_healthy(test_client):
    with patch.object(health.db_client, "health_check", new=AsyncMock(return_value={"status": "healthy", "connected": True})):
        response = test_client.get("/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_health_degraded_when_database_is_down(test_client):
    with patch.object(
        health.db_client,
        "health_check",
        new=AsyncMock(return_value={"status": "unhealthy", "connected": False, "error": "refused"}),
    ):
        response = test_client.get("/health/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["database"]["connected"] is False
