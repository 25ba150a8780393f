"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_readyz_endpoint_healthy():
    """Test readiness endpoint when Neo4j answers."""
    with (
        patch(
            "app.routes.health.neo4j_health_check",
            AsyncMock(return_value={"healthy": True, "service": "neo4j", "database": "neo4j"}),
        ),
        patch("app.routes.health.settings.NEO4J_PASSWORD", "test-password"),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["neo4j"]["ok"] is True
    assert isinstance(data["checks"]["neo4j"]["latency_ms"], (int, float))


def test_readyz_endpoint_neo4j_unhealthy():
    """Test readiness endpoint when Neo4j is down."""
    with (
        patch(
            "app.routes.health.neo4j_health_check",
            AsyncMock(
                return_value={
                    "healthy": False,
                    "service": "neo4j",
                    "error": "Connection refused",
                    "error_type": "ServiceUnavailable",
                }
            ),
        ),
        patch("app.routes.health.settings.NEO4J_PASSWORD", "test-password"),
    ):
        response = client.get("/readyz")

    assert response.status_code == 503
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["neo4j"]["error"] == "Connection refused"
    assert data["checks"]["neo4j"]["error_type"] == "ServiceUnavailable"


def test_readyz_endpoint_missing_password():
    """Test readiness endpoint when Neo4j credentials are not configured."""
    with (
        patch(
            "app.routes.health.neo4j_health_check",
            AsyncMock(return_value={"healthy": True, "service": "neo4j"}),
        ),
        patch("app.routes.health.settings.NEO4J_PASSWORD", None),
    ):
        response = client.get("/readyz")

    assert response.status_code == 503
    assert response.json()["checks"]["configuration"]["ok"] is False
