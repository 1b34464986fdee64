"""Tests for liveness and readiness probes."""

import pytest
from fastapi.testclient import TestClient

from intake.main import app

pytestmark = pytest.mark.integration


def test_health_reports_service():
    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "intake-backend"}


def test_health_returns_503_while_draining():
    app.state.shutting_down = True
    try:
        response = TestClient(app).get("/api/health")
    finally:
        app.state.shutting_down = False

    assert response.status_code == 503
    assert response.json()["status"] == "shutting_down"


def test_ready_degraded_without_storage():
    """Without startup, neither the database nor Redis is available."""
    response = TestClient(app).get("/api/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "degraded", "checks": {"database": False, "redis": False}}
