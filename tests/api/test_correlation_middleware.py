"""Tests for correlation ID middleware.

Verifies:
- X-Request-ID header in responses
- Custom correlation ID echoing
- Debug ID in error responses
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from intake.api.deps import get_request_service
from intake.core.exceptions import NotFoundError
from intake.main import app

pytestmark = pytest.mark.integration


class _MissingService:
    async def get_request(self, request_id: str):
        raise NotFoundError(request_id)


@pytest.fixture
def missing_service():
    app.dependency_overrides[get_request_service] = lambda: _MissingService()
    yield
    app.dependency_overrides.pop(get_request_service, None)


def test_response_includes_correlation_id_header():
    """Every API response should include X-Request-ID header with valid UUID."""
    client = TestClient(app)

    response = client.get("/api/health")

    assert response.status_code == 200
    correlation_id = response.headers["x-request-id"]
    try:
        uuid.UUID(correlation_id)
    except ValueError:
        raise AssertionError(f"X-Request-ID header value '{correlation_id}' is not a valid UUID")


def test_custom_correlation_id_echoed():
    """Client-provided X-Request-ID should be echoed back in response."""
    client = TestClient(app)

    response = client.get("/api/health", headers={"X-Request-ID": "custom-id-123"})

    assert response.headers["x-request-id"] == "custom-id-123"


def test_error_response_includes_debug_id(missing_service):
    """Domain errors carry a debug_id and no internals."""
    client = TestClient(app)

    response = client.get("/api/requests/CRA269999")

    assert response.status_code == 404
    response_data = response.json()
    uuid.UUID(response_data["debug_id"])
    assert response_data["detail"] == "Request 'CRA269999' not found"
    assert "traceback" not in response.text.lower()


def test_different_requests_get_different_ids():
    """Each request should get a unique correlation ID."""
    client = TestClient(app)

    id1 = client.get("/api/health").headers["x-request-id"]
    id2 = client.get("/api/health").headers["x-request-id"]

    assert id1 != id2


def test_unknown_route_uses_error_envelope():
    client = TestClient(app)

    response = client.get("/api/nothing-here", headers={"X-Request-ID": "trace-404"})

    assert response.status_code == 404
    assert response.headers["x-request-id"] == "trace-404"
    uuid.UUID(response.json()["debug_id"])
