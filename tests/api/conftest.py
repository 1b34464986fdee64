"""API-specific test fixtures."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from intake.api.deps import get_request_service
from intake.api.routes import api_router
from intake.main import register_exception_handlers


@pytest.fixture
def app(service):
    """Test app wired to the per-test service, without the production lifespan."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    app.dependency_overrides[get_request_service] = lambda: service
    return app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sales_actor():
    return {"userId": "2", "userName": "Leo", "role": "sales"}


@pytest.fixture
def design_actor():
    return {"userId": "4", "userName": "Phoebe", "role": "design"}
