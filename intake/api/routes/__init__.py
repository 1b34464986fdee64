from fastapi import APIRouter

from intake.api.routes import health, metrics, requests

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
api_router.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
