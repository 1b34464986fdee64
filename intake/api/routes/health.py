"""Liveness and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from intake.core.logging import SERVICE_NAME
from intake.db.base import database_ready
from intake.db.redis import redis_ready

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness check. Answers 503 once SIGTERM was received so traffic drains."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": SERVICE_NAME},
        )
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/ready")
async def readiness_check():
    """Readiness check: the request store and the id counters must both answer."""
    checks = {"database": await database_ready(), "redis": await redis_ready()}
    ready = all(checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )
