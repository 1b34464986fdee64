"""Customer Request Tracker backend: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before the other app imports (structlog caches
# the processor chain on first use)
from intake.core.logging import configure_structlog
from intake.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else _early_settings.log_level,
    json_logs=not _early_settings.debug,
    sql_echo=_early_settings.sql_echo,
)

import structlog

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from intake.api.routes import api_router
from intake.core.config import get_settings
from intake.core.exceptions import IntakeError
from intake.db import close_db, close_redis, init_db, init_redis
from intake.middleware.correlation import get_correlation_id, setup_correlation_middleware

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # SIGTERM flips this so the health check returns 503 while draining
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    await init_redis()
    logger.info("redis_initialized")

    yield

    logger.info("shutdown_begin")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


def _error_response(
    request: Request,
    event: str,
    status_code: int,
    detail: object,
    error_type: str | None = None,
    **log_fields,
) -> JSONResponse:
    """Log the failure under a fresh debug_id and build the error envelope.

    The body never carries more than the detail, the error class name and
    the debug_id; tracebacks stay in the logs.
    """
    debug_id = str(uuid.uuid4())
    log = logger.error if status_code >= 500 else logger.warning
    log(
        event,
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=detail,
        error_type=error_type,
        **log_fields,
    )
    content = {"detail": detail, "debug_id": debug_id}
    if error_type is not None:
        content["error"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    """Domain errors answer with their own status code and class name."""
    return _error_response(request, "intake_error", exc.status_code, exc.message, type(exc).__name__)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, "http_exception", exc.status_code, exc.detail)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unhandled becomes a bare 500; the exception is only logged."""
    return _error_response(
        request,
        "unhandled_exception",
        500,
        "Internal server error",
        error=str(exc),
        exception_type=type(exc).__name__,
        exc_info=True,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(IntakeError)(intake_error_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Customer request intake and approval workflow",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "intake.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
