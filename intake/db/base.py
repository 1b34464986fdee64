"""SQLAlchemy declarative base, engine lifecycle and table creation."""

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from intake.core.config import get_settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Documents are read back after commit, so keep attributes loaded
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the customer_requests table (and any other mapped table) if missing."""
    import intake.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db(url: str | None = None) -> None:
    """Create the process-wide engine and session factory, then the tables.

    A second call is a no-op.
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    settings = get_settings()
    _engine = create_async_engine(url or settings.database_url, echo=settings.sql_echo, pool_pre_ping=True)
    _session_factory = create_session_factory(_engine)

    await create_tables(_engine)


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory.

    Raises:
        RuntimeError: init_db() has not run
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory


async def database_ready() -> bool:
    """True when the engine exists and answers ``SELECT 1``."""
    if _session_factory is None:
        return False
    try:
        async with _session_factory() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("database_check_failed", error=str(exc), error_type=type(exc).__name__)
        return False
    return True
