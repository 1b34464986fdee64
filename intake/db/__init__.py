"""Database package: engine, session factory and Redis client."""

from intake.db.base import Base, close_db, get_session_factory, init_db
from intake.db.redis import close_redis, get_redis, init_redis

__all__ = [
    "Base",
    "close_db",
    "close_redis",
    "get_redis",
    "get_session_factory",
    "init_db",
    "init_redis",
]
