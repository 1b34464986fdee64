"""Shared route dependencies."""

from intake.core.config import get_settings
from intake.db.base import get_session_factory
from intake.db.redis import get_redis
from intake.services.request_ids import RequestIdGenerator
from intake.services.request_service import RequestService
from intake.services.request_store import RequestStore


def get_request_service() -> RequestService:
    """Dependency that provides a RequestService wired to the shared DB and Redis.

    Override this dependency in tests via app.dependency_overrides.
    """
    settings = get_settings()
    return RequestService(
        store=RequestStore(get_session_factory()),
        id_generator=RequestIdGenerator(
            get_redis(),
            prefix=settings.request_id_prefix,
            digits=settings.request_id_digits,
        ),
    )
