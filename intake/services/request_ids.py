"""Request ID generation backed by per-year Redis counters."""

from datetime import UTC, datetime

import structlog
from redis.asyncio import Redis

logger = structlog.get_logger(__name__)


class RequestIdGenerator:
    """Produce ``{prefix}{YY}{sequence}`` ids, e.g. ``CRA260001``.

    Each two-digit year has its own counter. Redis INCR creates the counter
    at zero if absent and increments it atomically, so concurrent callers
    never receive the same sequence number.
    """

    KEY_PREFIX = "request_counter:"

    def __init__(self, redis: Redis, prefix: str = "CRA", digits: int = 4):
        self.redis = redis
        self.prefix = prefix
        self.digits = digits

    def _key(self, year: int) -> str:
        return f"{self.KEY_PREFIX}{year % 100:02d}"

    async def next_id(self, year: int | None = None) -> str:
        """Reserve the next id for ``year`` (defaults to the current UTC year).

        Past ``10**digits - 1`` the sequence keeps growing and the id gains a
        digit instead of failing.
        """
        if year is None:
            year = datetime.now(UTC).year
        sequence = await self.redis.incr(self._key(year))
        if sequence >= 10**self.digits:
            logger.warning("request_id_sequence_overflow", year=year, sequence=sequence, digits=self.digits)
        return f"{self.prefix}{year % 100:02d}{sequence:0{self.digits}d}"

    async def current(self, year: int) -> int:
        """Last sequence number issued for ``year`` (0 if none)."""
        value = await self.redis.get(self._key(year))
        return int(value) if value else 0
