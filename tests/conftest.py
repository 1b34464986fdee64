"""Shared test fixtures for all test groups."""

from datetime import UTC, datetime, timedelta

import pytest
from fakeredis import FakeAsyncRedis
from sqlalchemy.ext.asyncio import create_async_engine

from intake.db.base import create_session_factory, create_tables
from intake.domain.roles import Role
from intake.schemas.customer_request import Actor
from intake.services.request_ids import RequestIdGenerator
from intake.services.request_service import RequestService
from intake.services.request_store import RequestStore


class FakeClock:
    """Deterministic clock; advances one minute per call unless frozen."""

    def __init__(self, start: datetime, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=UTC))


@pytest.fixture
async def redis():
    """Create a fake Redis instance for testing."""
    fake_redis = FakeAsyncRedis(decode_responses=True)
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest.fixture
async def engine(tmp_path):
    """SQLite engine on a per-test database file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'intake.db'}", echo=False)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return RequestStore(session_factory)


@pytest.fixture
def id_generator(redis):
    return RequestIdGenerator(redis)


@pytest.fixture
def service(store, id_generator, clock):
    return RequestService(store, id_generator, clock=clock)


@pytest.fixture
def sales():
    return Actor(user_id="2", user_name="Leo", role=Role.SALES)


@pytest.fixture
def designer():
    return Actor(user_id="4", user_name="Phoebe", role=Role.DESIGN)


@pytest.fixture
def costing_user():
    return Actor(user_id="5", user_name="Bai", role=Role.COSTING)


@pytest.fixture
def admin():
    return Actor(user_id="1", user_name="Renaud", role=Role.ADMIN)


@pytest.fixture
def trusted():
    """Actor without a role: the role gate is skipped."""
    return Actor(user_id="9", user_name="Integration")


@pytest.fixture
def sample_payload():
    return {
        "clientName": "Agri Parts Ltd",
        "clientContact": "buyer@agriparts.example",
        "applicationVehicle": "Trailer",
        "country": "France",
        "expectedQty": 120,
        "expectedDeliverySelections": ["Prototype", "Series"],
        "products": [
            {
                "axleLocation": "Rear",
                "articulationType": "Fixed",
                "configurationType": "Single",
                "loadsKg": 3500,
                "speedsKmh": 40,
                "tyreSize": "400/60-15.5",
                "trackMm": 1800,
                "studsPcdStandardSelections": ["8x275"],
                "brakeType": "Drum",
                "brakeSize": "406x120",
            }
        ],
    }
