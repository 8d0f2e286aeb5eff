"""Test configuration and fixtures"""

import os
from datetime import datetime, timedelta

os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.main import app
from app.api.deps import get_clock, get_gateway
from app.database import Base, get_db
from app.engine.context import EngineContext
from app.models import Customer, RestaurantTable
from app.notifications import NotificationGateway
from app.notifications.channels import LogChannel


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday noon
NOW = datetime(2026, 3, 2, 12, 0)


class FixedClock:
    """Clock the tests move by hand"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return now


class RecordingGateway(NotificationGateway):
    """Gateway that remembers every event it was asked to send"""

    def __init__(self):
        super().__init__([LogChannel()])
        self.events = []

    async def send(self, event, contact, bill=None):
        self.events.append((event, contact.reservation_id))
        return await super().send(event, contact, bill=bill)

    def sent(self, event) -> list:
        return [reservation_id for sent_event, reservation_id in self.events if sent_event == event]


@pytest.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def engine(test_db, gateway, clock):
    """Engine context over the test session with a fixed clock"""
    return EngineContext(test_db, gateway=gateway, clock=clock)


@pytest.fixture
async def customer(test_db):
    """A regular customer"""
    customer = Customer(full_name="Test Customer", phone="+15551234567", email="test@example.com")
    test_db.add(customer)
    await test_db.commit()
    await test_db.refresh(customer)
    return customer


@pytest.fixture
async def subscriber(test_db):
    """A subscribed customer"""
    customer = Customer(
        full_name="Sub Scriber",
        phone="+15557654321",
        email="sub@example.com",
        is_subscribed=True,
        subscription_code="SUB-42",
    )
    test_db.add(customer)
    await test_db.commit()
    await test_db.refresh(customer)
    return customer


@pytest.fixture
def add_tables(test_db):
    """Create tables with the given capacities, returning their ids"""

    async def _add(*capacities):
        tables = [RestaurantTable(capacity=capacity) for capacity in capacities]
        test_db.add_all(tables)
        await test_db.commit()
        return [table.id for table in tables]

    return _add


@pytest.fixture
async def client(test_db, gateway, clock):
    """Create test client with overridden database, gateway and clock"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
