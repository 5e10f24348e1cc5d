"""Test configuration and fixtures"""

from datetime import datetime, time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.main import app
from app.database import Base, get_db
from app.models.restaurant import ReservationConfig, BusinessHours
from app.models.table import RestaurantTable, TableType
from app.booking.provider import (
    Clock,
    DayHours,
    EngineSnapshot,
    ReservationPolicy,
    get_clock,
)

# Monday
NOW = datetime(2026, 3, 2, 10, 0)

LUNCH = (time(12, 0), time(15, 0))
DINNER = (time(19, 0), time(22, 30))


class FixedClock(Clock):
    """Clock pinned to a settable instant"""

    def __init__(self, now: datetime):
        super().__init__("UTC")
        self.current = now

    def now(self) -> datetime:
        return self.current


def week_hours():
    return {
        day: DayHours(
            day_of_week=day,
            is_open=True,
            open_time=time(11, 0),
            close_time=time(23, 0),
            lunch_start=LUNCH[0],
            lunch_end=LUNCH[1],
            dinner_start=DINNER[0],
            dinner_end=DINNER[1],
        )
        for day in range(7)
    }


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def snapshot():
    """In-memory policy and hours matching the seeded fixtures"""
    return EngineSnapshot(policy=ReservationPolicy(version=1), hours=week_hours())


@pytest.fixture
async def test_engine(tmp_path):
    """File backed SQLite so separate sessions see each other's commits"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def policy(test_db):
    """Store policy version 1 with the default values"""
    config = ReservationConfig(version=1, updated_by="tests")
    test_db.add(config)
    await test_db.commit()
    return config


@pytest.fixture
async def hours(test_db):
    """Lunch 12:00-15:00 and dinner 19:00-22:30 every day"""
    rows = []
    for day_hours in week_hours().values():
        row = BusinessHours(
            day_of_week=day_hours.day_of_week,
            is_open=True,
            open_time=day_hours.open_time,
            close_time=day_hours.close_time,
            lunch_start=day_hours.lunch_start,
            lunch_end=day_hours.lunch_end,
            dinner_start=day_hours.dinner_start,
            dinner_end=day_hours.dinner_end,
        )
        test_db.add(row)
        rows.append(row)
    await test_db.commit()
    return rows


@pytest.fixture
async def tables(test_db):
    """Tables 1-4 seating 2, 4, 4 and 6"""
    items = [
        RestaurantTable(number=1, name="Window", capacity=2, table_type=TableType.WINDOW),
        RestaurantTable(number=2, capacity=4),
        RestaurantTable(number=3, capacity=4),
        RestaurantTable(number=4, capacity=6, min_party_size=3),
    ]
    for item in items:
        test_db.add(item)
    await test_db.commit()
    return items


@pytest.fixture
async def client(session_factory, clock):
    """Create test client with overridden database and clock"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
