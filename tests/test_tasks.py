"""Tests for background jobs"""

import asyncio
from datetime import date, time, timedelta

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app import database
from app.database import Base
from app.models.reservation import Reservation, ReservationStatus
from app.models.table import RestaurantTable
from app.jobs.tasks import sweep_reservation_statuses


def test_sweep_task_expires_past_confirmations(tmp_path, monkeypatch):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sweep.db'}", poolclass=NullPool)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def prepare():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with session_factory() as db:
            table = RestaurantTable(number=1, capacity=2)
            db.add(table)
            await db.flush()
            db.add(
                Reservation(
                    table_id=table.id,
                    customer_name="Ada Lovelace",
                    party_size=2,
                    reservation_date=date.today() - timedelta(days=2),
                    start_time=time(19, 0),
                    end_time=time(20, 45),
                    status=ReservationStatus.CONFIRMED,
                    config_version=1,
                    service_period="dinner",
                    duration_minutes=105,
                    buffer_minutes=15,
                    grace_period_minutes=15,
                    max_sitting_minutes=120,
                )
            )
            await db.commit()

    asyncio.run(prepare())
    monkeypatch.setattr(database, "SessionLocal", session_factory)

    result = sweep_reservation_statuses()

    assert result == {"no_shows": 1, "completed": 0}
