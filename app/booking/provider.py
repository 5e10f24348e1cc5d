"""
Clock and configuration provider.

The engine never reads live configuration in the middle of a request: each
request loads one immutable ``EngineSnapshot`` (the active reservation policy
version plus the weekly business hours) and passes it explicitly to the
availability, assignment and booking code. Reservations copy the policy values
they depend on onto their own row at creation time.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime, time
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.restaurant import ReservationConfig, BusinessHours
from app.booking.store import guarded


class Clock:
    """Current restaurant-local time as naive datetimes"""

    def __init__(self, timezone: str):
        self.zone = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.zone).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()

    def localize(self, value: datetime) -> datetime:
        """Naive restaurant-local time for a timestamp that may carry an offset"""
        if value.tzinfo is None:
            return value
        return value.astimezone(self.zone).replace(tzinfo=None)


def get_clock() -> Clock:
    """FastAPI dependency for the restaurant clock"""
    return Clock(settings.restaurant_timezone)


@dataclass(frozen=True)
class ReservationPolicy:
    """Immutable copy of one reservation_config version"""
    version: int = 0
    reservation_duration_minutes: int = 105
    grace_period_minutes: int = 15
    max_sitting_minutes: int = 120
    time_slot_interval_minutes: int = 30
    lunch_buffer_minutes: int = 15
    dinner_buffer_minutes: int = 15
    advance_booking_days: int = 30
    same_day_booking_hours: int = 2
    max_party_size: int = 12

    @classmethod
    def from_row(cls, row: ReservationConfig) -> "ReservationPolicy":
        return cls(**{name: getattr(row, name) for name in cls.__dataclass_fields__})

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class DayHours:
    """Opening hours for one weekday"""
    day_of_week: int
    is_open: bool = True
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    dinner_start: Optional[time] = None
    dinner_end: Optional[time] = None

    @classmethod
    def from_row(cls, row: BusinessHours) -> "DayHours":
        return cls(**{name: getattr(row, name) for name in cls.__dataclass_fields__})


DEFAULT_POLICY = ReservationPolicy()

# Every day: open 11:00-23:00, lunch 12:00-14:30, dinner 19:00-22:00
DEFAULT_HOURS = {
    day: DayHours(
        day_of_week=day,
        is_open=True,
        open_time=time(11, 0),
        close_time=time(23, 0),
        lunch_start=time(12, 0),
        lunch_end=time(14, 30),
        dinner_start=time(19, 0),
        dinner_end=time(22, 0),
    )
    for day in range(7)
}


@dataclass(frozen=True)
class EngineSnapshot:
    """Policy and hours in force for one request"""
    policy: ReservationPolicy = DEFAULT_POLICY
    hours: Dict[int, DayHours] = field(default_factory=dict)

    def hours_for(self, target_date: date) -> Optional[DayHours]:
        """Hours for the date's weekday; a missing weekday means closed"""
        return self.hours.get(target_date.weekday())


async def load_policy(db: AsyncSession) -> ReservationPolicy:
    """Active (highest) policy version, or the defaults when none is stored"""
    result = await guarded(
        db.execute(
            select(ReservationConfig).order_by(ReservationConfig.version.desc()).limit(1)
        ),
        "load_policy",
    )
    row = result.scalar_one_or_none()
    return ReservationPolicy.from_row(row) if row else DEFAULT_POLICY


async def load_hours(db: AsyncSession) -> Dict[int, DayHours]:
    result = await guarded(db.execute(select(BusinessHours)), "load_hours")
    return {row.day_of_week: DayHours.from_row(row) for row in result.scalars().all()}


async def load_snapshot(db: AsyncSession) -> EngineSnapshot:
    """Load the configuration used for the rest of the request"""
    policy = await load_policy(db)
    hours = await load_hours(db)
    return EngineSnapshot(policy=policy, hours=hours)
