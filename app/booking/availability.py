"""
Availability calculator.

Times inside a day are handled as minutes since midnight. A service period is
a labelled window (lunch, dinner, or the whole opening span when the day has
no split). Touching or overlapping windows merge into one contiguous block,
and a start time is legal only when ``[start, start + duration)`` fits inside
a single block, so a party is never booked through the gap between lunch and
dinner or past closing time.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.booking import conflicts
from app.booking.errors import (
    OutOfAdvanceWindow,
    PartySizeInvalid,
    SlotNotBusinessHours,
    TooLateSameDay,
)
from app.booking.provider import DayHours, EngineSnapshot, ReservationPolicy

logger = structlog.get_logger()

MINUTES_PER_DAY = 24 * 60

LUNCH = "lunch"
DINNER = "dinner"
SERVICE = "service"


@dataclass(frozen=True)
class ServicePeriod:
    name: str
    start: int
    end: int

    def contains(self, minute: int) -> bool:
        return self.start <= minute < self.end


@dataclass
class TimeSlot:
    """A candidate start time with live table availability"""
    time: time
    is_business_hour: bool
    available_table_count: int = 0
    available_table_ids: List[int] = field(default_factory=list)

    @property
    def is_available(self) -> bool:
        return self.is_business_hour and self.available_table_count > 0


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def service_periods(hours: Optional[DayHours]) -> List[ServicePeriod]:
    """Labelled service windows for a day, ordered by start"""
    if hours is None or not hours.is_open:
        return []

    windows = []
    if hours.lunch_start and hours.lunch_end:
        windows.append(ServicePeriod(LUNCH, to_minutes(hours.lunch_start), to_minutes(hours.lunch_end)))
    if hours.dinner_start and hours.dinner_end:
        windows.append(ServicePeriod(DINNER, to_minutes(hours.dinner_start), to_minutes(hours.dinner_end)))
    if not windows and hours.open_time and hours.close_time:
        windows.append(ServicePeriod(SERVICE, to_minutes(hours.open_time), to_minutes(hours.close_time)))

    return sorted((w for w in windows if w.end > w.start), key=lambda w: (w.start, w.end))


def contiguous_blocks(periods: Sequence[ServicePeriod]) -> List[Tuple[int, int]]:
    """Merge touching or overlapping periods"""
    blocks: List[Tuple[int, int]] = []
    for period in sorted(periods, key=lambda p: p.start):
        if blocks and period.start <= blocks[-1][1]:
            blocks[-1] = (blocks[-1][0], max(blocks[-1][1], period.end))
        else:
            blocks.append((period.start, period.end))
    return blocks


def period_at(periods: Sequence[ServicePeriod], minute: int) -> Optional[ServicePeriod]:
    """The first labelled period the minute falls in"""
    for period in periods:
        if period.contains(minute):
            return period
    return None


def is_legal_start(periods: Sequence[ServicePeriod], start: int, duration: int) -> bool:
    """True when the whole reservation fits inside one contiguous block"""
    end = start + duration
    return any(block_start <= start and end <= block_end for block_start, block_end in contiguous_blocks(periods))


def candidate_starts(periods: Sequence[ServicePeriod], interval: int) -> List[int]:
    """Start times on the slot grid of each period, de-duplicated"""
    starts = set()
    for period in periods:
        starts.update(range(period.start, period.end, interval))
    return sorted(starts)


def buffer_minutes(policy: ReservationPolicy, period_name: str) -> int:
    """Turnover buffer applied after a reservation starting in the period"""
    if period_name == LUNCH:
        return policy.lunch_buffer_minutes
    if period_name == DINNER:
        return policy.dinner_buffer_minutes
    return max(policy.lunch_buffer_minutes, policy.dinner_buffer_minutes)


def check_party_size(policy: ReservationPolicy, party_size: int) -> None:
    if party_size < 1 or party_size > policy.max_party_size:
        raise PartySizeInvalid(
            f"Party size must be between 1 and {policy.max_party_size}",
            party_size=party_size,
        )


def check_booking_date(policy: ReservationPolicy, target_date: date, today: date) -> None:
    last_day = today + timedelta(days=policy.advance_booking_days)
    if target_date < today or target_date > last_day:
        raise OutOfAdvanceWindow(
            f"Reservations can be made from {today.isoformat()} to {last_day.isoformat()}",
            date=target_date,
        )


def same_day_cutoff(policy: ReservationPolicy, target_date: date, now: datetime) -> int:
    """Earliest bookable minute on the target date"""
    if target_date != now.date():
        return 0
    earliest = now + timedelta(hours=policy.same_day_booking_hours)
    if earliest.date() != target_date:
        return MINUTES_PER_DAY
    minute = earliest.hour * 60 + earliest.minute
    # Round a partial minute up so the cutoff is never undershot
    if earliest.second or earliest.microsecond:
        minute += 1
    return minute


def validate_request(
    snapshot: EngineSnapshot,
    target_date: date,
    start: time,
    party_size: int,
    now: datetime,
) -> ServicePeriod:
    """Apply the booking rules; returns the service period the start falls in"""
    policy = snapshot.policy
    check_party_size(policy, party_size)
    check_booking_date(policy, target_date, now.date())

    periods = service_periods(snapshot.hours_for(target_date))
    start_minute = to_minutes(start)
    period = period_at(periods, start_minute)
    if period is None or not is_legal_start(periods, start_minute, policy.reservation_duration_minutes):
        raise SlotNotBusinessHours(
            f"{start.strftime('%H:%M')} does not fit a {policy.reservation_duration_minutes} minute "
            f"reservation within one service period",
            date=target_date,
            time=start.strftime("%H:%M"),
        )

    if start_minute < same_day_cutoff(policy, target_date, now):
        raise TooLateSameDay(
            f"Same-day reservations need at least {policy.same_day_booking_hours} hours notice",
            time=start.strftime("%H:%M"),
        )

    return period


async def get_slots(
    db: AsyncSession,
    snapshot: EngineSnapshot,
    target_date: date,
    party_size: int,
    now: datetime,
) -> List[TimeSlot]:
    """Bookable start times for the date with the tables free at each"""
    policy = snapshot.policy
    check_party_size(policy, party_size)
    check_booking_date(policy, target_date, now.date())

    periods = service_periods(snapshot.hours_for(target_date))
    cutoff = same_day_cutoff(policy, target_date, now)
    starts = [s for s in candidate_starts(periods, policy.time_slot_interval_minutes) if s >= cutoff]
    if not starts:
        return []

    tables = await conflicts.load_tables(db, party_size)
    bookings = await conflicts.load_day(db, target_date, now, [t.id for t in tables])

    slots = []
    for start in starts:
        if not is_legal_start(periods, start, policy.reservation_duration_minutes):
            slots.append(TimeSlot(time=from_minutes(start), is_business_hour=False))
            continue
        end = start + policy.reservation_duration_minutes
        free_ids = [t.id for t in tables if bookings.is_free(t.id, start, end)]
        slots.append(
            TimeSlot(
                time=from_minutes(start),
                is_business_hour=True,
                available_table_count=len(free_ids),
                available_table_ids=free_ids,
            )
        )

    logger.debug(
        "Computed availability",
        date=target_date.isoformat(),
        party_size=party_size,
        slots=len(slots),
        open_slots=sum(1 for s in slots if s.is_available),
    )
    return slots
