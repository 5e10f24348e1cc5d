"""
Conflict detector.

Two intervals overlap iff ``existing.start < candidate.end`` and
``candidate.start < existing.end + existing.buffer``. The buffer belongs to
the existing reservation only (frozen on its row from the period it started
in), never to the candidate.

A confirmed reservation whose grace period has run out with no arrival is a
pending no-show and no longer holds its table.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.table import RestaurantTable
from app.models.reservation import Reservation, ReservationStatus, BLOCKING_STATUSES
from app.booking.store import guarded


@dataclass(frozen=True)
class BookedInterval:
    reservation_id: UUID
    table_id: int
    start: int
    end: int
    buffer: int = 0

    @property
    def blocked_until(self) -> int:
        return self.end + self.buffer

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.blocked_until


@dataclass
class DayBookings:
    """Blocking intervals for one date, grouped by table"""
    service_date: date
    intervals: Dict[int, List[BookedInterval]] = field(default_factory=lambda: defaultdict(list))
    pending_no_shows: Dict[int, List[UUID]] = field(default_factory=lambda: defaultdict(list))

    def is_free(self, table_id: int, start: int, end: int) -> bool:
        return not any(booked.overlaps(start, end) for booked in self.intervals.get(table_id, ()))


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def is_pending_no_show(reservation: Reservation, now: datetime) -> bool:
    """Confirmed, and the grace period after the start has fully passed"""
    if reservation.status != ReservationStatus.CONFIRMED:
        return False
    starts_at = datetime.combine(reservation.reservation_date, reservation.start_time)
    return now > starts_at + timedelta(minutes=reservation.grace_period_minutes)


def to_interval(reservation: Reservation) -> BookedInterval:
    return BookedInterval(
        reservation_id=reservation.id,
        table_id=reservation.table_id,
        start=_minutes(reservation.start_time),
        end=_minutes(reservation.end_time),
        buffer=reservation.buffer_minutes or 0,
    )


async def load_tables(db: AsyncSession, party_size: int) -> List[RestaurantTable]:
    """Active tables that can seat the party"""
    result = await guarded(
        db.execute(
            select(RestaurantTable)
            .where(
                RestaurantTable.is_active == True,  # noqa: E712
                RestaurantTable.capacity >= party_size,
                RestaurantTable.min_party_size <= party_size,
            )
            .order_by(RestaurantTable.capacity, RestaurantTable.number)
        ),
        "load_tables",
    )
    return list(result.scalars().all())


async def load_day(
    db: AsyncSession,
    service_date: date,
    now: datetime,
    table_ids: Optional[Iterable[int]] = None,
    ignore_reservation: Optional[UUID] = None,
) -> DayBookings:
    """Load the intervals that block tables on the date"""
    query = select(Reservation).where(
        Reservation.reservation_date == service_date,
        Reservation.status.in_(BLOCKING_STATUSES),
    )
    if ignore_reservation is not None:
        query = query.where(Reservation.id != ignore_reservation)
    if table_ids is not None:
        ids = list(table_ids)
        if not ids:
            return DayBookings(service_date=service_date)
        query = query.where(Reservation.table_id.in_(ids))

    result = await guarded(db.execute(query), "load_reservations")

    bookings = DayBookings(service_date=service_date)
    for reservation in result.scalars().all():
        if is_pending_no_show(reservation, now):
            bookings.pending_no_shows[reservation.table_id].append(reservation.id)
            continue
        bookings.intervals[reservation.table_id].append(to_interval(reservation))
    return bookings


async def is_free(
    db: AsyncSession,
    table_id: int,
    service_date: date,
    start: time,
    end: time,
    now: datetime,
) -> bool:
    """Whether nothing booked on the table overlaps [start, end)"""
    bookings = await load_day(db, service_date, now, [table_id])
    return bookings.is_free(table_id, _minutes(start), _minutes(end))
