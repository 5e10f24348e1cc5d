"""
Reservation lifecycle.

    confirmed -> seated -> completed
    confirmed -> cancelled | no_show
    seated    -> cancelled

Every transition is a conditional update on the status the reservation was
read with, so a concurrent writer makes the update match no rows and the
transition is re-evaluated against the fresh state. Reapplying the transition
that produced the current status is a no-op.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.reservation import Reservation, ReservationStatus
from app.booking import locks
from app.booking.conflicts import is_pending_no_show
from app.booking.errors import ConflictError, InvalidTransition, NotFoundError
from app.booking.provider import Clock
from app.booking.store import guarded

logger = structlog.get_logger()

TRANSITIONS: Dict[ReservationStatus, frozenset] = {
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.SEATED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.SEATED: frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in TRANSITIONS[current]


@dataclass
class ArrivalOutcome:
    on_time: bool
    delay_minutes: int
    notes: str


def classify_arrival(reservation: Reservation, arrival_time: datetime) -> ArrivalOutcome:
    """On time iff the arrival is no later than start + grace period"""
    starts_at = datetime.combine(reservation.reservation_date, reservation.start_time)
    delay = arrival_time - starts_at
    delay_minutes = int(delay.total_seconds() // 60)
    on_time = delay <= timedelta(minutes=reservation.grace_period_minutes)
    if on_time:
        notes = "Arrived on time"
    else:
        notes = f"Late arrival - {delay_minutes} minutes late"
    return ArrivalOutcome(on_time=on_time, delay_minutes=delay_minutes, notes=notes)


async def _conditional_update(
    db: AsyncSession,
    reservation_id: UUID,
    expected: ReservationStatus,
    values: dict,
) -> bool:
    result = await guarded(
        db.execute(
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        ),
        "update_reservation_status",
    )
    return result.rowcount == 1


async def expire_no_shows(
    db: AsyncSession,
    now: datetime,
    service_date: Optional[date] = None,
    table_id: Optional[int] = None,
) -> List[UUID]:
    """Mark overdue confirmed reservations as no-shows without committing"""
    query = select(Reservation).where(
        Reservation.status == ReservationStatus.CONFIRMED,
        Reservation.reservation_date <= now.date(),
    )
    if service_date is not None:
        query = query.where(Reservation.reservation_date == service_date)
    if table_id is not None:
        query = query.where(Reservation.table_id == table_id)

    result = await guarded(db.execute(query), "load_confirmed")
    expired = []
    for reservation in result.scalars().all():
        if not is_pending_no_show(reservation, now):
            continue
        updated = await _conditional_update(
            db,
            reservation.id,
            ReservationStatus.CONFIRMED,
            {
                "status": ReservationStatus.NO_SHOW,
                "arrival_notes": "No arrival within grace period",
            },
        )
        if updated:
            expired.append(reservation.id)
    return expired


async def complete_overstays(db: AsyncSession, now: datetime) -> List[UUID]:
    """Complete seated reservations past their maximum sitting time, without committing"""
    result = await guarded(
        db.execute(
            select(Reservation).where(
                Reservation.status == ReservationStatus.SEATED,
                Reservation.actual_arrival_time.is_not(None),
            )
        ),
        "load_seated",
    )
    completed = []
    for reservation in result.scalars().all():
        limit = reservation.actual_arrival_time + timedelta(minutes=reservation.max_sitting_minutes)
        if now < limit:
            continue
        updated = await _conditional_update(
            db,
            reservation.id,
            ReservationStatus.SEATED,
            {"status": ReservationStatus.COMPLETED, "actual_departure_time": now},
        )
        if updated:
            completed.append(reservation.id)
    return completed


@dataclass
class SweepResult:
    no_shows: List[UUID]
    completed: List[UUID]


class LifecycleManager:
    """Status transitions for existing reservations"""

    def __init__(self, db: AsyncSession, clock: Clock, max_attempts: Optional[int] = None):
        self.db = db
        self.clock = clock
        self.max_attempts = max_attempts or settings.booking_max_attempts

    async def get(self, reservation_id: UUID) -> Reservation:
        reservation = await guarded(
            self.db.get(Reservation, reservation_id, populate_existing=True),
            "get_reservation",
        )
        if reservation is None:
            raise NotFoundError("Reservation not found", reservation_id=reservation_id)
        return reservation

    async def _transition(
        self,
        reservation_id: UUID,
        target: ReservationStatus,
        action: str,
        values: Callable[[Reservation], dict],
        bump_lock: bool = False,
    ) -> Reservation:
        for _ in range(self.max_attempts):
            reservation = await self.get(reservation_id)
            current = reservation.status
            if current == target:
                return reservation
            if not can_transition(current, target):
                raise InvalidTransition(current.value, action)

            changes = values(reservation)
            table_id, service_date = reservation.table_id, reservation.reservation_date
            updated = await _conditional_update(
                self.db, reservation_id, current, {"status": target, **changes}
            )
            if updated and bump_lock:
                updated = await locks.bump(self.db, table_id, service_date)
            if not updated:
                await self.db.rollback()
                continue

            await guarded(self.db.commit(), "commit_transition")
            logger.info(
                "Reservation status changed",
                reservation_id=str(reservation_id),
                from_status=current.value,
                to_status=target.value,
            )
            return await self.get(reservation_id)

        raise ConflictError("Reservation is being changed concurrently", reservation_id=reservation_id)

    async def mark_arrival(self, reservation_id: UUID, arrival_time: Optional[datetime] = None) -> Reservation:
        """Seat the party, recording whether it arrived within the grace period"""
        arrival_time = arrival_time or self.clock.now()

        def values(reservation: Reservation) -> dict:
            outcome = classify_arrival(reservation, arrival_time)
            return {
                "on_time": outcome.on_time,
                "arrival_delay_minutes": outcome.delay_minutes,
                "actual_arrival_time": arrival_time,
                "arrival_notes": outcome.notes,
            }

        # A late party re-occupies a table the engine may be about to hand out
        return await self._transition(
            reservation_id, ReservationStatus.SEATED, "seat", values, bump_lock=True
        )

    async def cancel(self, reservation_id: UUID) -> Reservation:
        """Cancel; the interval is free for new bookings immediately"""
        now = self.clock.now()
        return await self._transition(
            reservation_id,
            ReservationStatus.CANCELLED,
            "cancel",
            lambda reservation: {"cancelled_at": now},
        )

    async def complete(self, reservation_id: UUID, departure_time: Optional[datetime] = None) -> Reservation:
        departure_time = departure_time or self.clock.now()
        return await self._transition(
            reservation_id,
            ReservationStatus.COMPLETED,
            "complete",
            lambda reservation: {"actual_departure_time": departure_time},
        )

    async def mark_no_show(self, reservation_id: UUID) -> Reservation:
        return await self._transition(
            reservation_id,
            ReservationStatus.NO_SHOW,
            "mark as no-show",
            lambda reservation: {"arrival_notes": "Marked as no-show by staff"},
        )

    async def sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Expire overdue confirmations and close out overstayed tables"""
        now = now or self.clock.now()
        no_shows = await expire_no_shows(self.db, now)
        completed = await complete_overstays(self.db, now)
        await guarded(self.db.commit(), "commit_sweep")
        if no_shows or completed:
            logger.info("Reservation sweep", no_shows=len(no_shows), completed=len(completed))
        return SweepResult(no_shows=no_shows, completed=completed)
