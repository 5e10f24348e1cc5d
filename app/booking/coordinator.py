"""
Booking transaction coordinator.

A booking call moves through ``validating -> checking_availability ->
assigning -> committing`` and ends ``succeeded``, ``conflict`` or ``failed``.

Check-then-insert is made race free by the table-day version: the versions of
every candidate table are read before the day's reservations, and the chosen
table's version is advanced in the same transaction that writes the
reservation. A writer that lost the race sees its version update match no
rows (or its first-of-day insert violate the unique key), rolls back and
reloads the day. The version moves on any write to the table that day, so
the fresh read decides whether the interval is really gone.
"""

import enum
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.reservation import Reservation, ReservationStatus
from app.models.table import RestaurantTable
from app.booking import assignment, availability, conflicts, locks
from app.booking.errors import (
    ConflictError,
    InvalidTransition,
    NoTableAvailable,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from app.booking.lifecycle import expire_no_shows
from app.booking.provider import Clock, EngineSnapshot, ReservationPolicy, load_snapshot
from app.booking.store import guarded, with_retries

logger = structlog.get_logger()


class BookingStage(str, enum.Enum):
    VALIDATING = "validating"
    CHECKING_AVAILABILITY = "checking_availability"
    ASSIGNING = "assigning"
    COMMITTING = "committing"
    SUCCEEDED = "succeeded"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass
class BookingRequest:
    reservation_date: date
    start_time: time
    party_size: int
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass
class BookingChanges:
    """Staff edit of an existing reservation; unset fields keep their value"""
    reservation_date: Optional[date] = None
    start_time: Optional[time] = None
    party_size: Optional[int] = None
    table_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    special_requests: Optional[str] = None

    def moves_slot(self) -> bool:
        return any(
            value is not None
            for value in (self.reservation_date, self.start_time, self.party_size, self.table_id)
        )

    def details(self) -> Dict[str, Any]:
        fields = {
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "special_requests": self.special_requests,
        }
        return {name: value for name, value in fields.items() if value is not None}


class RaceLost(Exception):
    """Another writer changed the table or reservation between our read and our write"""

    def __init__(self, table_id: int):
        super().__init__(f"Table {table_id} was changed concurrently")
        self.table_id = table_id


def _keep(new, old):
    return old if new is None else new


class BookingCoordinator:
    """Creates and moves reservations atomically against the store"""

    def __init__(self, db: AsyncSession, clock: Clock, max_attempts: Optional[int] = None):
        self.db = db
        self.clock = clock
        self.max_attempts = max_attempts or settings.booking_max_attempts
        self.stage = BookingStage.VALIDATING

    def _enter(self, stage: BookingStage, **context) -> None:
        self.stage = stage
        logger.debug("Booking stage", stage=stage.value, **context)

    @asynccontextmanager
    async def _tracked(self, log):
        """Record the final stage for engine errors raised inside the block"""
        try:
            yield
        except ConflictError as exc:
            self._enter(BookingStage.CONFLICT)
            log.info("Booking rejected", reason=exc.code, error=exc.message)
            raise
        except (ValidationError, InvalidTransition, NotFoundError) as exc:
            self._enter(BookingStage.FAILED)
            log.info("Booking rejected", reason=exc.code, error=exc.message)
            raise
        except TransientStoreError as exc:
            self._enter(BookingStage.FAILED)
            log.error("Booking failed", reason=exc.code, error=exc.message)
            raise

    async def create_reservation(self, request: BookingRequest) -> Reservation:
        """Validate, assign a best-fit table and commit a confirmed reservation"""
        log = logger.bind(
            date=request.reservation_date.isoformat(),
            time=request.start_time.strftime("%H:%M"),
            party_size=request.party_size,
        )
        self._enter(BookingStage.VALIDATING)
        async with self._tracked(log):
            snapshot = await with_retries(lambda: load_snapshot(self.db), "load_snapshot")
            now = self.clock.now()
            period = availability.validate_request(
                snapshot, request.reservation_date, request.start_time, request.party_size, now
            )

            reservation, attempts = await self._run(
                lambda: self._attempt_create(request, snapshot, period, now), log
            )
            self._enter(BookingStage.SUCCEEDED)
            log.info(
                "Reservation confirmed",
                reservation_id=str(reservation.id),
                table_id=reservation.table_id,
                attempts=attempts,
            )
            return reservation

    async def reschedule(self, reservation_id: UUID, changes: BookingChanges) -> Reservation:
        """Move a confirmed reservation to a new slot, party size or table.

        The new slot goes through the same rules and table claim as a fresh
        booking, with the reservation's own interval left out of the conflict
        check. Edits that only touch customer details skip the claim.
        """
        log = logger.bind(reservation_id=str(reservation_id))
        self._enter(BookingStage.VALIDATING)
        async with self._tracked(log):
            if not changes.moves_slot():
                reservation = await self._get(reservation_id)
                for name, value in changes.details().items():
                    setattr(reservation, name, value)
                await guarded(self.db.commit(), "commit_reservation")
                self._enter(BookingStage.SUCCEEDED)
                log.info("Reservation details updated", fields=sorted(changes.details()))
                return reservation

            snapshot = await with_retries(lambda: load_snapshot(self.db), "load_snapshot")
            now = self.clock.now()
            reservation, attempts = await self._run(
                lambda: self._attempt_reschedule(reservation_id, changes, snapshot, now), log
            )
            self._enter(BookingStage.SUCCEEDED)
            log.info(
                "Reservation rescheduled",
                date=reservation.reservation_date.isoformat(),
                time=reservation.start_time.strftime("%H:%M"),
                table_id=reservation.table_id,
                attempts=attempts,
            )
            return reservation

    async def _get(self, reservation_id: UUID) -> Reservation:
        reservation = await guarded(
            self.db.get(Reservation, reservation_id, populate_existing=True),
            "get_reservation",
        )
        if reservation is None:
            raise NotFoundError("Reservation not found", reservation_id=reservation_id)
        return reservation

    async def _run(
        self,
        attempt: Callable[[], Awaitable[Reservation]],
        log,
    ) -> Tuple[Reservation, int]:
        """Repeat the attempt after lost races, up to max_attempts"""
        raced = False
        for number in range(1, self.max_attempts + 1):
            try:
                reservation = await with_retries(attempt, "commit_reservation", on_retry=self.db.rollback)
            except RaceLost as lost:
                await self.db.rollback()
                raced = True
                log.info("Booking race lost, reloading", table_id=lost.table_id, attempt=number)
                continue
            except NoTableAvailable as exc:
                await self.db.rollback()
                if raced:
                    raise ConflictError(
                        "The last available table was taken by another booking",
                        attempts=number,
                    ) from exc
                raise
            return reservation, number

        raise ConflictError(
            "Could not secure a table after repeated concurrent bookings",
            attempts=self.max_attempts,
        )

    async def _claim_table(
        self,
        request: BookingRequest,
        policy: ReservationPolicy,
        now: datetime,
        ignore_reservation: Optional[UUID] = None,
        prefer: Optional[int] = None,
        only: Optional[int] = None,
    ) -> RestaurantTable:
        """Pick a free table for the request and advance its version"""
        start = availability.to_minutes(request.start_time)
        end = start + policy.reservation_duration_minutes

        self._enter(BookingStage.CHECKING_AVAILABILITY)
        tables = await conflicts.load_tables(self.db, request.party_size)
        if only is not None:
            tables = [t for t in tables if t.id == only]
        table_ids = [t.id for t in tables]
        versions = await locks.read_versions(self.db, table_ids, request.reservation_date)
        bookings = await conflicts.load_day(
            self.db, request.reservation_date, now, table_ids, ignore_reservation=ignore_reservation
        )
        free = [t for t in tables if bookings.is_free(t.id, start, end)]

        self._enter(BookingStage.ASSIGNING, free_tables=len(free))
        kept = [t for t in free if t.id == prefer]
        table = kept[0] if kept else assignment.best_fit(free, request.party_size)
        table_id = table.id

        self._enter(BookingStage.COMMITTING, table_id=table_id)
        pending = set(bookings.pending_no_shows.get(table_id, ()))
        if pending:
            expired = await expire_no_shows(
                self.db, now, service_date=request.reservation_date, table_id=table_id
            )
            if not pending.issubset(expired):
                raise RaceLost(table_id)

        if not await locks.claim(self.db, table_id, request.reservation_date, versions.get(table_id)):
            raise RaceLost(table_id)
        return table

    @staticmethod
    def _frozen_values(
        request: BookingRequest,
        policy: ReservationPolicy,
        period: availability.ServicePeriod,
    ) -> Dict[str, Any]:
        """Slot and policy values copied onto the reservation row"""
        starts_at = datetime.combine(request.reservation_date, request.start_time)
        return {
            "party_size": request.party_size,
            "reservation_date": request.reservation_date,
            "start_time": request.start_time,
            "end_time": (starts_at + timedelta(minutes=policy.reservation_duration_minutes)).time(),
            "config_version": policy.version,
            "service_period": period.name,
            "duration_minutes": policy.reservation_duration_minutes,
            "buffer_minutes": availability.buffer_minutes(policy, period.name),
            "grace_period_minutes": policy.grace_period_minutes,
            "max_sitting_minutes": policy.max_sitting_minutes,
        }

    async def _attempt_create(
        self,
        request: BookingRequest,
        snapshot: EngineSnapshot,
        period: availability.ServicePeriod,
        now: datetime,
    ) -> Reservation:
        table = await self._claim_table(request, snapshot.policy, now)

        reservation = Reservation(
            table_id=table.id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            special_requests=request.special_requests,
            status=ReservationStatus.CONFIRMED,
            **self._frozen_values(request, snapshot.policy, period),
        )
        self.db.add(reservation)
        await guarded(self.db.commit(), "commit_reservation")
        return reservation

    async def _attempt_reschedule(
        self,
        reservation_id: UUID,
        changes: BookingChanges,
        snapshot: EngineSnapshot,
        now: datetime,
    ) -> Reservation:
        existing = await self._get(reservation_id)
        if existing.status != ReservationStatus.CONFIRMED:
            raise InvalidTransition(existing.status.value, "reschedule")

        request = BookingRequest(
            reservation_date=_keep(changes.reservation_date, existing.reservation_date),
            start_time=_keep(changes.start_time, existing.start_time),
            party_size=_keep(changes.party_size, existing.party_size),
            customer_name=_keep(changes.customer_name, existing.customer_name),
        )
        period = availability.validate_request(
            snapshot, request.reservation_date, request.start_time, request.party_size, now
        )
        table = await self._claim_table(
            request,
            snapshot.policy,
            now,
            ignore_reservation=existing.id,
            prefer=existing.table_id,
            only=changes.table_id,
        )

        values = {
            "table_id": table.id,
            **self._frozen_values(request, snapshot.policy, period),
            **changes.details(),
        }
        result = await guarded(
            self.db.execute(
                update(Reservation)
                .where(
                    Reservation.id == reservation_id,
                    Reservation.status == ReservationStatus.CONFIRMED,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            ),
            "reschedule_reservation",
        )
        if result.rowcount != 1:
            raise RaceLost(table.id)

        await guarded(self.db.commit(), "commit_reservation")
        return await self._get(reservation_id)
