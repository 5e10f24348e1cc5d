"""Tests for reservation status transitions and the status sweep"""

from datetime import datetime, time
from uuid import uuid4

import pytest

from app.booking import lifecycle, locks
from app.booking.coordinator import BookingCoordinator, BookingRequest
from app.booking.errors import InvalidTransition, NotFoundError
from app.booking.lifecycle import LifecycleManager, classify_arrival, can_transition
from app.models.reservation import Reservation, ReservationStatus

from tests.conftest import NOW

TODAY = NOW.date()


def at(hour, minute):
    return datetime.combine(TODAY, time(hour, minute))


async def book(db, clock, start=time(19, 0), party_size=2):
    return await BookingCoordinator(db, clock).create_reservation(
        BookingRequest(TODAY, start, party_size, "Ada Lovelace", customer_email="ada@example.com")
    )


def test_grace_period_boundary():
    reservation = Reservation(reservation_date=TODAY, start_time=time(19, 0), grace_period_minutes=15)

    on_time = classify_arrival(reservation, at(19, 15))
    assert on_time.on_time
    assert on_time.delay_minutes == 15
    assert on_time.notes == "Arrived on time"

    late = classify_arrival(reservation, at(19, 16))
    assert not late.on_time
    assert late.delay_minutes == 16
    assert late.notes == "Late arrival - 16 minutes late"


def test_early_arrival_is_on_time():
    reservation = Reservation(reservation_date=TODAY, start_time=time(19, 0), grace_period_minutes=15)

    outcome = classify_arrival(reservation, at(18, 50))

    assert outcome.on_time
    assert outcome.delay_minutes == -10


def test_transition_table():
    assert can_transition(ReservationStatus.CONFIRMED, ReservationStatus.SEATED)
    assert can_transition(ReservationStatus.SEATED, ReservationStatus.CANCELLED)
    assert not can_transition(ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED)
    assert not can_transition(ReservationStatus.NO_SHOW, ReservationStatus.SEATED)
    assert not can_transition(ReservationStatus.COMPLETED, ReservationStatus.CANCELLED)


@pytest.mark.asyncio
async def test_late_arrival_is_recorded(test_db, clock, policy, hours, tables):
    reservation = await book(test_db, clock)

    seated = await LifecycleManager(test_db, clock).mark_arrival(reservation.id, at(19, 16))

    assert seated.status == ReservationStatus.SEATED
    assert seated.on_time is False
    assert seated.arrival_delay_minutes == 16
    assert seated.actual_arrival_time == at(19, 16)


@pytest.mark.asyncio
async def test_arrival_bumps_table_version(test_db, clock, policy, hours, tables):
    reservation = await book(test_db, clock)
    before = await locks.read_versions(test_db, [reservation.table_id], TODAY)

    await LifecycleManager(test_db, clock).mark_arrival(reservation.id, at(19, 5))

    after = await locks.read_versions(test_db, [reservation.table_id], TODAY)
    assert after[reservation.table_id] == before[reservation.table_id] + 1


@pytest.mark.asyncio
async def test_cancel_is_idempotent(test_db, clock, policy, hours, tables):
    manager = LifecycleManager(test_db, clock)
    reservation = await book(test_db, clock)

    first = await manager.cancel(reservation.id)
    cancelled_at = first.cancelled_at
    second = await manager.cancel(reservation.id)

    assert second.status == ReservationStatus.CANCELLED
    assert cancelled_at == NOW
    assert second.cancelled_at == cancelled_at


@pytest.mark.asyncio
async def test_no_show_after_cancel_rejected(test_db, clock, policy, hours, tables):
    manager = LifecycleManager(test_db, clock)
    reservation = await book(test_db, clock)
    await manager.cancel(reservation.id)

    with pytest.raises(InvalidTransition) as exc_info:
        await manager.mark_no_show(reservation.id)

    assert exc_info.value.status_code == 409
    assert exc_info.value.context["current"] == "cancelled"


@pytest.mark.asyncio
async def test_complete_requires_seating(test_db, clock, policy, hours, tables):
    manager = LifecycleManager(test_db, clock)
    reservation = await book(test_db, clock)

    with pytest.raises(InvalidTransition):
        await manager.complete(reservation.id)

    await manager.mark_arrival(reservation.id, at(19, 0))
    completed = await manager.complete(reservation.id, at(20, 30))

    assert completed.status == ReservationStatus.COMPLETED
    assert completed.actual_departure_time == at(20, 30)


@pytest.mark.asyncio
async def test_seated_party_can_cancel(test_db, clock, policy, hours, tables):
    manager = LifecycleManager(test_db, clock)
    reservation = await book(test_db, clock)
    await manager.mark_arrival(reservation.id, at(19, 0))

    cancelled = await manager.cancel(reservation.id)

    assert cancelled.status == ReservationStatus.CANCELLED


@pytest.mark.asyncio
async def test_unknown_reservation(test_db, clock):
    with pytest.raises(NotFoundError):
        await LifecycleManager(test_db, clock).cancel(uuid4())


@pytest.mark.asyncio
async def test_concurrent_change_is_reevaluated(session_factory, clock, policy, hours, tables, monkeypatch):
    """A cancellation that lands between read and update wins over a late seat"""
    async with session_factory() as db:
        reservation = await book(db, clock)

    real_update = lifecycle._conditional_update
    raced = []

    async def contested_update(db, reservation_id, expected, values):
        if not raced:
            raced.append(reservation_id)
            async with session_factory() as other:
                await LifecycleManager(other, clock).cancel(reservation_id)
        return await real_update(db, reservation_id, expected, values)

    monkeypatch.setattr(lifecycle, "_conditional_update", contested_update)

    async with session_factory() as db:
        with pytest.raises(InvalidTransition):
            await LifecycleManager(db, clock).mark_arrival(reservation.id, at(19, 5))

        current = await LifecycleManager(db, clock).get(reservation.id)
        assert current.status == ReservationStatus.CANCELLED


@pytest.mark.asyncio
async def test_sweep_completes_overstays_and_expires_no_shows(test_db, clock, policy, hours, tables):
    manager = LifecycleManager(test_db, clock)
    lunch = await book(test_db, clock, start=time(12, 0))
    dinner = await book(test_db, clock, start=time(19, 0))
    await manager.mark_arrival(lunch.id, at(12, 5))

    early = await manager.sweep(at(14, 4))
    assert early.completed == [] and early.no_shows == []

    afternoon = await manager.sweep(at(14, 6))
    assert afternoon.completed == [lunch.id]
    assert afternoon.no_shows == []

    evening = await manager.sweep(at(19, 16))
    assert evening.no_shows == [dinner.id]
    assert evening.completed == []

    finished = await manager.get(lunch.id)
    assert finished.status == ReservationStatus.COMPLETED
    assert finished.actual_departure_time == at(14, 6)

    missed = await manager.get(dinner.id)
    assert missed.status == ReservationStatus.NO_SHOW
    assert missed.arrival_notes == "No arrival within grace period"


@pytest.mark.asyncio
async def test_sweep_leaves_grace_period_alone(test_db, clock, policy, hours, tables):
    manager = LifecycleManager(test_db, clock)
    reservation = await book(test_db, clock)

    result = await manager.sweep(at(19, 15))

    assert result.no_shows == []
    assert (await manager.get(reservation.id)).status == ReservationStatus.CONFIRMED
