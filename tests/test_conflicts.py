"""Tests for interval overlap and table assignment"""

from datetime import time, timedelta
from uuid import uuid4

import pytest

from app.booking import conflicts
from app.booking.assignment import best_fit
from app.booking.conflicts import BookedInterval, DayBookings
from app.booking.coordinator import BookingCoordinator, BookingRequest
from app.booking.errors import NoTableAvailable
from app.booking.lifecycle import LifecycleManager
from app.models.table import RestaurantTable

from tests.conftest import NOW

TOMORROW = NOW.date() + timedelta(days=1)

# 19:00-20:45 with a 15 minute turnover buffer
DINNER_BOOKING = BookedInterval(reservation_id=uuid4(), table_id=1, start=1140, end=1245, buffer=15)


def test_candidate_inside_buffer_conflicts():
    assert DINNER_BOOKING.overlaps(1250, 1355)  # 20:50


def test_candidate_after_buffer_is_free():
    assert not DINNER_BOOKING.overlaps(1260, 1365)  # 21:00


def test_candidate_buffer_is_not_applied():
    """A candidate may end exactly when the existing reservation starts"""
    assert not DINNER_BOOKING.overlaps(1035, 1140)  # 17:15-19:00
    assert DINNER_BOOKING.overlaps(1036, 1141)


def test_day_bookings_are_per_table():
    bookings = DayBookings(service_date=TOMORROW)
    bookings.intervals[1].append(DINNER_BOOKING)

    assert not bookings.is_free(1, 1200, 1305)
    assert bookings.is_free(2, 1200, 1305)


def make_tables(*capacities):
    return [
        RestaurantTable(id=number, number=number, capacity=capacity, min_party_size=1, is_active=True)
        for number, capacity in enumerate(capacities, start=1)
    ]


def test_best_fit_picks_smallest_then_lowest_number():
    tables = make_tables(2, 4, 4, 6)

    assert best_fit(tables, 3).number == 2
    assert best_fit(tables, 2).number == 1
    assert best_fit(tables, 5).number == 4


def test_best_fit_respects_minimum_party_size():
    tables = make_tables(2, 8)
    tables[1].min_party_size = 5

    with pytest.raises(NoTableAvailable):
        best_fit(tables[1:], 3)


def test_best_fit_ignores_inactive_tables():
    tables = make_tables(4, 6)
    tables[0].is_active = False

    assert best_fit(tables, 3).number == 2


def test_no_table_for_oversized_party():
    with pytest.raises(NoTableAvailable):
        best_fit(make_tables(2, 4), 7)


@pytest.mark.asyncio
async def test_frozen_buffer_blocks_table(test_db, clock, policy, hours, tables):
    """Buffer comes from the stored reservation, not the current policy"""
    coordinator = BookingCoordinator(test_db, clock)
    reservation = await coordinator.create_reservation(
        BookingRequest(TOMORROW, time(19, 0), 6, "Grace Hopper")
    )
    assert reservation.buffer_minutes == 15

    policy.dinner_buffer_minutes = 0
    await test_db.commit()

    table_id = reservation.table_id
    assert not await conflicts.is_free(test_db, table_id, TOMORROW, time(20, 50), time(22, 35), NOW)
    assert await conflicts.is_free(test_db, table_id, TOMORROW, time(21, 0), time(22, 45), NOW)


@pytest.mark.asyncio
async def test_cancelled_reservation_does_not_block(test_db, clock, policy, hours, tables):
    reservation = await BookingCoordinator(test_db, clock).create_reservation(
        BookingRequest(TOMORROW, time(19, 0), 6, "Grace Hopper")
    )
    await LifecycleManager(test_db, clock).cancel(reservation.id)

    assert await conflicts.is_free(
        test_db, reservation.table_id, TOMORROW, time(19, 0), time(20, 45), NOW
    )


@pytest.mark.asyncio
async def test_day_load_can_leave_out_one_reservation(test_db, clock, policy, hours, tables):
    reservation = await BookingCoordinator(test_db, clock).create_reservation(
        BookingRequest(TOMORROW, time(19, 0), 6, "Grace Hopper")
    )
    table_id = reservation.table_id
    start, end = 19 * 60, 19 * 60 + 105

    everything = await conflicts.load_day(test_db, TOMORROW, NOW, [table_id])
    assert not everything.is_free(table_id, start, end)

    others = await conflicts.load_day(test_db, TOMORROW, NOW, [table_id], ignore_reservation=reservation.id)
    assert others.is_free(table_id, start, end)
