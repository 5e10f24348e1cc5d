"""Reservation management API endpoints"""

from datetime import date, datetime, time
from typing import Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.models.reservation import Reservation, ReservationStatus
from app.booking.coordinator import BookingChanges, BookingCoordinator, BookingRequest
from app.booking.lifecycle import LifecycleManager
from app.booking.provider import Clock, get_clock
from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationStatusUpdate,
    ReservationResponse,
    ReservationListResponse,
    StatusAction,
)

router = APIRouter()
logger = structlog.get_logger()


def local_slot(clock: Clock, day: date, start: time) -> Tuple[date, time]:
    """Restaurant-local date and minute for a start time that may carry an offset"""
    starts_at = clock.localize(datetime.combine(day, start))
    return starts_at.date(), starts_at.time().replace(second=0, microsecond=0)


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    reservation_date: Optional[date] = Query(None, alias="date"),
    status: Optional[ReservationStatus] = None,
    table_id: Optional[int] = None,
    customer_name: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """List reservations with filtering and pagination"""
    query = select(Reservation)
    count_query = select(func.count(Reservation.id))

    filters = []
    if reservation_date:
        filters.append(Reservation.reservation_date == reservation_date)
    if status:
        filters.append(Reservation.status == status)
    if table_id:
        filters.append(Reservation.table_id == table_id)
    if customer_name:
        term = f"%{customer_name}%"
        filters.append(Reservation.customer_name.ilike(term) | Reservation.customer_email.ilike(term))

    if filters:
        query = query.where(*filters)
        count_query = count_query.where(*filters)

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = (
        query.order_by(Reservation.reservation_date.desc(), Reservation.start_time.desc())
        .offset(offset)
        .limit(page_size)
    )
    result = await db.execute(query)
    reservations = result.scalars().all()

    return ReservationListResponse(
        items=reservations,
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    reservation_data: ReservationCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Book the best-fit free table for the requested slot"""
    logger.info(
        "Creating reservation",
        date=reservation_data.date.isoformat(),
        time=reservation_data.time.strftime("%H:%M"),
        party_size=reservation_data.party_size,
    )

    reservation_date, start_time = local_slot(clock, reservation_data.date, reservation_data.time)
    coordinator = BookingCoordinator(db, clock)
    return await coordinator.create_reservation(
        BookingRequest(
            reservation_date=reservation_date,
            start_time=start_time,
            party_size=reservation_data.party_size,
            customer_name=reservation_data.customer_name,
            customer_email=reservation_data.customer_email,
            customer_phone=reservation_data.customer_phone,
            special_requests=reservation_data.special_requests,
        )
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get reservation details"""
    reservation = await db.get(Reservation, reservation_id)

    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")

    return reservation


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: UUID,
    changes: ReservationUpdate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Reschedule, resize or move a confirmed reservation, or edit its details"""
    reservation_date, start_time = changes.date, changes.time
    if start_time is not None:
        if reservation_date is not None:
            reservation_date, start_time = local_slot(clock, reservation_date, start_time)
        else:
            start_time = start_time.replace(second=0, microsecond=0)

    coordinator = BookingCoordinator(db, clock)
    return await coordinator.reschedule(
        reservation_id,
        BookingChanges(
            reservation_date=reservation_date,
            start_time=start_time,
            party_size=changes.party_size,
            table_id=changes.table_id,
            customer_name=changes.customer_name,
            customer_email=changes.customer_email,
            customer_phone=changes.customer_phone,
            special_requests=changes.special_requests,
        ),
    )


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_id: UUID,
    update: ReservationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Apply an arrival, cancellation, completion or no-show transition"""
    lifecycle = LifecycleManager(db, clock)
    at = clock.localize(update.at) if update.at else None

    if update.action == StatusAction.ARRIVE:
        return await lifecycle.mark_arrival(reservation_id, at)
    if update.action == StatusAction.CANCEL:
        return await lifecycle.cancel(reservation_id)
    if update.action == StatusAction.COMPLETE:
        return await lifecycle.complete(reservation_id, at)
    return await lifecycle.mark_no_show(reservation_id)


@router.delete("/{reservation_id}", status_code=204)
async def delete_reservation(
    reservation_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Remove a reservation outright (staff override, bypasses the lifecycle)"""
    reservation = await db.get(Reservation, reservation_id)

    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")

    await db.delete(reservation)
    await db.commit()
    logger.warning("Reservation deleted by staff", reservation_id=str(reservation_id))

    return Response(status_code=204)
