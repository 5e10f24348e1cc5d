"""Availability API endpoint"""

from datetime import date as date_type

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.booking import availability
from app.booking.provider import Clock, get_clock, load_snapshot
from app.schemas.reservation import AvailabilityResponse, AvailabilitySlot

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    date: date_type = Query(..., description="Date to check (YYYY-MM-DD)"),
    party_size: int = Query(..., description="Number of guests"),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """List candidate start times for the date with free tables at each"""
    snapshot = await load_snapshot(db)
    slots = await availability.get_slots(db, snapshot, date, party_size, clock.now())

    return AvailabilityResponse(
        date=date,
        party_size=party_size,
        available=any(slot.is_available for slot in slots),
        slots=[
            AvailabilitySlot(
                time=slot.time,
                is_business_hour=slot.is_business_hour,
                available=slot.is_available,
                available_table_count=slot.available_table_count,
                available_table_ids=slot.available_table_ids,
            )
            for slot in slots
        ],
    )
