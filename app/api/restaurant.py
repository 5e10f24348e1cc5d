"""Restaurant configuration API endpoints"""

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.models.restaurant import ReservationConfig, BusinessHours
from app.booking.provider import DEFAULT_HOURS, DEFAULT_POLICY, load_policy
from app.schemas.restaurant import (
    ReservationConfigUpdate,
    ReservationConfigResponse,
    BusinessHoursUpdate,
    BusinessHoursResponse,
)

router = APIRouter()
logger = structlog.get_logger()

POLICY_WRITE_ATTEMPTS = 2


async def _store_policy(db: AsyncSession, changes: dict, updated_by=None, base=None) -> ReservationConfig:
    """Append a new config version; existing reservations keep their frozen values.

    ``changes`` are applied on top of ``base`` (the active policy when not
    given). A concurrent writer taking the same version number makes the
    insert fail on the unique key, so the active policy is reloaded and the
    write tried once more before answering 409.
    """
    for attempt in range(1, POLICY_WRITE_ATTEMPTS + 1):
        current = await load_policy(db)
        values = dict(base if base is not None else current.as_dict())
        values.update(changes)
        values["version"] = current.version + 1

        config = ReservationConfig(updated_by=updated_by, **values)
        db.add(config)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("Config version taken concurrently", version=values["version"], attempt=attempt)
            continue

        await db.refresh(config)
        logger.info("Reservation config updated", version=config.version, updated_by=updated_by)
        return config

    raise HTTPException(status_code=409, detail="Reservation config was changed concurrently, retry the update")


@router.get("/config", response_model=ReservationConfigResponse)
async def get_config(db: AsyncSession = Depends(get_db)):
    """Get the active reservation policy"""
    policy = await load_policy(db)
    return ReservationConfigResponse(**policy.as_dict())


@router.put("/config", response_model=ReservationConfigResponse)
async def update_config(
    config_data: ReservationConfigUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update the reservation policy as a new version"""
    changes = config_data.model_dump(exclude_unset=True, exclude_none=True)
    updated_by = changes.pop("updated_by", None)

    return await _store_policy(db, changes, updated_by)


@router.post("/config/reset-defaults", response_model=ReservationConfigResponse)
async def reset_defaults(db: AsyncSession = Depends(get_db)):
    """Restore the default policy and weekly hours"""
    for day, hours in DEFAULT_HOURS.items():
        row = await db.get(BusinessHours, day)
        if row is None:
            row = BusinessHours(day_of_week=day)
            db.add(row)
        for field, value in asdict(hours).items():
            setattr(row, field, value)
    await db.commit()

    return await _store_policy(db, {}, "reset-defaults", base=DEFAULT_POLICY.as_dict())


@router.get("/business-hours", response_model=List[BusinessHoursResponse])
async def list_business_hours(db: AsyncSession = Depends(get_db)):
    """Get opening hours for every configured weekday"""
    result = await db.execute(select(BusinessHours).order_by(BusinessHours.day_of_week))
    return result.scalars().all()


@router.put("/business-hours/{day_of_week}", response_model=BusinessHoursResponse)
async def update_business_hours(
    hours_data: BusinessHoursUpdate,
    day_of_week: int = Path(..., ge=0, le=6, description="0=Monday ... 6=Sunday"),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace the opening hours of one weekday"""
    row = await db.get(BusinessHours, day_of_week)
    if row is None:
        row = BusinessHours(day_of_week=day_of_week)
        db.add(row)

    for field, value in hours_data.model_dump().items():
        setattr(row, field, value)

    await db.commit()
    await db.refresh(row)

    logger.info("Business hours updated", day_of_week=day_of_week, is_open=row.is_open)
    return row


@router.get("/business-hours/{day_of_week}", response_model=BusinessHoursResponse)
async def get_business_hours(
    day_of_week: int = Path(..., ge=0, le=6),
    db: AsyncSession = Depends(get_db),
):
    """Get opening hours for one weekday"""
    row = await db.get(BusinessHours, day_of_week)
    if not row:
        raise HTTPException(status_code=404, detail="No hours configured for this day")
    return row
