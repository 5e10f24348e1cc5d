"""Optimistic per table and date versioning"""

from datetime import date
from typing import Dict, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reservation import TableDayLock
from app.booking.store import guarded


async def read_versions(db: AsyncSession, table_ids: Iterable[int], service_date: date) -> Dict[int, int]:
    """Current version per table; tables never booked on the date are absent"""
    ids = list(table_ids)
    if not ids:
        return {}
    result = await guarded(
        db.execute(
            select(TableDayLock.table_id, TableDayLock.version).where(
                TableDayLock.table_id.in_(ids),
                TableDayLock.service_date == service_date,
            )
        ),
        "read_lock_versions",
    )
    return {table_id: version for table_id, version in result.all()}


async def claim(db: AsyncSession, table_id: int, service_date: date, seen_version: Optional[int]) -> bool:
    """Advance the version seen earlier in this transaction.

    Returns False when another writer got there first; the caller must roll
    back the session before retrying.
    """
    if seen_version is None:
        db.add(TableDayLock(table_id=table_id, service_date=service_date, version=1))
        try:
            await guarded(db.flush(), "insert_lock")
        except IntegrityError:
            return False
        return True

    result = await guarded(
        db.execute(
            update(TableDayLock)
            .where(
                TableDayLock.table_id == table_id,
                TableDayLock.service_date == service_date,
                TableDayLock.version == seen_version,
            )
            .values(version=seen_version + 1)
            .execution_options(synchronize_session=False)
        ),
        "bump_lock",
    )
    return result.rowcount == 1


async def bump(db: AsyncSession, table_id: int, service_date: date) -> bool:
    """Invalidate in-flight bookings on the table and date"""
    versions = await read_versions(db, [table_id], service_date)
    return await claim(db, table_id, service_date, versions.get(table_id))
