"""Restaurant table API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.models.table import RestaurantTable
from app.schemas.table import TableCreate, TableUpdate, TableResponse

router = APIRouter()
logger = structlog.get_logger()


async def _get_table(db: AsyncSession, table_id: int) -> RestaurantTable:
    table = await db.get(RestaurantTable, table_id)
    if not table:
        raise HTTPException(status_code=404, detail="Table not found")
    return table


@router.get("", response_model=List[TableResponse])
async def list_tables(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """List tables ordered by number"""
    query = select(RestaurantTable).order_by(RestaurantTable.number)
    if not include_inactive:
        query = query.where(RestaurantTable.is_active == True)  # noqa: E712
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=TableResponse, status_code=201)
async def create_table(
    table_data: TableCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a table"""
    table = RestaurantTable(**table_data.model_dump())
    db.add(table)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Table number {table_data.number} already exists")
    await db.refresh(table)

    logger.info("Table created", table_id=table.id, number=table.number, capacity=table.capacity)
    return table


@router.get("/{table_id}", response_model=TableResponse)
async def get_table(table_id: int, db: AsyncSession = Depends(get_db)):
    """Get table details"""
    return await _get_table(db, table_id)


@router.put("/{table_id}", response_model=TableResponse)
async def update_table(
    table_id: int,
    table_data: TableUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a table; existing reservations keep their assignment"""
    table = await _get_table(db, table_id)

    for field, value in table_data.model_dump(exclude_unset=True).items():
        setattr(table, field, value)

    if table.min_party_size > table.capacity:
        await db.rollback()
        raise HTTPException(status_code=422, detail="min_party_size cannot exceed capacity")

    await db.commit()
    await db.refresh(table)
    return table


@router.put("/{table_id}/deactivate", response_model=TableResponse)
async def deactivate_table(table_id: int, db: AsyncSession = Depends(get_db)):
    """Take a table out of assignment without deleting its history"""
    table = await _get_table(db, table_id)
    table.is_active = False
    await db.commit()
    await db.refresh(table)

    logger.info("Table deactivated", table_id=table_id)
    return table
