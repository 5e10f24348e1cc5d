#!/usr/bin/env python3
"""
Seed script to create the default reservation policy, opening hours and a demo floor plan
"""

import asyncio
from dataclasses import asdict


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from app.database import SessionLocal, engine, Base
    from app.models.restaurant import ReservationConfig, BusinessHours
    from app.models.table import RestaurantTable, TableType
    from app.booking.provider import DEFAULT_HOURS, DEFAULT_POLICY

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if the floor plan already exists
        result = await db.execute(select(RestaurantTable).limit(1))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating reservation policy...")
        db.add(ReservationConfig(**{**DEFAULT_POLICY.as_dict(), "version": 1}, updated_by="seed"))

        print("Creating business hours...")
        for hours in DEFAULT_HOURS.values():
            db.add(BusinessHours(**asdict(hours)))

        print("Creating tables...")
        floor_plan = [
            (1, "Window 1", 2, 1, TableType.WINDOW, "Front window"),
            (2, "Window 2", 2, 1, TableType.WINDOW, "Front window"),
            (3, None, 4, 2, TableType.STANDARD, "Main room"),
            (4, None, 4, 2, TableType.STANDARD, "Main room"),
            (5, None, 6, 3, TableType.STANDARD, "Main room"),
            (6, "Terrace", 4, 2, TableType.OUTDOOR, "Garden terrace"),
            (7, "Chef's Room", 12, 6, TableType.PRIVATE, "Private dining room"),
        ]
        for number, name, capacity, min_party, table_type, location in floor_plan:
            db.add(
                RestaurantTable(
                    number=number,
                    name=name,
                    capacity=capacity,
                    min_party_size=min_party,
                    table_type=table_type,
                    location_description=location,
                )
            )

        await db.commit()

        print(f"""
========================================
Demo data created successfully!
========================================

Policy version: 1
Duration: {DEFAULT_POLICY.reservation_duration_minutes} minutes
Tables: {len(floor_plan)}
Hours: 11:00-23:00 daily (lunch 12:00-14:30, dinner 19:00-22:00)
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
