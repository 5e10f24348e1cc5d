"""Background job tasks"""

import asyncio
import structlog

from app.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


@celery_app.task(name="sweep_reservation_statuses")
def sweep_reservation_statuses():
    """Mark overdue confirmations as no-shows and complete overstayed tables"""
    logger.info("Sweeping reservation statuses")

    async def _sweep():
        from app import database
        from app.booking.lifecycle import LifecycleManager
        from app.booking.provider import get_clock

        async with database.SessionLocal() as db:
            result = await LifecycleManager(db, get_clock()).sweep()

        logger.info(
            "Reservation sweep finished",
            no_shows=len(result.no_shows),
            completed=len(result.completed),
        )
        return {"no_shows": len(result.no_shows), "completed": len(result.completed)}

    return run_async(_sweep())
