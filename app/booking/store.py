"""Timeouts and bounded retries around store calls"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError

from app.config import settings
from app.booking.errors import TransientStoreError

logger = structlog.get_logger()

T = TypeVar("T")


async def guarded(awaitable: Awaitable[T], operation: str) -> T:
    """Await a store call with a timeout, mapping transient failures"""
    try:
        return await asyncio.wait_for(awaitable, timeout=settings.store_timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise TransientStoreError(f"Store call timed out: {operation}", operation=operation) from exc
    except (OperationalError, InterfaceError) as exc:
        raise TransientStoreError(f"Store unavailable: {operation}", operation=operation) from exc


async def with_retries(
    call: Callable[[], Awaitable[T]],
    operation: str,
    on_retry: Optional[Callable[[], Awaitable[object]]] = None,
    attempts: Optional[int] = None,
    backoff: Optional[float] = None,
) -> T:
    """Run call, retrying TransientStoreError with exponential backoff"""
    attempts = attempts or settings.store_retry_attempts
    backoff = settings.store_retry_backoff_seconds if backoff is None else backoff

    for attempt in range(1, attempts + 1):
        try:
            return await call()
        except TransientStoreError as exc:
            if attempt == attempts:
                logger.error("Store call failed", operation=operation, attempts=attempts, error=str(exc))
                raise
            logger.warning("Retrying store call", operation=operation, attempt=attempt, error=str(exc))
            if on_retry is not None:
                await on_retry()
            await asyncio.sleep(backoff * (2 ** (attempt - 1)))

    raise TransientStoreError(f"Store call failed: {operation}", operation=operation)
