"""Async database engine and session management"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base

from app.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    """Yield a session for the duration of a request"""
    async with SessionLocal() as session:
        yield session


def utcnow() -> datetime:
    """Naive UTC timestamp for audit columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
