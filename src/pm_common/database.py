"""Async SQLAlchemy engine and session factory.

Persistence is raw text() SQL against the schema in alembic/versions; there
are no ORM models. Repositories never open their own sessions: they take
the caller's AsyncSession, so one request is one transaction.
"""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,  # relay senders can be idle for long stretches
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Services commit or roll back; this only closes."""
    async with async_session_factory() as session:
        yield session
