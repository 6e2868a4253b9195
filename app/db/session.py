"""
Database session and engine configuration.

This file sets up the async database connection using SQLAlchemy + asyncpg.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL."""
    return create_async_engine(database_url, echo=echo, future=True)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create a session factory bound to an engine.

    expire_on_commit=False keeps loaded applications readable after the
    transition transaction commits (routers serialize them afterwards).
    """
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# When DEBUG=True, SQL statements are echoed to the console
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session_maker = build_session_factory(engine)

# Alias for dependencies
AsyncSessionLocal = async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session for one request.

    The whole request is one transaction: it commits when the endpoint
    returns and rolls back if anything raises, so a rejected stage move
    leaves no partial writes behind.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager helper for async DB sessions (used in tests/scripts)."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
