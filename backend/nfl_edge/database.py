"""Async database engine and session management."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from nfl_edge.config import settings


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# Pooled engine owned by the API's event loop
engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_recycle=300,
)

async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


def create_task_engine() -> AsyncEngine:
    """Engine for work that runs on its own event loop (Celery tasks, the scheduler thread).

    asyncpg connections are bound to the loop that opened them, so these
    engines never pool and never share connections with ``engine``.
    """
    return create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        poolclass=NullPool,
    )


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a database session."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create tables that do not exist yet.

    Alembic owns the schema in deployed environments; this keeps local
    development databases usable without running migrations.
    """
    # Import models so they register on Base.metadata
    import nfl_edge.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close the API engine's pooled connections."""
    await engine.dispose()
