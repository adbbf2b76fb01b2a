"""Pipeline storage."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import async_sessionmaker

from nfl_edge.database import create_task_engine
from nfl_edge.storage.base import PipelineStore
from nfl_edge.storage.sql import SQLStore


def get_store() -> PipelineStore:
    """Default store over the application's database sessions."""
    from nfl_edge.database import async_session_maker

    return SQLStore(async_session_maker)


@asynccontextmanager
async def task_store() -> AsyncIterator[PipelineStore]:
    """Store on a private engine, disposed when the block exits."""
    engine = create_task_engine()
    try:
        yield SQLStore(async_sessionmaker(engine, expire_on_commit=False))
    finally:
        await engine.dispose()


__all__ = ["PipelineStore", "SQLStore", "get_store", "task_store"]
