import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from safeprep.core.config import get_settings
from safeprep.db.base import Base

T = TypeVar("T")

SessionFactory = async_sessionmaker[AsyncSession]


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> SessionFactory:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


engine = build_engine(get_settings().database_url)
SessionLocal = build_session_factory(engine)


def get_session_factory() -> SessionFactory:
    return SessionLocal


async def get_db(sessions: SessionFactory = Depends(get_session_factory)) -> AsyncIterator[AsyncSession]:
    async with sessions() as session:
        yield session


async def run_read(sessions: SessionFactory, query: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run one independent read in its own session so reads can be gathered."""
    async with sessions() as db:
        return await query(db)


async def gather_reads(sessions: SessionFactory, *queries: Callable[[AsyncSession], Awaitable[Any]]) -> list[Any]:
    """Run reads concurrently; the first failure cancels the rest and is re-raised."""
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(run_read(sessions, query)) for query in queries]
    except ExceptionGroup as failed:
        raise failed.exceptions[0] from None
    return [task.result() for task in tasks]


async def create_all(target: AsyncEngine) -> None:
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
