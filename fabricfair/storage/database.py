"""Async database engine construction and schema bootstrap."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import fabricfair.models.database  # noqa: F401  (registers tables on SQLModel.metadata)


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine with pool settings suited to the backend."""
    kwargs: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True, pool_recycle=3600)
    return create_async_engine(database_url, **kwargs)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (no migrations; the schema is two tables)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
