"""Async SQLAlchemy engine for the favorites / saved-search store."""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.shared.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or url.database not in (None, "", ":memory:"):
        return {}
    # An in-memory database exists once per connection, so all sessions share one
    return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}


engine = create_async_engine(settings.database_url, echo=False, **_engine_options(settings.database_url))
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create the store tables if they do not exist yet."""
    from src.backend.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    await engine.dispose()
