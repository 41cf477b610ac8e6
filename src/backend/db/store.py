"""Durable key-value blobs for favorites and saved searches."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from src.backend.db.engine import async_session
from src.backend.db.models import KeyValueBlob
from src.shared.logging import get_logger
from src.shared.models import Product, SavedSearch

logger = get_logger(__name__)

FAVORITES_KEY = "equipment_favorites"
SAVED_SEARCHES_KEY = "equipment_saved_searches"

_products = TypeAdapter(list[Product])
_saved_searches = TypeAdapter(list[SavedSearch])

T = TypeVar("T")


async def get_blob(session_id: str, key: str) -> str | None:
    async with async_session() as session:
        record = await session.get(KeyValueBlob, (session_id, key))
        return record.value_json if record else None


async def set_blob(session_id: str, key: str, value: str) -> None:
    """Insert or overwrite one blob in a single statement."""
    stmt = sqlite_insert(KeyValueBlob).values(session_id=session_id, key=key, value_json=value)
    stmt = stmt.on_conflict_do_update(
        index_elements=[KeyValueBlob.session_id, KeyValueBlob.key],
        set_={"value_json": stmt.excluded.value_json, "updated_at": func.now()},
    )
    async with async_session() as session:
        await session.execute(stmt)
        await session.commit()


async def _load_list(session_id: str, key: str, adapter: TypeAdapter[list[T]]) -> list[T]:
    raw = await get_blob(session_id, key)
    if raw is None:
        return []
    try:
        return adapter.validate_json(raw)
    except ValidationError:
        logger.warning("Stored '%s' for session %s is unreadable, treating as empty", key, session_id)
        return []


async def load_favorites(session_id: str) -> list[Product]:
    return await _load_list(session_id, FAVORITES_KEY, _products)


async def save_favorites(session_id: str, products: Sequence[Product]) -> None:
    await set_blob(session_id, FAVORITES_KEY, _products.dump_json(list(products), by_alias=True).decode())


async def load_saved_searches(session_id: str) -> list[SavedSearch]:
    return await _load_list(session_id, SAVED_SEARCHES_KEY, _saved_searches)


async def save_saved_searches(session_id: str, searches: Sequence[SavedSearch]) -> None:
    await set_blob(session_id, SAVED_SEARCHES_KEY, _saved_searches.dump_json(list(searches)).decode())
