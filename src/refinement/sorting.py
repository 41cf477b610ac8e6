"""Stable sort strategies for the visible collection."""

from __future__ import annotations

import unicodedata
from collections.abc import Callable, Sequence
from typing import Any

from src.shared.models import Product, SortKey


def _price_low_key(product: Product) -> tuple[bool, float]:
    # Unknown price (0) sorts after every priced product.
    return (product.price == 0, product.price)


def _price_high_key(product: Product) -> float:
    return -product.price


def _collate(text: str) -> str:
    """Approximate locale collation: case- and accent-insensitive."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _brand_key(product: Product) -> str:
    return _collate(product.brand)


_SORT_KEYS: dict[SortKey, Callable[[Product], Any]] = {
    SortKey.PRICE_LOW_TO_HIGH: _price_low_key,
    SortKey.PRICE_HIGH_TO_LOW: _price_high_key,
    SortKey.BRAND_ALPHA: _brand_key,
}


def sort_products(products: Sequence[Product], key: SortKey) -> list[Product]:
    """Return a new list ordered by ``key``; ties keep their input order."""
    return sorted(products, key=_SORT_KEYS[SortKey(key)])
