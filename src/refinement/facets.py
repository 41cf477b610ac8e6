"""Facet discovery: derive the filter vocabulary from a product collection."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from src.shared.config import settings
from src.shared.constants import ALL
from src.shared.models import FacetVocabulary, Product


def _distinct_sorted(values: Iterable[str]) -> list[str]:
    return sorted({v for v in values if v})


def _with_sentinel(values: Iterable[str]) -> list[str]:
    return [ALL, *_distinct_sorted(values)]


def price_bounds(products: Sequence[Product]) -> tuple[int, int]:
    """Return ``(floor(min), ceil(max))`` over positive prices, else ``(0, 0)``."""
    prices = [p.price for p in products if p.price > 0]
    if not prices:
        return 0, 0
    return math.floor(min(prices)), math.ceil(max(prices))


def discover(
    products: Sequence[Product],
    known_spec_keys: Sequence[str] | None = None,
    country_spec_key: str | None = None,
) -> FacetVocabulary:
    """Build the complete vocabulary for ``products``.

    Only ``known_spec_keys`` become per-spec facets; any other spec key a
    product carries is ignored so free-form attributes never turn into
    filters. The country key feeds the country multi-select instead.
    """
    spec_keys = settings.known_spec_keys if known_spec_keys is None else known_spec_keys
    country_key = settings.country_spec_key if country_spec_key is None else country_spec_key

    spec_values: dict[str, list[str]] = {}
    for key in spec_keys:
        found = [p.spec(key) or "" for p in products]
        if any(found):
            spec_values[key] = _with_sentinel(found)

    min_price, max_price = price_bounds(products)

    return FacetVocabulary(
        brands=_with_sentinel(p.brand for p in products),
        models=_with_sentinel(p.model for p in products),
        suppliers=_with_sentinel(p.supplier for p in products),
        spec_values=spec_values,
        countries=_distinct_sorted(p.spec(country_key) or "" for p in products),
        conditions=_distinct_sorted(p.condition for p in products),
        min_price=min_price,
        max_price=max_price,
    )
