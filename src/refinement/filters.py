"""Filter pipeline over a product collection."""

from __future__ import annotations

from collections.abc import Sequence

from src.shared.config import settings
from src.shared.constants import ALL
from src.shared.models import FacetVocabulary, FilterState, Product


def neutral_filters(vocabulary: FacetVocabulary) -> FilterState:
    """The match-everything state for a freshly discovered vocabulary."""
    if vocabulary.price_range_enabled:
        price_min, price_max = float(vocabulary.min_price), float(vocabulary.max_price)
    else:
        price_min = price_max = None
    return FilterState(
        spec_filters={key: ALL for key in vocabulary.spec_values},
        price_min=price_min,
        price_max=price_max,
    )


def _exact(value: str, wanted: str) -> bool:
    return wanted == ALL or value == wanted


def matches_keyword(product: Product, keyword: str) -> bool:
    """Case-insensitive substring match on brand, model or any spec value.

    Spec keys are not searched. Surrounding whitespace is part of the
    needle; it only counts as blank when nothing but whitespace is typed.
    """
    if not keyword.strip():
        return True
    needle = keyword.lower()
    if needle in product.brand.lower() or needle in product.model.lower():
        return True
    return any(needle in value.lower() for value in product.specs.values())


def in_price_window(product: Product, price_min: float | None, price_max: float | None) -> bool:
    # Unknown prices are never filtered out.
    if product.price == 0:
        return True
    if price_min is not None and product.price < price_min:
        return False
    if price_max is not None and product.price > price_max:
        return False
    return True


def apply_filters(
    products: Sequence[Product],
    filters: FilterState,
    country_spec_key: str | None = None,
) -> list[Product]:
    """Return the products satisfying every active predicate, in input order.

    Predicates narrow the working set in a fixed order: exact fields,
    keyword, per-spec filters, countries, conditions, price window.
    """
    country_key = settings.country_spec_key if country_spec_key is None else country_spec_key

    result = [
        p for p in products
        if _exact(p.brand, filters.brand)
        and _exact(p.model, filters.model)
        and _exact(p.supplier, filters.supplier)
    ]

    if filters.keyword.strip():
        result = [p for p in result if matches_keyword(p, filters.keyword)]

    for key, wanted in filters.spec_filters.items():
        if wanted != ALL:
            result = [p for p in result if p.spec(key) == wanted]

    if filters.countries:
        selected = set(filters.countries)
        result = [p for p in result if p.spec(country_key) in selected]

    if filters.conditions:
        selected = set(filters.conditions)
        result = [p for p in result if p.condition in selected]

    return [p for p in result if in_price_window(p, filters.price_min, filters.price_max)]


# ---------------------------------------------------------------------------
# User input
# ---------------------------------------------------------------------------

def toggle_value(values: Sequence[str], value: str) -> list[str]:
    """Add ``value`` to a multi-select, or remove it if already selected."""
    if value in values:
        return [v for v in values if v != value]
    return [*values, value]


def clamp_price_min(filters: FilterState, vocabulary: FacetVocabulary, value: float) -> float | None:
    """Clamp a new lower bound so it stays in range and below ``max - 1``.

    Returns the current value unchanged when the price range is disabled.
    """
    if not vocabulary.price_range_enabled:
        return filters.price_min
    upper = filters.price_max if filters.price_max is not None else vocabulary.max_price
    value = max(float(vocabulary.min_price), float(value))
    return min(value, upper - 1)


def clamp_price_max(filters: FilterState, vocabulary: FacetVocabulary, value: float) -> float | None:
    """Clamp a new upper bound so it stays in range and above ``min + 1``."""
    if not vocabulary.price_range_enabled:
        return filters.price_max
    lower = filters.price_min if filters.price_min is not None else vocabulary.min_price
    value = min(float(vocabulary.max_price), float(value))
    return max(value, lower + 1)
