"""Results controller: owns the vocabulary, filters, sort and visible collection."""

from __future__ import annotations

from collections.abc import Sequence

from src.refinement import exporter
from src.refinement.exporter import ExportArtifact
from src.refinement.facets import discover
from src.refinement.filters import (
    apply_filters,
    clamp_price_max,
    clamp_price_min,
    neutral_filters,
    toggle_value,
)
from src.refinement.sorting import sort_products
from src.shared.config import settings
from src.shared.logging import get_logger
from src.shared.models import ExportFormat, FacetVocabulary, FilterState, Product, SortKey

logger = get_logger(__name__)

_SINGLE_SELECT_FIELDS = ("brand", "model", "supplier")


class ResultsController:
    """Two-trigger state machine over one product collection.

    * ``load_products`` replaces the collection, rediscovers the vocabulary
      and resets the filters to neutral.
    * Every filter or sort mutation recomputes the visible collection as
      ``sort(apply(products, filters), sort_key)``.

    Both vocabulary and visible collection are materialized here and only
    change through those two triggers.
    """

    def __init__(
        self,
        known_spec_keys: Sequence[str] | None = None,
        country_spec_key: str | None = None,
    ) -> None:
        self._known_spec_keys = list(settings.known_spec_keys if known_spec_keys is None else known_spec_keys)
        self._country_spec_key = settings.country_spec_key if country_spec_key is None else country_spec_key
        self._products: tuple[Product, ...] = ()
        self._vocabulary = FacetVocabulary()
        self._filters = FilterState()
        self._sort_key = SortKey.PRICE_LOW_TO_HIGH
        self._visible: tuple[Product, ...] = ()

    # -- read side ---------------------------------------------------------

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    @property
    def vocabulary(self) -> FacetVocabulary:
        return self._vocabulary

    @property
    def filters(self) -> FilterState:
        return self._filters.model_copy(deep=True)

    @property
    def sort_key(self) -> SortKey:
        return self._sort_key

    @property
    def visible(self) -> tuple[Product, ...]:
        return self._visible

    def find(self, product_id: str) -> Product | None:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    # -- trigger 1: new collection -----------------------------------------

    def load_products(self, products: Sequence[Product]) -> None:
        self._products = tuple(products)
        self._vocabulary = discover(self._products, self._known_spec_keys, self._country_spec_key)
        self._filters = neutral_filters(self._vocabulary)
        self._visible = ()
        logger.debug(
            "Loaded %d products (%d brands, price %d..%d)",
            len(self._products),
            len(self._vocabulary.brands) - 1,
            self._vocabulary.min_price,
            self._vocabulary.max_price,
        )
        self._recompute()

    # -- trigger 2: filter / sort mutation ---------------------------------

    def _recompute(self) -> None:
        filtered = apply_filters(self._products, self._filters, self._country_spec_key)
        self._visible = tuple(sort_products(filtered, self._sort_key))

    def reset_filters(self) -> None:
        self._filters = neutral_filters(self._vocabulary)
        self._recompute()

    def set_keyword(self, keyword: str) -> None:
        self._filters.keyword = keyword
        self._recompute()

    def set_field(self, field: str, value: str) -> None:
        if field not in _SINGLE_SELECT_FIELDS:
            raise ValueError(f"Unknown filter field: {field}")
        setattr(self._filters, field, value)
        self._recompute()

    def set_spec_filter(self, key: str, value: str) -> None:
        if key not in self._vocabulary.spec_values:
            raise ValueError(f"No facet for spec key: {key}")
        self._filters.spec_filters[key] = value
        self._recompute()

    def toggle_country(self, country: str) -> None:
        self._filters.countries = toggle_value(self._filters.countries, country)
        self._recompute()

    def toggle_condition(self, condition: str) -> None:
        self._filters.conditions = toggle_value(self._filters.conditions, condition)
        self._recompute()

    def set_price_min(self, value: float) -> None:
        self._filters.price_min = clamp_price_min(self._filters, self._vocabulary, value)
        self._recompute()

    def set_price_max(self, value: float) -> None:
        self._filters.price_max = clamp_price_max(self._filters, self._vocabulary, value)
        self._recompute()

    def set_sort_key(self, key: SortKey | str) -> None:
        self._sort_key = SortKey(key)
        self._recompute()

    # -- output ------------------------------------------------------------

    def export(self, fmt: ExportFormat | str) -> ExportArtifact | None:
        artifact = exporter.export(self._visible, fmt)
        if artifact is None:
            logger.info("Nothing to export (%s)", ExportFormat(fmt).value)
        return artifact

    def summary(self) -> dict[str, int]:
        return {"visible_count": len(self._visible), "total_count": len(self._products)}
