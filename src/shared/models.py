"""Shared data models used across the application."""

from __future__ import annotations

import hashlib
import json
import math
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.shared.config import settings
from src.shared.constants import (
    ALL,
    CATEGORIES,
    CONDITIONS,
    COUNTRIES,
    CURRENCIES,
    ITEMS_PER_PAGE_OPTIONS,
)


class SearchStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class SortKey(str, Enum):
    PRICE_LOW_TO_HIGH = "price_low_to_high"
    PRICE_HIGH_TO_LOW = "price_high_to_low"
    BRAND_ALPHA = "brand_alpha"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLS = "xls"
    PDF = "pdf"


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def _record_digest(data: dict[str, Any]) -> str:
    """Deterministic 12-char hex id for records that arrive without one."""
    raw = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.md5(raw.encode()).hexdigest()[:12]


class Product(BaseModel):
    """A product record as returned by the search provider.

    Records come from a generative model, so every field is optional on
    the wire and coerced into a predictable shape here. ``price == 0``
    means the price is unknown.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    brand: str = ""
    model: str = ""
    price: float = 0.0
    currency: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    supplier: str = ""
    product_url: str = Field(default="", alias="productUrl")
    specs: dict[str, str] = Field(default_factory=dict)
    condition: str = ""
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _ensure_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id"):
            data = {**data, "id": _record_digest(data)}
        return data

    @field_validator(
        "id", "brand", "model", "currency", "image_url", "supplier", "product_url", "condition",
        mode="before",
    )
    @classmethod
    def _as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("price", mode="before")
    @classmethod
    def _as_price(cls, value: Any) -> float:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
        try:
            price = float(value)
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(price) or price < 0:
            return 0.0
        return price

    @field_validator("specs", mode="before")
    @classmethod
    def _as_specs(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(k): str(v) for k, v in value.items() if v is not None}

    def spec(self, key: str, default: str | None = None) -> str | None:
        """Look up a spec attribute; most keys are absent on most products."""
        return self.specs.get(key, default)


class CitationWeb(BaseModel):
    uri: str = ""
    title: str = ""


class Citation(BaseModel):
    """A grounding source reported alongside search results."""

    web: CitationWeb | None = None


# ---------------------------------------------------------------------------
# Search query
# ---------------------------------------------------------------------------

class SearchQuery(BaseModel):
    """Structured query sent to the search provider."""

    keyword: str = "Combi Oven"
    brand: str = ""
    model: str = ""
    category: str = "Cooking"
    countries: list[str] = Field(default_factory=lambda: ["Saudi Arabia", "UAE"])
    price_min: float | None = None
    price_max: float | None = None
    condition: str = "New"
    currency: str = Field(default_factory=lambda: settings.default_currency)
    supplier_websites: str = ""
    items_per_page: int = 20

    @field_validator("items_per_page")
    @classmethod
    def _known_page_size(cls, value: int) -> int:
        if value not in ITEMS_PER_PAGE_OPTIONS:
            raise ValueError(f"items_per_page must be one of {ITEMS_PER_PAGE_OPTIONS}")
        return value

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if value not in CATEGORIES:
            raise ValueError(f"category must be one of {CATEGORIES}")
        return value

    @field_validator("condition")
    @classmethod
    def _known_condition(cls, value: str) -> str:
        if value not in CONDITIONS:
            raise ValueError(f"condition must be one of {CONDITIONS}")
        return value

    @field_validator("currency", mode="before")
    @classmethod
    def _known_currency(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
        if value not in CURRENCIES:
            raise ValueError(f"currency must be one of {CURRENCIES}")
        return value

    def supplier_hosts(self) -> list[str]:
        return [line.strip() for line in self.supplier_websites.splitlines() if line.strip()]


class SavedSearch(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    filters: SearchQuery
    timestamp: int


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


# ---------------------------------------------------------------------------
# Refinement state
# ---------------------------------------------------------------------------

class FacetVocabulary(BaseModel):
    """Filter options derived from one product collection."""

    model_config = ConfigDict(frozen=True)

    brands: list[str] = Field(default_factory=lambda: [ALL])
    models: list[str] = Field(default_factory=lambda: [ALL])
    suppliers: list[str] = Field(default_factory=lambda: [ALL])
    spec_values: dict[str, list[str]] = Field(default_factory=dict)
    countries: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    min_price: int = 0
    max_price: int = 0

    @property
    def price_range_enabled(self) -> bool:
        return self.max_price > self.min_price


class FilterState(BaseModel):
    """User-adjustable refinement of the current result set."""

    keyword: str = ""
    brand: str = ALL
    model: str = ALL
    supplier: str = ALL
    spec_filters: dict[str, str] = Field(default_factory=dict)
    countries: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    price_min: float | None = None
    price_max: float | None = None


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------

class SearchRequest(BaseModel):
    query: SearchQuery = Field(default_factory=SearchQuery)
    session_id: str | None = None


class FilterUpdate(BaseModel):
    """Partial refinement change; only the fields that are set are applied."""

    keyword: str | None = None
    brand: str | None = None
    model: str | None = None
    supplier: str | None = None
    spec_filters: dict[str, str] | None = None
    toggle_country: str | None = None
    toggle_condition: str | None = None
    price_min: float | None = None
    price_max: float | None = None
    sort_key: SortKey | None = None


class ResultsView(BaseModel):
    session_id: str
    status: SearchStatus
    products: list[Product] = Field(default_factory=list)
    total_count: int = 0
    visible_count: int = 0
    vocabulary: FacetVocabulary = Field(default_factory=FacetVocabulary)
    filters: FilterState = Field(default_factory=FilterState)
    sort_key: SortKey = SortKey.PRICE_LOW_TO_HIGH
    citations: list[Citation] = Field(default_factory=list)
    error: str | None = None
    status_message: str = ""
    # Approximate price in local_currency per product id, only where one can be shown
    local_currency: str = ""
    converted_prices: dict[str, float] = Field(default_factory=dict)


class SearchOptions(BaseModel):
    """Choices offered by the search form."""

    categories: list[str] = Field(default_factory=lambda: list(CATEGORIES))
    conditions: list[str] = Field(default_factory=lambda: list(CONDITIONS))
    countries: list[str] = Field(default_factory=lambda: list(COUNTRIES))
    currencies: list[str] = Field(default_factory=lambda: list(CURRENCIES))
    items_per_page: list[int] = Field(default_factory=lambda: list(ITEMS_PER_PAGE_OPTIONS))


class SaveSearchRequest(BaseModel):
    name: str = Field(min_length=1)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    history: list[ChatMessage] = Field(default_factory=list)


class TextReply(BaseModel):
    text: str


class SelectionToggle(BaseModel):
    added: bool
    count: int


class ConversionReply(BaseModel):
    amount: float | None = None
    formatted: str | None = None
