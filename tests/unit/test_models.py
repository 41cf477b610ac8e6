"""Unit tests for shared data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.shared.models import (
    FacetVocabulary,
    FilterState,
    Product,
    SavedSearch,
    SearchOptions,
    SearchQuery,
    SearchStatus,
)


class TestProduct:
    def test_wire_aliases(self):
        p = Product.model_validate({
            "id": "x1", "brand": "Rational", "model": "iCombi",
            "imageUrl": "https://img.example/1.jpg", "productUrl": "https://shop.example/1",
        })
        assert p.image_url == "https://img.example/1.jpg"
        assert p.product_url == "https://shop.example/1"
        dumped = p.model_dump(by_alias=True)
        assert dumped["imageUrl"] == "https://img.example/1.jpg"

    def test_field_names_accepted(self):
        p = Product(id="x", image_url="a", product_url="b")
        assert (p.image_url, p.product_url) == ("a", "b")

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("1,299.50", 1299.5), (None, 0.0), ("call for price", 0.0), (-5, 0.0), ("nan", 0.0), (42, 42.0)],
    )
    def test_price_coercion(self, raw, expected):
        assert Product(id="x", price=raw).price == expected

    def test_text_fields_stripped(self):
        p = Product(id="x", brand="  Unox ", supplier=None)
        assert p.brand == "Unox"
        assert p.supplier == ""

    def test_specs_stringified(self):
        p = Product(id="x", specs={"Capacity": 10, "Gas": None})
        assert p.specs == {"Capacity": "10"}
        assert Product(id="y", specs=["not", "a", "dict"]).specs == {}

    def test_spec_lookup(self):
        p = Product(id="x", specs={"Capacity": "10 GN"})
        assert p.spec("Capacity") == "10 GN"
        assert p.spec("Weight") is None

    def test_missing_id_is_deterministic(self):
        a = Product.model_validate({"brand": "Unox", "model": "Cheftop"})
        b = Product.model_validate({"brand": "Unox", "model": "Cheftop"})
        c = Product.model_validate({"brand": "Unox", "model": "Bakerlux"})
        assert len(a.id) == 12
        assert a.id == b.id
        assert a.id != c.id

    def test_frozen(self):
        p = Product(id="x")
        with pytest.raises(ValidationError):
            p.brand = "Other"


class TestSearchQuery:
    def test_defaults(self):
        q = SearchQuery()
        assert q.keyword == "Combi Oven"
        assert q.countries == ["Saudi Arabia", "UAE"]
        assert q.items_per_page == 20

    def test_rejects_unknown_page_size(self):
        with pytest.raises(ValidationError):
            SearchQuery(items_per_page=25)

    @pytest.mark.parametrize(
        "field", [{"category": "Bakery"}, {"condition": "Broken"}, {"currency": "JPY"}],
    )
    def test_rejects_unknown_choices(self, field):
        with pytest.raises(ValidationError):
            SearchQuery(**field)

    def test_currency_normalized(self):
        assert SearchQuery(currency=" eur ").currency == "EUR"

    def test_supplier_hosts(self):
        q = SearchQuery(supplier_websites="a.example\n\n  b.example \n")
        assert q.supplier_hosts() == ["a.example", "b.example"]


def test_saved_search_round_trip():
    saved = SavedSearch(id="search_1", name="Ovens", filters=SearchQuery(brand="Unox"), timestamp=1)
    restored = SavedSearch.model_validate_json(saved.model_dump_json())
    assert restored == saved


def test_vocabulary_defaults():
    vocab = FacetVocabulary()
    assert vocab.brands == ["All"]
    assert not vocab.price_range_enabled
    assert FacetVocabulary(min_price=1, max_price=2).price_range_enabled


def test_filter_state_defaults():
    f = FilterState()
    assert (f.brand, f.model, f.supplier) == ("All", "All", "All")
    assert f.price_min is None


def test_search_status_values():
    assert SearchStatus.IN_PROGRESS.value == "in_progress"


def test_search_options():
    options = SearchOptions()
    assert options.currencies == ["USD", "EUR", "GBP", "AED", "SAR"]
    assert options.items_per_page == [10, 20, 50, 100]
    assert "Laundry" in options.categories
