"""Compare and favorites lists: ordered product sets keyed by id."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from src.shared.models import Product


class SelectionSet:
    """Insertion-ordered set of products, unique by ``Product.id``.

    Lives independently of search results; a product stays selected after
    the result set it came from has been replaced.
    """

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._items: dict[str, Product] = {}
        for product in products:
            self._items.setdefault(product.id, product)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    def __iter__(self) -> Iterator[Product]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def get(self, product_id: str) -> Product | None:
        return self._items.get(product_id)

    def toggle(self, product: Product) -> bool:
        """Add ``product`` or remove it if present. Returns True when added."""
        if product.id in self._items:
            del self._items[product.id]
            return False
        self._items[product.id] = product
        return True

    def remove(self, product_id: str) -> bool:
        return self._items.pop(product_id, None) is not None

    def ids(self) -> set[str]:
        return set(self._items)

    def items(self) -> list[Product]:
        return list(self._items.values())
