"""Liked items bookkeeping."""

from collections.abc import Iterable

from .models import Product


class FavoritesTracker:
    """Set of product ids the shopper has liked."""

    def __init__(self) -> None:
        self._liked: set[int] = set()

    def toggle(self, product_id: int) -> bool:
        """Flip the liked state of product_id and return the new state."""
        if product_id in self._liked:
            self._liked.discard(product_id)
            return False
        self._liked.add(product_id)
        return True

    def is_liked(self, product_id: int) -> bool:
        return product_id in self._liked

    def count(self) -> int:
        return len(self._liked)

    def liked_ids(self) -> frozenset[int]:
        return frozenset(self._liked)

    def liked_products(self, products: Iterable[Product]) -> list[Product]:
        """Keep the liked products of a catalog listing, in listing order."""
        return [product for product in products if product.id in self._liked]
