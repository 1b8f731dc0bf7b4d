"""Cart engine: owns cart state and derives offers and totals."""

import logging
import threading
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from .models import CartLine, CartSnapshot, OfferLine, Product
from .offers import DEFAULT_RULES, OfferRule, compute_offers

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class CartEngine:
    """
    Single owner of the shopping cart.

    add, set_quantity, remove and clear are the only ways to change the cart.
    Offer lines are rebuilt after every change and totals are computed on
    demand. Readers get tuples of frozen models, never the internal state.
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        rules: Iterable[OfferRule] = DEFAULT_RULES,
    ) -> None:
        """
        Initialize an empty cart.

        Args:
            products: Known catalog products the cart was seeded with
            rules: Offer rule table evaluated on every change
        """
        self._known_products: tuple[Product, ...] = tuple(products)
        self._rules: tuple[OfferRule, ...] = tuple(rules)
        self._lines: tuple[CartLine, ...] = ()
        self._offer_lines: tuple[OfferLine, ...] = ()
        self._lock = threading.RLock()

    # State transitions

    def add(self, product: Product) -> None:
        """Add one unit of product, appending a new line on first add."""
        with self._lock:
            if self.find_line(product.id) is not None:
                lines = tuple(
                    line.model_copy(update={"quantity": line.quantity + 1})
                    if line.product.id == product.id
                    else line
                    for line in self._lines
                )
            else:
                lines = self._lines + (CartLine(product=product, quantity=1),)

            logger.debug(f"Added product {product.id} ({product.name})")
            self._replace_lines(lines)

    def set_quantity(self, product_id: int, quantity: int) -> None:
        """
        Set the quantity of a cart line.

        A quantity of zero or less removes the line. Product ids that are not
        in the cart are ignored.
        """
        with self._lock:
            if quantity <= 0:
                lines = tuple(line for line in self._lines if line.product.id != product_id)
            else:
                lines = tuple(
                    line.model_copy(update={"quantity": quantity})
                    if line.product.id == product_id
                    else line
                    for line in self._lines
                )

            logger.debug(f"Set quantity of product {product_id} to {quantity}")
            self._replace_lines(lines)

    def remove(self, product_id: int) -> None:
        """Remove the line for product_id."""
        self.set_quantity(product_id, 0)

    def clear(self) -> None:
        """Empty the cart."""
        with self._lock:
            self._lines = ()
            self._offer_lines = ()
            logger.debug("Cart cleared")

    def apply_offers(self) -> None:
        """Rebuild offer lines from the current lines."""
        with self._lock:
            self._offer_lines = compute_offers(self._lines, self._rules)

    def _replace_lines(self, lines: tuple[CartLine, ...]) -> None:
        self._lines = lines
        self.apply_offers()

    # Queries

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._lines

    @property
    def offer_lines(self) -> tuple[OfferLine, ...]:
        return self._offer_lines

    @property
    def known_products(self) -> tuple[Product, ...]:
        return self._known_products

    @property
    def rules(self) -> tuple[OfferRule, ...]:
        return self._rules

    def find_line(self, product_id: int) -> Optional[CartLine]:
        """Return the cart line for product_id, or None."""
        return next((line for line in self._lines if line.product.id == product_id), None)

    def quantity_of(self, product_id: int) -> int:
        line = self.find_line(product_id)
        return line.quantity if line else 0

    def is_empty(self) -> bool:
        return not self._lines and not self._offer_lines

    def subtotal(self) -> Decimal:
        """Sum of unit price times quantity over cart lines."""
        return sum((line.line_total for line in self._lines), ZERO)

    def discount(self) -> Decimal:
        """Value of the free units granted by offers."""
        return sum((offer.line_value for offer in self._offer_lines), ZERO)

    def total(self) -> Decimal:
        return self.subtotal() - self.discount()

    def total_item_count(self) -> int:
        """Paid units plus free units."""
        return sum(line.quantity for line in self._lines) + sum(
            offer.quantity for offer in self._offer_lines
        )

    def snapshot(self) -> CartSnapshot:
        """Consistent read-only view of lines, offers and totals."""
        with self._lock:
            subtotal = self.subtotal()
            discount = self.discount()
            return CartSnapshot(
                lines=self._lines,
                offer_lines=self._offer_lines,
                subtotal=subtotal,
                discount=discount,
                total=subtotal - discount,
                item_count=self.total_item_count(),
            )
