"""Promotional offer rules and offer recomputation."""

import logging
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import CartLine, OfferLine, Product

logger = logging.getLogger(__name__)

# Reserved ids for reward products that are not part of the catalog.
FREE_COFFEE_ID = 999

FREE_COFFEE = Product(
    id=FREE_COFFEE_ID,
    type="drinks",
    name="Free Coffee",
    description="Complimentary coffee with croissant purchase",
    rating=4.5,
    img="https://images.unsplash.com/photo-1495474472287-4d71bcdd2085?w=300",
    price=Decimal("0.00"),
    available=100,
)


def name_contains(text: str) -> Callable[[Product], bool]:
    """Build a trigger matching products whose name contains text (case-insensitive)."""
    needle = text.lower()

    def matches(product: Product) -> bool:
        return needle in product.name.lower()

    return matches


class OfferRule(BaseModel):
    """
    A declarative promotion.

    When the first cart line whose product satisfies ``trigger`` reaches
    ``threshold`` units, ``quantity // divisor`` units of ``reward`` are granted.
    A rule without a reward grants free units of the matched product itself.
    """

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Offer type shown next to the free item")
    trigger: Callable[[Product], bool] = Field(description="Predicate selecting the trigger product")
    threshold: int = Field(gt=0, description="Minimum quantity that activates the offer")
    divisor: int = Field(gt=0, description="Units bought per free unit granted")
    reward: Optional[Product] = Field(None, description="Reward product (defaults to the trigger product)")

    def evaluate(self, lines: Sequence[CartLine]) -> Optional[OfferLine]:
        """Return the offer line this rule grants for lines, if any."""
        line = next((line for line in lines if self.trigger(line.product)), None)
        if line is None or line.quantity < self.threshold:
            return None

        free_count = line.quantity // self.divisor
        if free_count <= 0:
            return None

        return OfferLine(
            product=self.reward if self.reward is not None else line.product,
            quantity=free_count,
            offer_type=self.label,
        )


DEFAULT_RULES: tuple[OfferRule, ...] = (
    # Buy 6 cans of Coca-Cola, get 1 free
    OfferRule(
        label="Buy 6 get 1 free",
        trigger=name_contains("coca-cola"),
        threshold=6,
        divisor=6,
    ),
    # Buy 3 croissants, get a free coffee
    OfferRule(
        label="Free with 3 croissants",
        trigger=name_contains("croissant"),
        threshold=3,
        divisor=3,
        reward=FREE_COFFEE,
    ),
)


def compute_offers(
    lines: Sequence[CartLine], rules: Iterable[OfferRule] = DEFAULT_RULES
) -> tuple[OfferLine, ...]:
    """Rebuild the offer lines for lines from scratch, in rule order."""
    offer_lines = []
    for rule in rules:
        offer = rule.evaluate(lines)
        if offer is not None:
            logger.debug(f"Offer '{rule.label}' grants {offer.quantity} x {offer.product.name}")
            offer_lines.append(offer)
    return tuple(offer_lines)
