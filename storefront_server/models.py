"""Data models for storefront entities."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .money import parse_price


class Product(BaseModel):
    """Represents a catalog product."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Product ID")
    type: str = Field(default="", description="Category tag (drinks, fruit, bakery...)")
    name: str = Field(description="Product name")
    description: str = Field(default="", description="Product description")
    rating: float = Field(default=0.0, description="Product rating")
    img: Optional[str] = Field(None, description="Product image URL")
    price: Decimal = Field(ge=0, description="Unit price in GBP")
    available: int = Field(default=0, ge=0, description="Units in stock")

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal:
        return parse_price(value)


class CartLine(BaseModel):
    """A product the shopper intends to buy."""

    model_config = ConfigDict(frozen=True)

    product: Product
    quantity: int = Field(gt=0, description="Quantity of the product")

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class OfferLine(BaseModel):
    """Units granted for free by a promotion."""

    model_config = ConfigDict(frozen=True)

    product: Product
    quantity: int = Field(gt=0, description="Number of free units")
    offer_type: str = Field(description="Promotion label, e.g. 'Buy 6 get 1 free'")

    @property
    def line_value(self) -> Decimal:
        return self.product.price * self.quantity


class CartSnapshot(BaseModel):
    """Read-only view of the cart handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[CartLine, ...] = Field(default=(), description="Cart lines in insertion order")
    offer_lines: tuple[OfferLine, ...] = Field(default=(), description="Free items from offers")
    subtotal: Decimal = Field(default=Decimal("0.00"), description="Sum of cart lines")
    discount: Decimal = Field(default=Decimal("0.00"), description="Value of free items")
    total: Decimal = Field(default=Decimal("0.00"), description="Subtotal minus discount")
    item_count: int = Field(default=0, description="Paid plus free units")
