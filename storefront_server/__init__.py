"""Storefront MCP Server - catalog browsing, cart and promotional offers."""

from .cart import CartEngine
from .catalog_client import CATEGORIES, CatalogClient, FetchFailure
from .favorites import FavoritesTracker
from .models import CartLine, CartSnapshot, OfferLine, Product
from .money import format_price, parse_price
from .offers import DEFAULT_RULES, FREE_COFFEE, OfferRule, compute_offers, name_contains

__version__ = "0.1.0"

__all__ = [
    "CATEGORIES",
    "CartEngine",
    "CartLine",
    "CartSnapshot",
    "CatalogClient",
    "DEFAULT_RULES",
    "FREE_COFFEE",
    "FavoritesTracker",
    "FetchFailure",
    "OfferLine",
    "OfferRule",
    "Product",
    "compute_offers",
    "format_price",
    "name_contains",
    "parse_price",
]
