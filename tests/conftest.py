"""Shared fixtures for storefront tests."""

import httpx
import pytest

from storefront_server import server
from storefront_server.cart import CartEngine
from storefront_server.catalog_client import CatalogClient
from storefront_server.favorites import FavoritesTracker
from storefront_server.models import Product

CATALOG = [
    {
        "id": 1,
        "type": "drinks",
        "name": "Coca-Cola",
        "description": "Classic soft drink, 330ml can",
        "rating": 4.6,
        "img": "https://example.com/coke.jpg",
        "price": "£1.00",
        "available": 20,
    },
    {
        "id": 2,
        "type": "bakery",
        "name": "Butter Croissant",
        "description": "Freshly baked every morning",
        "rating": 4.8,
        "img": "https://example.com/croissant.jpg",
        "price": "£2.00",
        "available": 10,
    },
    {
        "id": 3,
        "type": "fruit",
        "name": "Bananas",
        "description": "Bunch of five ripe bananas",
        "rating": 4.1,
        "img": "https://example.com/bananas.jpg",
        "price": "£0.85",
        "available": 3,
    },
    {
        "id": 4,
        "type": "fruit",
        "name": "Mango",
        "description": "Sweet Alphonso mango",
        "rating": 3.9,
        "img": "https://example.com/mango.jpg",
        "price": "£1.35",
        "available": 0,
    },
]


def catalog_handler(request: httpx.Request) -> httpx.Response:
    """Serve CATALOG from /s the way the real endpoint does."""
    if request.url.path != "/s":
        return httpx.Response(404)
    category = request.url.params.get("category", "all")
    items = [item for item in CATALOG if category == "all" or item["type"] == category]
    return httpx.Response(200, json=items)


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="Service Unavailable")


@pytest.fixture
def coke() -> Product:
    return Product.model_validate(CATALOG[0])


@pytest.fixture
def croissant() -> Product:
    return Product.model_validate(CATALOG[1])


@pytest.fixture
def bananas() -> Product:
    return Product.model_validate(CATALOG[2])


@pytest.fixture
def cart() -> CartEngine:
    return CartEngine()


@pytest.fixture
def catalog_client():
    client = CatalogClient(base_url="https://catalog.test", transport=httpx.MockTransport(catalog_handler))
    yield client
    client.close()


@pytest.fixture
def failing_catalog_client():
    client = CatalogClient(base_url="https://catalog.test", transport=httpx.MockTransport(failing_handler))
    yield client
    client.close()


@pytest.fixture
def server_state(catalog_client):
    """Install a fresh cart and favorites behind the MCP tools."""
    server.init_state(catalog_client, CartEngine(), FavoritesTracker())
    return server
