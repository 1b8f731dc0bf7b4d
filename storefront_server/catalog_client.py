"""Storefront catalog API client."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .models import Product

logger = logging.getLogger(__name__)

CATEGORIES: dict[str, str] = {
    "all": "All items",
    "drinks": "Drinks",
    "fruit": "Fruit",
    "bakery": "Bakery",
}


class FetchFailure(Exception):
    """The catalog could not be loaded."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogClient:
    """Client for the storefront product catalog."""

    BASE_URL = "https://uxdlyqjm9i.execute-api.eu-west-1.amazonaws.com"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            base_url: Catalog API base URL (default: BASE_URL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used to stub the API in tests
        """
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def fetch_products(self, category: str = "all") -> list[Product]:
        """
        Fetch the products of a category.

        Args:
            category: Category id (all, drinks, fruit, bakery)

        Returns:
            List of products in catalog order

        Raises:
            FetchFailure: If the request fails or the payload is not a product list
        """
        logger.info(f"Fetching products: category={category}")

        try:
            response = self.client.get("/s", params={"category": category})
        except httpx.HTTPError as e:
            logger.error(f"Catalog request failed: {e}")
            raise FetchFailure(f"Failed to fetch products: {e}") from e

        if not response.is_success:
            logger.error(f"Catalog returned status {response.status_code}")
            raise FetchFailure("Failed to fetch products", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise FetchFailure("Catalog response is not valid JSON") from e

        products = self._parse_products(data)
        logger.info(f"Fetched {len(products)} product(s) for category={category}")
        return products

    def search_products(self, query: Optional[str] = None, category: str = "all") -> list[Product]:
        """
        Search products by name or description.

        An empty query returns the whole category.

        Raises:
            FetchFailure: If the catalog cannot be loaded
        """
        products = self.fetch_products(category)
        if not query:
            return products

        term = query.strip().lower()
        return [
            product
            for product in products
            if term in product.name.lower() or term in product.description.lower()
        ]

    def get_product(self, product_id: int, category: str = "all") -> Optional[Product]:
        """Look up a product by id, None if the catalog does not list it."""
        for product in self.fetch_products(category):
            if product.id == product_id:
                return product
        return None

    def _parse_products(self, data: Any) -> list[Product]:
        """Parse the catalog payload into products."""
        if not isinstance(data, list):
            raise FetchFailure("Unexpected catalog payload")

        try:
            return [Product.model_validate(item) for item in data]
        except ValidationError as e:
            logger.error(f"Invalid product in catalog payload: {e}")
            raise FetchFailure("Catalog returned invalid product data") from e

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
