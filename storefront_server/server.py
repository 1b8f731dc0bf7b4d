"""MCP Server for the storefront."""

import asyncio
import json
import logging
import os
from collections.abc import Iterable
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from .cart import CartEngine
from .catalog_client import CATEGORIES, CatalogClient, FetchFailure
from .favorites import FavoritesTracker
from .models import CartSnapshot, Product
from .money import format_price

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-mcp-server")

FETCH_FAILED_MESSAGE = "Failed to load products. Please try again."

# Initialize server
app = Server("storefront-mcp-server")

# Global state
catalog_client: CatalogClient
cart_engine: CartEngine
favorites: FavoritesTracker
product_cache: dict[int, Product] = {}


def init_state(
    client: CatalogClient,
    engine: Optional[CartEngine] = None,
    tracker: Optional[FavoritesTracker] = None,
) -> None:
    """Install the catalog client, cart and favorites used by the tools."""
    global catalog_client, cart_engine, favorites

    catalog_client = client
    cart_engine = engine if engine is not None else CartEngine()
    favorites = tracker if tracker is not None else FavoritesTracker()
    product_cache.clear()
    remember_products(cart_engine.known_products)


def remember_products(products: Iterable[Product]) -> None:
    """Cache products from a successful fetch for later cart lookups."""
    for product in products:
        product_cache[product.id] = product


def find_product(product_id: int) -> Optional[Product]:
    """
    Resolve a product id, fetching the full catalog on a cache miss.

    Raises:
        FetchFailure: If the catalog has to be fetched and cannot be loaded
    """
    if product_id in product_cache:
        return product_cache[product_id]

    remember_products(catalog_client.fetch_products("all"))
    return product_cache.get(product_id)


def format_products(products: list[Product], tracker: Optional[FavoritesTracker] = None) -> str:
    """Format products as readable text."""
    result_lines = [f"Found {len(products)} product(s):\n"]
    for i, product in enumerate(products, 1):
        liked = " ♥" if tracker is not None and tracker.is_liked(product.id) else ""
        result_lines.append(f"\n{i}. {product.name}{liked}")
        result_lines.append(f"   ID: {product.id}")
        if product.type:
            result_lines.append(f"   Category: {product.type}")
        if product.description:
            result_lines.append(f"   Description: {product.description}")
        result_lines.append(f"   Price: {format_price(product.price)}")
        result_lines.append(f"   Rating: {product.rating}")
        result_lines.append(f"   Stock: {stock_label(product)}")
    return "\n".join(result_lines)


def stock_label(product: Product) -> str:
    if product.available == 0:
        return "Out of stock"
    if product.available >= 10:
        return "Available"
    return f"Only {product.available} left"


def format_cart(snapshot: CartSnapshot) -> str:
    """Format the cart with its free items and totals."""
    if not snapshot.lines and not snapshot.offer_lines:
        return "Your cart is empty"

    result_lines = [f"Shopping Cart ({snapshot.item_count} items):\n"]
    for i, line in enumerate(snapshot.lines, 1):
        result_lines.append(f"\n{i}. {line.product.name}")
        result_lines.append(f"   Product ID: {line.product.id}")
        result_lines.append(f"   Price: {format_price(line.product.price)}")
        result_lines.append(f"   Quantity: {line.quantity}")
        if line.quantity >= line.product.available:
            result_lines.append("   Max quantity reached")
        result_lines.append(f"   Subtotal: {format_price(line.line_total)}")

    if snapshot.offer_lines:
        result_lines.append("\nFree items:")
        for offer in snapshot.offer_lines:
            result_lines.append(f"\n- {offer.product.name} ({offer.offer_type})")
            result_lines.append(f"   {offer.quantity} × FREE")

    result_lines.append(f"\n{'='*50}")
    result_lines.append(f"Subtotal: {format_price(snapshot.subtotal)}")
    if snapshot.discount > 0:
        result_lines.append(f"Discount: -{format_price(snapshot.discount)}")
    result_lines.append(f"Total: {format_price(snapshot.total)}")
    return "\n".join(result_lines)


def cart_payload(snapshot: CartSnapshot) -> dict[str, Any]:
    """JSON-ready cart with formatted money alongside the exact values."""
    data = snapshot.model_dump(mode="json")
    data["formatted"] = {
        "subtotal": format_price(snapshot.subtotal),
        "discount": format_price(snapshot.discount),
        "total": format_price(snapshot.total),
    }
    return data


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("storefront://cart"),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current shopping cart contents, free items and totals",
        ),
        Resource(
            uri=AnyUrl("storefront://liked"),
            name="Liked Items",
            mimeType="application/json",
            description="Ids of the products marked as liked",
        ),
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    uri_str = str(uri)

    if uri_str == "storefront://cart":
        return json.dumps(cart_payload(cart_engine.snapshot()), indent=2)

    elif uri_str == "storefront://liked":
        return json.dumps({"liked": sorted(favorites.liked_ids())}, indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="storefront_list_categories",
            description="List the product categories of the storefront",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_search_products",
            description="Browse or search products by name or description, optionally within a category",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search term (optional, lists the whole category when omitted)",
                    },
                    "category": {
                        "type": "string",
                        "enum": list(CATEGORIES),
                        "description": "Category id (default: all)",
                        "default": "all",
                    },
                },
            },
        ),
        Tool(
            name="storefront_add_to_cart",
            description="Add a product to the shopping cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "integer",
                        "description": "Product ID to add to cart",
                    },
                    "quantity": {
                        "type": "integer",
                        "description": "Quantity to add (default: 1)",
                        "default": 1,
                    },
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_update_cart_quantity",
            description="Set the quantity of a product in the shopping cart (0 removes it)",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "integer",
                        "description": "Product ID to update",
                    },
                    "quantity": {
                        "type": "integer",
                        "description": "New quantity to set",
                    },
                },
                "required": ["product_id", "quantity"],
            },
        ),
        Tool(
            name="storefront_remove_from_cart",
            description="Remove a product from the shopping cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "integer",
                        "description": "Product ID to remove from cart",
                    },
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_get_cart",
            description="Get cart contents with free offer items, subtotal, discount and total",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_clear_cart",
            description="Remove everything from the shopping cart",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_toggle_like",
            description="Like or unlike a product",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "integer",
                        "description": "Product ID to like or unlike",
                    },
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_get_liked",
            description="List the liked products",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "storefront_list_categories":
            result_lines = ["Categories:"]
            for category_id, category_name in CATEGORIES.items():
                result_lines.append(f"- {category_id}: {category_name}")
            return _text("\n".join(result_lines))

        elif name == "storefront_search_products":
            query = arguments.get("query")
            category = arguments.get("category", "all")

            if category not in CATEGORIES:
                return _text(f"Unknown category: {category}")

            try:
                products = catalog_client.search_products(query=query, category=category)
            except FetchFailure as e:
                logger.error(f"Search failed: {e}")
                return _text(FETCH_FAILED_MESSAGE)

            remember_products(products)

            if not products:
                return _text(f"No products found for: {query or category}")

            return _text(format_products(products, favorites))

        elif name == "storefront_add_to_cart":
            product_id = int(arguments["product_id"])
            quantity = int(arguments.get("quantity", 1))

            if quantity < 1:
                return _text("Quantity must be at least 1")

            try:
                product = find_product(product_id)
            except FetchFailure as e:
                logger.error(f"Product lookup failed: {e}")
                return _text(FETCH_FAILED_MESSAGE)

            if product is None:
                return _text(f"Product {product_id} not found")

            if product.available == 0:
                return _text(f"{product.name} is out of stock")

            in_cart = cart_engine.quantity_of(product_id)
            if in_cart + quantity > product.available:
                return _text(
                    f"Max quantity reached: only {product.available} of {product.name} available "
                    f"({in_cart} already in cart)"
                )

            for _ in range(quantity):
                cart_engine.add(product)

            result = f"Added {product.name} (quantity: {quantity}) to cart"
            offers = [offer.offer_type for offer in cart_engine.offer_lines]
            if offers:
                result += f"\nActive offers: {', '.join(offers)}"
            return _text(result)

        elif name == "storefront_update_cart_quantity":
            product_id = int(arguments["product_id"])
            quantity = int(arguments["quantity"])

            line = cart_engine.find_line(product_id)
            if line is None:
                return _text(f"Product {product_id} is not in your cart")

            if quantity > line.product.available:
                return _text(
                    f"Max quantity reached: only {line.product.available} of {line.product.name} available"
                )

            cart_engine.set_quantity(product_id, quantity)

            if quantity <= 0:
                return _text(f"Removed {line.product.name} from cart")
            return _text(f"Updated {line.product.name} to quantity {quantity}")

        elif name == "storefront_remove_from_cart":
            product_id = int(arguments["product_id"])

            line = cart_engine.find_line(product_id)
            cart_engine.remove(product_id)

            if line is None:
                return _text(f"Product {product_id} is not in your cart")
            return _text(f"Removed {line.product.name} from cart")

        elif name == "storefront_get_cart":
            return _text(format_cart(cart_engine.snapshot()))

        elif name == "storefront_clear_cart":
            cart_engine.clear()
            return _text("Cart cleared")

        elif name == "storefront_toggle_like":
            product_id = int(arguments["product_id"])
            liked = favorites.toggle(product_id)
            return _text(f"Product {product_id} {'liked' if liked else 'unliked'}")

        elif name == "storefront_get_liked":
            if favorites.count() == 0:
                return _text("No liked items yet")

            try:
                products = catalog_client.fetch_products("all")
            except FetchFailure as e:
                logger.error(f"Liked items lookup failed: {e}")
                return _text(FETCH_FAILED_MESSAGE)

            remember_products(products)
            liked_products = favorites.liked_products(products)
            if not liked_products:
                return _text("None of your liked items are in the catalog")
            return _text(format_products(liked_products, favorites))

        else:
            return _text(f"Unknown tool: {name}")

    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return _text(f"Error: {str(e)}")


def create_catalog_client() -> CatalogClient:
    """Build the catalog client from STOREFRONT_* environment variables."""
    base_url = os.environ.get("STOREFRONT_CATALOG_URL")
    timeout = float(os.environ.get("STOREFRONT_TIMEOUT", "30"))
    return CatalogClient(base_url=base_url, timeout=timeout)


def load_initial_products(client: CatalogClient) -> list[Product]:
    """Prefetch the catalog to seed the cart, an empty list if it is unreachable."""
    try:
        return client.fetch_products("all")
    except FetchFailure as e:
        logger.warning(f"Could not prefetch catalog: {e}")
        return []


async def main() -> None:
    """Main entry point for the MCP server."""
    client = create_catalog_client()
    logger.info(f"Catalog endpoint: {client.base_url}")

    init_state(client, CartEngine(products=load_initial_products(client)))

    logger.info("Starting Storefront MCP Server...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
