"""HTTP server exposing the storefront as a REST API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from . import server as state
from .cart import CartEngine
from .catalog_client import CATEGORIES, FetchFailure
from .money import format_price

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-http-server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    # Startup
    logger.info("Starting Storefront HTTP Server...")
    client = state.create_catalog_client()
    state.init_state(client, CartEngine(products=state.load_initial_products(client)))

    yield

    # Shutdown
    logger.info("Shutting down Storefront HTTP Server...")
    client.close()


app = FastAPI(
    title="Storefront MCP Server",
    description="HTTP API for browsing the storefront catalog and building an order",
    version="0.1.0",
    lifespan=lifespan,
)


# Request/Response Models
class AddToCartRequest(BaseModel):
    product_id: int
    quantity: int = 1


class UpdateQuantityRequest(BaseModel):
    product_id: int
    quantity: int


class ProductRequest(BaseModel):
    product_id: int


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Storefront MCP Server",
        "version": "0.1.0",
        "description": "HTTP API for browsing the storefront catalog and building an order",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "products": {"categories": "GET /categories", "list": "GET /products?category=&q="},
            "cart": {
                "get": "GET /cart",
                "add": "POST /cart/add",
                "update": "POST /cart/update",
                "remove": "POST /cart/remove",
                "clear": "POST /cart/clear",
            },
            "liked": {"list": "GET /liked", "toggle": "POST /liked/toggle"},
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "cart_items": state.cart_engine.total_item_count(),
    }


# Product endpoints
@app.get("/categories")
async def list_categories():
    """List product categories."""
    return {"categories": [{"id": key, "name": value} for key, value in CATEGORIES.items()]}


@app.get("/products")
async def list_products(category: str = "all", q: Optional[str] = None):
    """List products of a category, optionally filtered by a search term."""
    if category not in CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")

    try:
        products = state.catalog_client.search_products(query=q, category=category)
    except FetchFailure as e:
        logger.error(f"Product fetch error: {e}")
        raise HTTPException(status_code=502, detail=state.FETCH_FAILED_MESSAGE)
    except Exception as e:
        logger.error(f"Product listing error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    state.remember_products(products)
    return {
        "count": len(products),
        "products": [
            {
                **product.model_dump(mode="json"),
                "formatted_price": format_price(product.price),
                "liked": state.favorites.is_liked(product.id),
            }
            for product in products
        ],
    }


# Cart endpoints
@app.get("/cart")
async def get_cart():
    """Get current shopping cart."""
    return state.cart_payload(state.cart_engine.snapshot())


@app.post("/cart/add")
async def add_to_cart(request: AddToCartRequest):
    """Add a product to the cart."""
    if request.quantity < 1:
        raise HTTPException(status_code=400, detail="quantity must be >= 1")

    try:
        product = state.find_product(request.product_id)
    except FetchFailure as e:
        logger.error(f"Product lookup error: {e}")
        raise HTTPException(status_code=502, detail=state.FETCH_FAILED_MESSAGE)
    except Exception as e:
        logger.error(f"Add to cart error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    in_cart = state.cart_engine.quantity_of(product.id)
    if in_cart + request.quantity > product.available:
        raise HTTPException(status_code=409, detail="Max quantity reached")

    for _ in range(request.quantity):
        state.cart_engine.add(product)

    return state.cart_payload(state.cart_engine.snapshot())


@app.post("/cart/update")
async def update_quantity(request: UpdateQuantityRequest):
    """Set the quantity of a cart line; zero or less removes it."""
    line = state.cart_engine.find_line(request.product_id)
    if line is not None and request.quantity > line.product.available:
        raise HTTPException(status_code=409, detail="Max quantity reached")

    state.cart_engine.set_quantity(request.product_id, request.quantity)
    return state.cart_payload(state.cart_engine.snapshot())


@app.post("/cart/remove")
async def remove_from_cart(request: ProductRequest):
    """Remove a product from the cart."""
    state.cart_engine.remove(request.product_id)
    return state.cart_payload(state.cart_engine.snapshot())


@app.post("/cart/clear")
async def clear_cart():
    """Empty the cart."""
    state.cart_engine.clear()
    return state.cart_payload(state.cart_engine.snapshot())


# Liked endpoints
@app.get("/liked")
async def get_liked():
    """Get liked product ids."""
    return {"count": state.favorites.count(), "liked": sorted(state.favorites.liked_ids())}


@app.post("/liked/toggle")
async def toggle_liked(request: ProductRequest):
    """Like or unlike a product."""
    liked = state.favorites.toggle(request.product_id)
    return {"product_id": request.product_id, "liked": liked, "count": state.favorites.count()}


def run_http_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """
    Run the HTTP server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable hot reloading (default: False)
    """
    import uvicorn

    logger.info(f"Starting server on {host}:{port} (reload={'enabled' if reload else 'disabled'})")

    if reload:
        # Hot reloading needs an import string
        uvicorn.run(
            "storefront_server.http_server:app",
            host=host,
            port=port,
            reload=True,
            log_level="info",
        )
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server(reload=True)
