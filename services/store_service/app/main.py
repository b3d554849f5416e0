"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.store_service.cache import TTLCache
from services.store_service.routers import (
    admin_catalog_router,
    admin_delivery_router,
    admin_orders_router,
    catalog_router,
    checkout_router,
    delivery_router,
    orders_router,
)
from slowapi.errors import RateLimitExceeded


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="Storefront Store Service",
        version="0.1.0",
        description="Checkout, payment review and order fulfilment for the storefront.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Catalog and delivery settings reads, invalidated on write
    app.state.store_cache = TTLCache(settings.PRODUCT_CACHE_TTL_SECONDS)

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Public store routes (catalog, delivery, checkout, orders)
    app.include_router(catalog_router, prefix="/store")
    app.include_router(delivery_router, prefix="/store")
    app.include_router(checkout_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")

    # Admin routes (payment review, delivery settings, product maintenance)
    app.include_router(admin_orders_router, prefix="/admin/store")
    app.include_router(admin_delivery_router, prefix="/admin/store")
    app.include_router(admin_catalog_router, prefix="/admin/store")

    return app


app = create_app()
