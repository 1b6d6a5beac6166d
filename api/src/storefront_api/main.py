"""FastAPI application for the cocktail storefront fulfillment backend.

This package provides REST endpoints for:
- Stripe payment webhooks (order materialization and cancellation)
- Checkout (PaymentIntent creation)
- Inventory availability and order summaries
- Health checks
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from fulfillment.config import get_settings
from fulfillment.utils.logging import configure_logging, get_logger

from storefront_api.exceptions import register_exception_handlers
from storefront_api.middleware import CorrelationIdMiddleware
from storefront_api.routes import (
    inventory_router,
    orders_router,
    payments_router,
    webhooks_router,
)

configure_logging(get_settings().log_level)
logger = get_logger(__name__)

app = FastAPI(
    title="Cocktail Storefront API",
    description="Checkout, inventory and payment webhook endpoints",
    version="0.1.0",
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Stripe is configured to call /webhooks/stripe directly
app.include_router(webhooks_router)
app.include_router(payments_router, prefix="/api")
app.include_router(inventory_router, prefix="/api")
app.include_router(orders_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "storefront-api",
        "environment": get_settings().environment,
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "storefront_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
