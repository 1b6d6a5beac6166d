"""API routes package.

Routers are organized by area:

- webhooks: Stripe payment webhooks (mounted at the root)
- payments: PaymentIntent creation for checkout
- inventory: Stock availability queries
- orders: Order summaries

All but the webhooks router are registered in main.py with /api prefix.
"""

from storefront_api.routes.inventory import router as inventory_router
from storefront_api.routes.orders import router as orders_router
from storefront_api.routes.payments import router as payments_router
from storefront_api.routes.webhooks import router as webhooks_router

__all__ = [
    "inventory_router",
    "orders_router",
    "payments_router",
    "webhooks_router",
]
