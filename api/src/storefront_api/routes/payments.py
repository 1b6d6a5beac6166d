"""Payment endpoints for checkout.

Provides REST endpoints for:
- Creating a Stripe PaymentIntent for a cart (public)
"""

from fastapi import APIRouter, Depends

from fulfillment.models import ErrorResponse, PaymentIntentResult
from fulfillment.services.checkout_service import CheckoutService

from storefront_api.dependencies import get_checkout_service
from storefront_api.models.checkout import (
    CreatePaymentIntentRequest,
    ItemsUnavailableResponse,
)

router = APIRouter(tags=["payments"])


@router.post(
    "/create-payment-intent",
    summary="Create a PaymentIntent for a cart",
    description="""
Validate the cart against current stock, compute totals and create a Stripe
PaymentIntent.

**Totals:**
- VAT: 21% of the subtotal
- Shipping: 4.99, free from a subtotal of 50

The cart is stored in the PaymentIntent metadata (`items`). Carts too large
for the 500-character metadata limit are truncated and marked; the order
for such a payment will not be created automatically.
""",
    response_description="PaymentIntent client secret and amount",
    response_model=PaymentIntentResult,
    responses={
        400: {"description": "Invalid cart", "model": ErrorResponse},
        409: {"description": "Items out of stock", "model": ItemsUnavailableResponse},
        500: {"description": "Inventory check failed", "model": ErrorResponse},
        502: {"description": "Stripe API error", "model": ErrorResponse},
    },
)
async def create_payment_intent(
    request: CreatePaymentIntentRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> PaymentIntentResult:
    """Create a PaymentIntent for the submitted cart."""
    return checkout.create_payment_intent(request.items)
