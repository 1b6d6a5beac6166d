"""Webhook endpoints for external service integrations.

Provides endpoints for:
- Stripe payment webhooks (payment_intent.succeeded,
  payment_intent.payment_failed, payment_intent.canceled)

These endpoints do NOT require authentication as they receive signed
payloads; the signature is verified before any side effect.
"""

from fastapi import APIRouter, Depends, Request

from fulfillment.models import ErrorResponse, WebhookResult
from fulfillment.services.payment_event_receiver import PaymentEventReceiver
from fulfillment.utils.logging import get_logger

from storefront_api.dependencies import get_payment_event_receiver

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe payment webhooks. Handles:
- payment_intent.succeeded: Creates the order and its line items, then decrements stock
- payment_intent.payment_failed / payment_intent.canceled: Cancels the unpaid order

Other event types are acknowledged and ignored.

**No authentication required** - signature is verified using the Stripe webhook secret.

**Idempotent**: Redelivered events return 200 with 'duplicate' (or 'unchanged') result.
""",
    response_model=WebhookResult,
    responses={
        200: {
            "description": "Event received and processed (or acknowledged)",
            "model": WebhookResult,
        },
        400: {
            "description": "Invalid signature, malformed payload or processing failure",
            "model": ErrorResponse,
        },
    },
)
async def handle_stripe_webhook(
    request: Request,
    receiver: PaymentEventReceiver = Depends(get_payment_event_receiver),
) -> WebhookResult:
    """Handle incoming Stripe webhook events.

    The raw body is passed through untouched; signature verification
    depends on the exact bytes Stripe signed.
    """
    payload = await request.body()
    return receiver.handle(payload, request.headers.get("Stripe-Signature"))
