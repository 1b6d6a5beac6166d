"""Order read endpoints.

Provides REST endpoints for:
- Post-checkout order summary, looked up by PaymentIntent or order ID
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.status import HTTP_400_BAD_REQUEST

from fulfillment.models import ErrorResponse, OrderSummary
from fulfillment.services.checkout_service import CheckoutService

from storefront_api.dependencies import get_checkout_service

router = APIRouter(tags=["orders"])


@router.get(
    "/order-summary",
    summary="Get an order summary",
    description="""
Return an order with its line items and totals.

The order created by the payment webhook may not exist yet right after
checkout; clients should poll on 404.
""",
    response_model=OrderSummary,
    responses={404: {"description": "Order not found", "model": ErrorResponse}},
)
async def get_order_summary(
    payment_intent: str | None = Query(
        default=None,
        description="PaymentIntent ID",
        examples=["pi_3ABC123DEF456"],
    ),
    order_id: str | None = Query(
        default=None,
        description="Order ID",
        examples=["ORD-1A2B3C4D5E6F"],
    ),
    checkout: CheckoutService = Depends(get_checkout_service),
) -> OrderSummary:
    """Get the summary of an order."""
    if not payment_intent and not order_id:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail="payment_intent or order_id is required",
        )
    return checkout.get_order_summary(payment_reference=payment_intent, order_id=order_id)
