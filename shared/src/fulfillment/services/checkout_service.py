"""Checkout: cart validation, totals, PaymentIntent creation, order summaries.

The PaymentIntent created here carries the cart in its metadata; the
webhook flow later rebuilds the order from that metadata.
"""

from decimal import ROUND_HALF_UP, Decimal

from botocore.exceptions import BotoCoreError, ClientError

from fulfillment.models import (
    CheckoutTotals,
    ErrorCode,
    FulfillmentError,
    InventoryCheckItem,
    OrderLineItemRequest,
    OrderSummary,
    OrderSummaryItem,
    PaymentIntentResult,
    UnavailableItem,
)
from fulfillment.utils.logging import get_logger

from .inventory_store import InventoryStore
from .line_items import encode_items_metadata
from .order_store import OrderStore
from .stripe_service import StripeService, StripeServiceError

logger = get_logger(__name__)

VAT_RATE = Decimal("0.21")
SHIPPING_THRESHOLD = Decimal("50")
SHIPPING_COST = Decimal("4.99")
CENTS = Decimal("0.01")


def calculate_totals(subtotal: Decimal) -> CheckoutTotals:
    """Apply VAT and shipping to a subtotal.

    Shipping is free from ``SHIPPING_THRESHOLD`` upwards.
    """
    subtotal = subtotal.quantize(CENTS, rounding=ROUND_HALF_UP)
    vat = (subtotal * VAT_RATE).quantize(CENTS, rounding=ROUND_HALF_UP)
    shipping = Decimal("0.00") if subtotal >= SHIPPING_THRESHOLD else SHIPPING_COST
    total = subtotal + vat + shipping
    return CheckoutTotals(
        subtotal=subtotal,
        vat=vat,
        shipping=shipping,
        total=total,
        amount_cents=int((total * 100).to_integral_value(rounding=ROUND_HALF_UP)),
    )


class CheckoutService:
    """Storefront-side checkout operations."""

    def __init__(
        self,
        stripe_service: StripeService,
        inventory_store: InventoryStore,
        order_store: OrderStore,
    ) -> None:
        self.stripe_service = stripe_service
        self.inventory_store = inventory_store
        self.order_store = order_store

    def create_payment_intent(
        self, items: list[OrderLineItemRequest]
    ) -> PaymentIntentResult:
        """Validate a cart against stock and open a PaymentIntent for it.

        Args:
            items: Cart line items (already validated individually)

        Returns:
            PaymentIntentResult with the client secret

        Raises:
            FulfillmentError: INVALID_ORDER_ITEMS, ITEMS_UNAVAILABLE,
                INVENTORY_CHECK_FAILED or STRIPE_API_ERROR
        """
        if not items:
            raise FulfillmentError(
                ErrorCode.INVALID_ORDER_ITEMS, {"message": "No items provided"}
            )

        unavailable = self.find_unavailable(items)
        if unavailable:
            raise FulfillmentError(
                ErrorCode.ITEMS_UNAVAILABLE,
                {"unavailable": [u.model_dump() for u in unavailable]},
            )

        subtotal = sum((item.effective_line_total for item in items), Decimal("0"))
        totals = calculate_totals(subtotal)
        if totals.amount_cents <= 0:
            raise FulfillmentError(
                ErrorCode.INVALID_ORDER_ITEMS,
                {"message": "Invalid order total", "total": str(totals.total)},
            )

        items_value, truncated = encode_items_metadata(items)
        metadata = {
            "items_count": str(len(items)),
            "subtotal": str(totals.subtotal),
            "vat": str(totals.vat),
            "shipping": str(totals.shipping),
            "items": items_value,
        }

        logger.info(
            "Checkout totals: subtotal=%s vat=%s shipping=%s total=%s",
            totals.subtotal,
            totals.vat,
            totals.shipping,
            totals.total,
        )

        try:
            intent = self.stripe_service.create_payment_intent(
                amount_cents=totals.amount_cents, metadata=metadata
            )
        except StripeServiceError as e:
            raise FulfillmentError(
                ErrorCode.STRIPE_API_ERROR,
                {"message": str(e), "stripe_error_code": e.stripe_error_code},
            ) from e

        return PaymentIntentResult(
            client_secret=intent["client_secret"],
            payment_intent_id=intent["payment_intent_id"],
            amount=intent["amount"],
            currency=self.stripe_service.currency,
            metadata_truncated=truncated,
        )

    def find_unavailable(self, items: list[OrderLineItemRequest]) -> list[UnavailableItem]:
        """Return the cart entries that cannot be fulfilled from current stock."""
        check = [
            InventoryCheckItem(
                cocktail_id=item.cocktail_id, size_id=item.size_id, quantity=item.quantity
            )
            for item in items
        ]
        try:
            statuses = self.inventory_store.check_items(check)
        except (ClientError, BotoCoreError) as e:
            logger.error("Inventory validation failed: %s", e)
            raise FulfillmentError(
                ErrorCode.INVENTORY_CHECK_FAILED, {"message": str(e)}
            ) from e
        return [
            UnavailableItem(**status.model_dump())
            for status in statuses
            if not status.available
        ]

    def get_order_summary(
        self,
        *,
        payment_reference: str | None = None,
        order_id: str | None = None,
    ) -> OrderSummary:
        """Build the post-checkout summary of an order.

        Args:
            payment_reference: PaymentIntent ID
            order_id: Order ID, used when no payment reference is given

        Raises:
            FulfillmentError: ORDER_NOT_FOUND, or ORDER_LOOKUP_FAILED on store errors
        """
        try:
            if payment_reference:
                order = self.order_store.find_by_payment_reference(payment_reference)
            elif order_id:
                order = self.order_store.get_order(order_id)
            else:
                raise ValueError("payment_reference or order_id is required")
            items = self.order_store.get_items(order.order_id) if order else []
        except (ClientError, BotoCoreError) as e:
            raise FulfillmentError(
                ErrorCode.ORDER_LOOKUP_FAILED, {"message": str(e)}
            ) from e

        if order is None:
            raise FulfillmentError(
                ErrorCode.ORDER_NOT_FOUND,
                {"payment_reference": payment_reference, "order_id": order_id},
            )

        subtotal = sum((item.line_total for item in items), Decimal("0"))
        totals = calculate_totals(subtotal)
        return OrderSummary(
            order_id=order.order_id,
            payment_reference=order.payment_reference,
            status=order.status.value,
            is_paid=order.is_paid,
            items=[
                OrderSummaryItem(
                    cocktail_id=item.cocktail_id,
                    size_id=item.size_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                )
                for item in items
            ],
            subtotal=totals.subtotal,
            vat_amount=totals.vat,
            shipping_cost=totals.shipping,
            # The amount actually charged wins over the recomputed total.
            total=order.total_amount,
        )
