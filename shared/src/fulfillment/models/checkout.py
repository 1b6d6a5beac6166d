"""Checkout models for PaymentIntent creation and order summaries."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .inventory import InventoryStatus


class CheckoutTotals(BaseModel):
    """Cart totals in major units, plus the charge amount in cents."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Field(..., ge=0)
    vat: Decimal = Field(..., ge=0)
    shipping: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)
    amount_cents: int = Field(..., ge=0, description="total converted to cents")


class PaymentIntentResult(BaseModel):
    """Result of creating a PaymentIntent for a cart."""

    client_secret: str | None = Field(
        default=None,
        description="Secret the browser uses to confirm the payment",
    )
    payment_intent_id: str = Field(..., examples=["pi_3ABC123DEF456"])
    amount: int = Field(..., ge=0, description="Charged amount in cents")
    currency: str = Field(default="eur")
    metadata_truncated: bool = Field(
        default=False,
        description="True if the items metadata had to be cut to fit",
    )


class UnavailableItem(InventoryStatus):
    """An item that failed the pre-checkout stock check."""


class OrderSummaryItem(BaseModel):
    """A line of an order summary."""

    cocktail_id: str
    size_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderSummary(BaseModel):
    """Order summary shown after checkout."""

    order_id: str
    payment_reference: str
    status: str
    is_paid: bool
    items: list[OrderSummaryItem]
    subtotal: Decimal
    vat_amount: Decimal
    shipping_cost: Decimal
    total: Decimal
