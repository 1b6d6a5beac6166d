"""Order and line-item models.

Amounts on orders and line items are Decimal major currency units
(euros), matching how the storefront displays them. Payment events carry
minor units; conversion happens once, in the materializer.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import OrderStatus


class OrderLineItemRequest(BaseModel):
    """A line item as requested at checkout (parsed from payment metadata)."""

    model_config = ConfigDict(frozen=True)

    cocktail_id: str = Field(..., min_length=1)
    size_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    line_total: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Precomputed quantity * unit_price; derived when absent",
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_fields(cls, data: Any) -> Any:
        """Accept the historical ``sizes_id`` and ``item_total`` names."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("size_id") and data.get("sizes_id"):
            data["size_id"] = data["sizes_id"]
        if data.get("line_total") is None and data.get("item_total") is not None:
            data["line_total"] = data["item_total"]
        return data

    @field_validator("quantity", mode="before")
    @classmethod
    def _reject_bool_quantity(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("quantity must be an integer, not a boolean")
        return value

    @property
    def effective_line_total(self) -> Decimal:
        """Line total, derived from quantity and unit price when not supplied."""
        if self.line_total is not None:
            return self.line_total
        return self.unit_price * self.quantity


class Order(BaseModel):
    """A persisted order created from a succeeded payment."""

    order_id: str = Field(..., description="System-generated ID", examples=["ORD-1A2B3C4D5E6F"])
    payment_reference: str = Field(
        ...,
        description="PaymentIntent ID; unique across orders",
        examples=["pi_3ABC123DEF456"],
    )
    total_amount: Decimal = Field(..., ge=0, description="Total in major units")
    status: OrderStatus
    is_paid: bool
    item_count: int = Field(default=0, ge=0)
    user_id: str | None = None
    created_at: datetime
    updated_at: datetime


class OrderLineItem(BaseModel):
    """A persisted order line. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    order_id: str
    line_number: int = Field(..., ge=1)
    cocktail_id: str
    size_id: str
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    line_total: Decimal = Field(..., ge=0)


class OrderWithItems(BaseModel):
    """An order together with its line items."""

    order: Order
    items: list[OrderLineItem]
