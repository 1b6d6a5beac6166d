"""API models for checkout endpoints.

Line items reuse ``fulfillment.models.OrderLineItemRequest`` so the cart
accepted here is exactly what the webhook flow later rebuilds from
PaymentIntent metadata.
"""

from pydantic import BaseModel, ConfigDict, Field

from fulfillment.models import OrderLineItemRequest, UnavailableItem


class CreatePaymentIntentRequest(BaseModel):
    """Request to open a PaymentIntent for a cart."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "items": [
                        {
                            "cocktail_id": "c1",
                            "size_id": "s1",
                            "quantity": 2,
                            "unit_price": 5.0,
                        }
                    ]
                }
            ]
        },
    )

    items: list[OrderLineItemRequest] = Field(
        ...,
        description="Cart line items; an empty cart is rejected with 400",
    )


class ItemsUnavailableResponse(BaseModel):
    """Body of a 409 response when stock does not cover the cart."""

    success: bool = False
    error_code: str
    message: str
    recovery: str
    details: dict[str, list[UnavailableItem]]
