"""API-specific request/response models.

Domain models (Order, PaymentEvent, InventoryRecord, ...) live in
fulfillment.models and are reused here where appropriate.

Modules:
- checkout: PaymentIntent creation request and 409 body
- inventory: Availability query request/response
"""

from .checkout import CreatePaymentIntentRequest, ItemsUnavailableResponse
from .inventory import (
    CheckInventoryRequest,
    CheckInventoryResponse,
    InventoryAvailability,
)

__all__ = [
    "CheckInventoryRequest",
    "CheckInventoryResponse",
    "CreatePaymentIntentRequest",
    "InventoryAvailability",
    "ItemsUnavailableResponse",
]
