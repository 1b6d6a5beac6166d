"""Pydantic models for cocktail storefront fulfillment."""

from .checkout import (
    CheckoutTotals,
    OrderSummary,
    OrderSummaryItem,
    PaymentIntentResult,
    UnavailableItem,
)
from .diagnostic import DiagnosticEvent
from .enums import (
    STRIPE_EVENT_KINDS,
    DiagnosticEventType,
    OrderStatus,
    PaymentEventKind,
    ProcessingResult,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    ErrorResponse,
    FulfillmentError,
)
from .inventory import (
    InventoryAdjustment,
    InventoryCheckItem,
    InventoryRecord,
    InventoryStatus,
)
from .order import Order, OrderLineItem, OrderLineItemRequest, OrderWithItems
from .payment_event import PaymentEvent
from .processing import MaterializationResult, ReconciliationResult, WebhookResult

__all__ = [
    # Enums
    "DiagnosticEventType",
    "OrderStatus",
    "PaymentEventKind",
    "ProcessingResult",
    "STRIPE_EVENT_KINDS",
    # Payment events
    "PaymentEvent",
    # Orders
    "Order",
    "OrderLineItem",
    "OrderLineItemRequest",
    "OrderWithItems",
    # Inventory
    "InventoryAdjustment",
    "InventoryCheckItem",
    "InventoryRecord",
    "InventoryStatus",
    # Diagnostics
    "DiagnosticEvent",
    # Processing results
    "MaterializationResult",
    "ReconciliationResult",
    "WebhookResult",
    # Checkout
    "CheckoutTotals",
    "OrderSummary",
    "OrderSummaryItem",
    "PaymentIntentResult",
    "UnavailableItem",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "FulfillmentError",
]
