"""Backend services for cocktail storefront fulfillment."""

from .checkout_service import CheckoutService, calculate_totals
from .diagnostics import DiagnosticRecorder
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .failure_reconciler import FailureReconciler
from .inventory_adjuster import InventoryAdjuster
from .inventory_cache import TTLCache
from .inventory_store import InventoryStore
from .line_items import encode_items_metadata, parse_line_items
from .order_materializer import OrderMaterializer
from .order_store import OrderStore
from .payment_event_receiver import PaymentEventReceiver
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import StripeService, StripeServiceError, get_stripe_service

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    # Stores
    "OrderStore",
    "InventoryStore",
    "TTLCache",
    "DiagnosticRecorder",
    # Fulfillment flow
    "PaymentEventReceiver",
    "OrderMaterializer",
    "InventoryAdjuster",
    "FailureReconciler",
    "parse_line_items",
    "encode_items_metadata",
    # Checkout
    "CheckoutService",
    "calculate_totals",
    # External services
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeService",
    "StripeServiceError",
    "get_stripe_service",
]
