"""FastAPI dependency injection providers for shared services.

This module provides factory functions for service instances using @lru_cache
so each process builds one object graph. Services are lazily instantiated.

Usage in routes:
    from storefront_api.dependencies import get_payment_event_receiver

    @router.post("/webhooks/stripe")
    async def handle_stripe_webhook(
        receiver: PaymentEventReceiver = Depends(get_payment_event_receiver),
    ):
        ...

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── OrderStore
        ├── InventoryStore ── TTLCache (inventory cache, owned here)
        └── DiagnosticRecorder
    InventoryAdjuster (InventoryStore, DiagnosticRecorder)
    OrderMaterializer (OrderStore, InventoryStore, InventoryAdjuster, DiagnosticRecorder)
    FailureReconciler (OrderStore, DiagnosticRecorder)
    PaymentEventReceiver (StripeService, OrderMaterializer, FailureReconciler)
    CheckoutService (StripeService, InventoryStore, OrderStore)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fulfillment.config import get_settings
from fulfillment.models import InventoryRecord
from fulfillment.services.checkout_service import CheckoutService
from fulfillment.services.diagnostics import DiagnosticRecorder
from fulfillment.services.dynamodb import get_dynamodb_service
from fulfillment.services.failure_reconciler import FailureReconciler
from fulfillment.services.inventory_adjuster import InventoryAdjuster
from fulfillment.services.inventory_cache import TTLCache
from fulfillment.services.inventory_store import InventoryStore
from fulfillment.services.order_materializer import OrderMaterializer
from fulfillment.services.order_store import OrderStore
from fulfillment.services.payment_event_receiver import PaymentEventReceiver
from fulfillment.services.stripe_service import get_stripe_service


@lru_cache
def get_inventory_cache() -> TTLCache[InventoryRecord]:
    """Get the process-wide inventory read cache.

    Returns:
        TTLCache configured with INVENTORY_CACHE_TTL.
    """
    return TTLCache(ttl_seconds=get_settings().inventory_cache_ttl)


@lru_cache
def get_order_store() -> OrderStore:
    """Get cached OrderStore instance."""
    return OrderStore(db=get_dynamodb_service())


@lru_cache
def get_inventory_store() -> InventoryStore:
    """Get cached InventoryStore instance.

    Returns:
        InventoryStore sharing the process inventory cache, so stock
        writes from the webhook flow invalidate storefront reads.
    """
    return InventoryStore(db=get_dynamodb_service(), cache=get_inventory_cache())


@lru_cache
def get_diagnostic_recorder() -> DiagnosticRecorder:
    """Get cached DiagnosticRecorder instance."""
    return DiagnosticRecorder(db=get_dynamodb_service())


@lru_cache
def get_inventory_adjuster() -> InventoryAdjuster:
    """Get cached InventoryAdjuster instance."""
    return InventoryAdjuster(
        store=get_inventory_store(),
        recorder=get_diagnostic_recorder(),
        clamp_negative_stock=get_settings().clamp_negative_stock,
    )


@lru_cache
def get_order_materializer() -> OrderMaterializer:
    """Get cached OrderMaterializer instance."""
    return OrderMaterializer(
        order_store=get_order_store(),
        inventory_store=get_inventory_store(),
        adjuster=get_inventory_adjuster(),
        recorder=get_diagnostic_recorder(),
    )


@lru_cache
def get_failure_reconciler() -> FailureReconciler:
    """Get cached FailureReconciler instance."""
    return FailureReconciler(
        order_store=get_order_store(),
        recorder=get_diagnostic_recorder(),
    )


@lru_cache
def get_payment_event_receiver() -> PaymentEventReceiver:
    """Get cached PaymentEventReceiver instance.

    Returns:
        PaymentEventReceiver wired to the materializer and reconciler.
    """
    return PaymentEventReceiver(
        stripe_service=get_stripe_service(),
        materializer=get_order_materializer(),
        reconciler=get_failure_reconciler(),
    )


@lru_cache
def get_checkout_service() -> CheckoutService:
    """Get cached CheckoutService instance."""
    return CheckoutService(
        stripe_service=get_stripe_service(),
        inventory_store=get_inventory_store(),
        order_store=get_order_store(),
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets settings, the Stripe service and the DynamoDB singleton.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    from fulfillment.services.dynamodb import reset_dynamodb_service

    # Clear all lru_cache instances
    get_inventory_cache.cache_clear()
    get_order_store.cache_clear()
    get_inventory_store.cache_clear()
    get_diagnostic_recorder.cache_clear()
    get_inventory_adjuster.cache_clear()
    get_order_materializer.cache_clear()
    get_failure_reconciler.cache_clear()
    get_payment_event_receiver.cache_clear()
    get_checkout_service.cache_clear()
    get_stripe_service.cache_clear()
    get_settings.cache_clear()

    # Reset underlying DynamoDB singleton
    reset_dynamodb_service()
