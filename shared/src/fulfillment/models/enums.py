"""Enumeration types for fulfillment data models."""

from enum import Enum


class OrderStatus(str, Enum):
    """Status of an order.

    The webhook flow only writes PAID and CANCELLED; the rest belong to the
    broader storefront (shipping, delivery).
    """

    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentEventKind(str, Enum):
    """Payment event kinds the receiver distinguishes."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    OTHER = "other"


# Stripe event type -> kind. Anything else is OTHER.
STRIPE_EVENT_KINDS: dict[str, PaymentEventKind] = {
    "payment_intent.succeeded": PaymentEventKind.SUCCEEDED,
    "payment_intent.payment_failed": PaymentEventKind.FAILED,
    "payment_intent.canceled": PaymentEventKind.CANCELED,
}


class ProcessingResult(str, Enum):
    """Outcome of processing one payment event."""

    CREATED = "created"
    DUPLICATE = "duplicate"
    NO_ITEMS = "no_items"
    CANCELLED = "cancelled"
    UNCHANGED = "unchanged"
    ALREADY_PAID = "already_paid"
    MISSING_ORDER = "missing_order"
    SKIPPED = "skipped"
    IGNORED = "ignored"
    ERROR = "error"


class DiagnosticEventType(str, Enum):
    """Tags written to the security/diagnostic event sink."""

    SUCCEEDED_NO_ITEMS = "payment_intent_succeeded_no_items"
    SUCCEEDED_ORDER_CHECK_ERROR = "payment_intent_succeeded_order_check_error"
    SUCCEEDED_ORDER_ERROR = "payment_intent_succeeded_order_error"
    SUCCEEDED_PRICE_MISMATCH = "payment_intent_succeeded_price_mismatch"

    FAILED_ORDER_CHECK_ERROR = "payment_intent_failed_order_check_error"
    FAILED_MISSING_ORDER = "payment_intent_failed_missing_order"
    FAILED_ALREADY_PAID = "payment_intent_failed_already_paid"
    FAILED_ORDER_UPDATE_ERROR = "payment_intent_failed_order_update_error"

    CANCELED_ORDER_CHECK_ERROR = "payment_intent_canceled_order_check_error"
    CANCELED_MISSING_ORDER = "payment_intent_canceled_missing_order"
    CANCELED_ALREADY_PAID = "payment_intent_canceled_already_paid"
    CANCELED_ORDER_UPDATE_ERROR = "payment_intent_canceled_order_update_error"

    INVENTORY_READ_ERROR = "inventory_read_error"
    INVENTORY_WRITE_ERROR = "inventory_write_error"
    INVENTORY_MISSING_RECORD = "inventory_missing_record"
    INVENTORY_OVERSOLD = "inventory_oversold"

    @classmethod
    def for_failure(cls, kind: PaymentEventKind, suffix: str) -> "DiagnosticEventType":
        """Resolve the failed/canceled variant of a diagnostic tag.

        Args:
            kind: FAILED or CANCELED
            suffix: Tag suffix, e.g. "missing_order"

        Returns:
            Matching DiagnosticEventType
        """
        return cls(f"payment_intent_{kind.value}_{suffix}")
