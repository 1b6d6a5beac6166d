"""Turns a succeeded payment into a persisted order.

Flow for one ``payment_intent.succeeded`` event:

1. Idempotency check on the payment reference (fast path)
2. Parse and normalize line items from metadata (all-or-nothing)
3. No items: record a diagnostic and stop
4. Write the order, its payment-reference guard and its line items in one
   transaction; a guard conflict means another delivery won the race
5. Compare metadata prices with the catalog (diagnostic only)
6. Decrement inventory, best-effort per item
"""

import datetime as dt
import uuid
from decimal import ROUND_HALF_UP, Decimal, DecimalException

from botocore.exceptions import BotoCoreError, ClientError

from fulfillment.models import (
    DiagnosticEventType,
    ErrorCode,
    FulfillmentError,
    MaterializationResult,
    Order,
    OrderLineItem,
    OrderLineItemRequest,
    OrderStatus,
    PaymentEvent,
    ProcessingResult,
)
from fulfillment.utils.logging import get_logger, log_order_operation

from .diagnostics import DiagnosticRecorder
from .inventory_adjuster import InventoryAdjuster
from .inventory_store import InventoryStore
from .line_items import parse_line_items
from .order_store import OrderStore

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def generate_order_id() -> str:
    """Generate a new order ID (ORD- plus 12 uppercase hex chars)."""
    return f"ORD-{uuid.uuid4().hex[:12].upper()}"


def cents_to_amount(amount_cents: int) -> Decimal:
    """Convert minor units to a 2-place major-unit Decimal."""
    return (Decimal(amount_cents) / 100).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderMaterializer:
    """Creates orders and line items from succeeded payment events."""

    def __init__(
        self,
        order_store: OrderStore,
        inventory_store: InventoryStore,
        adjuster: InventoryAdjuster,
        recorder: DiagnosticRecorder,
    ) -> None:
        self.order_store = order_store
        self.inventory_store = inventory_store
        self.adjuster = adjuster
        self.recorder = recorder

    def materialize(self, event: PaymentEvent) -> MaterializationResult:
        """Create the order for a succeeded payment, at most once.

        Args:
            event: Decoded payment event of kind SUCCEEDED

        Returns:
            MaterializationResult with result CREATED, DUPLICATE or NO_ITEMS

        Raises:
            FulfillmentError: ORDER_LOOKUP_FAILED if the idempotency check
                cannot be answered, ORDER_PERSISTENCE_FAILED if the order
                cannot be written. Both are safe to redeliver.
        """
        reference = event.payment_reference

        try:
            existing = self.order_store.find_by_payment_reference(reference)
        except (ClientError, BotoCoreError) as e:
            log_order_operation(
                logger, "materialize", payment_reference=reference, error=str(e)
            )
            self.recorder.record(
                DiagnosticEventType.SUCCEEDED_ORDER_CHECK_ERROR,
                payment_reference=reference,
                amount=event.amount,
                error=str(e),
            )
            raise FulfillmentError(
                ErrorCode.ORDER_LOOKUP_FAILED,
                {"message": str(e), "payment_reference": reference},
            ) from e

        if existing is not None:
            log_order_operation(
                logger,
                "materialize",
                payment_reference=reference,
                order_id=existing.order_id,
                result=ProcessingResult.DUPLICATE.value,
            )
            return MaterializationResult(
                result=ProcessingResult.DUPLICATE,
                payment_reference=reference,
                order_id=existing.order_id,
            )

        requests = parse_line_items(event.metadata)
        if not requests:
            self.recorder.record(
                DiagnosticEventType.SUCCEEDED_NO_ITEMS,
                payment_reference=reference,
                amount=event.amount,
                metadata=dict(event.metadata),
            )
            log_order_operation(
                logger,
                "materialize",
                payment_reference=reference,
                amount_cents=event.amount,
                result=ProcessingResult.NO_ITEMS.value,
            )
            return MaterializationResult(
                result=ProcessingResult.NO_ITEMS,
                payment_reference=reference,
            )

        now = dt.datetime.now(dt.UTC)
        order = Order(
            order_id=generate_order_id(),
            payment_reference=reference,
            total_amount=cents_to_amount(event.amount),
            status=OrderStatus.PAID,
            is_paid=True,
            item_count=len(requests),
            user_id=event.metadata.get("user_id") or None,
            created_at=now,
            updated_at=now,
        )
        line_items = [
            OrderLineItem(
                order_id=order.order_id,
                line_number=number,
                cocktail_id=request.cocktail_id,
                size_id=request.size_id,
                quantity=request.quantity,
                unit_price=request.unit_price,
                line_total=request.effective_line_total,
            )
            for number, request in enumerate(requests, start=1)
        ]

        try:
            created = self.order_store.create_order_with_items(order, line_items)
        except (ClientError, BotoCoreError, DecimalException, ValueError) as e:
            log_order_operation(
                logger,
                "materialize",
                payment_reference=reference,
                order_id=order.order_id,
                amount_cents=event.amount,
                error=str(e),
            )
            self.recorder.record(
                DiagnosticEventType.SUCCEEDED_ORDER_ERROR,
                payment_reference=reference,
                amount=event.amount,
                item_count=len(line_items),
                error=str(e),
            )
            raise FulfillmentError(
                ErrorCode.ORDER_PERSISTENCE_FAILED,
                {"message": str(e), "payment_reference": reference},
            ) from e

        if not created:
            # A concurrent delivery committed first.
            winner = self._lookup_winner(reference)
            log_order_operation(
                logger,
                "materialize",
                payment_reference=reference,
                order_id=winner,
                result=ProcessingResult.DUPLICATE.value,
                race=True,
            )
            return MaterializationResult(
                result=ProcessingResult.DUPLICATE,
                payment_reference=reference,
                order_id=winner,
            )

        log_order_operation(
            logger,
            "materialize",
            payment_reference=reference,
            order_id=order.order_id,
            amount_cents=event.amount,
            status=order.status.value,
            item_count=len(line_items),
        )

        self._check_prices(reference, requests)
        adjustments = self.adjuster.adjust(reference, line_items)

        return MaterializationResult(
            result=ProcessingResult.CREATED,
            payment_reference=reference,
            order_id=order.order_id,
            item_count=len(line_items),
            adjustments=adjustments,
        )

    def _lookup_winner(self, reference: str) -> str | None:
        try:
            winner = self.order_store.find_by_payment_reference(reference)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Could not read winning order for %s: %s", reference, e)
            return None
        return winner.order_id if winner else None

    def _check_prices(
        self, reference: str, requests: list[OrderLineItemRequest]
    ) -> None:
        """Record a diagnostic for every metadata price that differs from the catalog.

        Prices in metadata were fixed at checkout and are what the customer
        paid; a mismatch is reported but never blocks the order.
        """
        keys = [(r.cocktail_id, r.size_id) for r in requests]
        try:
            records = self.inventory_store.get_cached_records(keys)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Skipping price check for %s: %s", reference, e)
            return

        for request in requests:
            record = records.get((request.cocktail_id, request.size_id))
            if record is None or record.price is None:
                continue
            if record.price != request.unit_price:
                logger.warning(
                    "Price mismatch for %s/%s: paid %s, catalog %s (payment=%s)",
                    request.cocktail_id,
                    request.size_id,
                    request.unit_price,
                    record.price,
                    reference,
                )
                self.recorder.record(
                    DiagnosticEventType.SUCCEEDED_PRICE_MISMATCH,
                    payment_reference=reference,
                    cocktail_id=request.cocktail_id,
                    size_id=request.size_id,
                    metadata_price=request.unit_price,
                    catalog_price=record.price,
                )
