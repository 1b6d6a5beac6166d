"""Best-effort stock decrement after an order is materialized.

Each line item is adjusted independently: a failure on one item is
recorded as a diagnostic and never blocks the others, nor rolls back the
order that was already created.
"""

from botocore.exceptions import BotoCoreError, ClientError

from fulfillment.models import (
    DiagnosticEventType,
    InventoryAdjustment,
    OrderLineItem,
)
from fulfillment.utils.logging import get_logger

from .diagnostics import DiagnosticRecorder
from .inventory_store import InventoryStore

logger = get_logger(__name__)


class InventoryAdjuster:
    """Decrements inventory for sold line items."""

    def __init__(
        self,
        store: InventoryStore,
        recorder: DiagnosticRecorder,
        clamp_negative_stock: bool = True,
    ) -> None:
        """Initialize inventory adjuster.

        Args:
            store: Inventory store
            recorder: Diagnostic sink for per-item failures
            clamp_negative_stock: Floor stock at zero instead of going negative
        """
        self.store = store
        self.recorder = recorder
        self.clamp_negative_stock = clamp_negative_stock

    def adjust(
        self,
        payment_reference: str,
        items: list[OrderLineItem],
    ) -> list[InventoryAdjustment]:
        """Decrement stock for every line item.

        Args:
            payment_reference: PaymentIntent the items were sold under
            items: Persisted line items

        Returns:
            One InventoryAdjustment per item, in input order
        """
        adjustments = [self._adjust_one(payment_reference, item) for item in items]
        applied = sum(1 for a in adjustments if a.applied)
        if applied < len(adjustments):
            logger.warning(
                "Inventory adjusted for %d of %d items (payment=%s)",
                applied,
                len(adjustments),
                payment_reference,
            )
        else:
            logger.info(
                "Inventory adjusted for %d items (payment=%s)",
                applied,
                payment_reference,
            )
        return adjustments

    def _adjust_one(
        self, payment_reference: str, item: OrderLineItem
    ) -> InventoryAdjustment:
        context = {
            "payment_reference": payment_reference,
            "order_id": item.order_id,
            "cocktail_id": item.cocktail_id,
            "size_id": item.size_id,
            "quantity": item.quantity,
        }

        try:
            record = self.store.get_record(item.cocktail_id, item.size_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Inventory read failed for %s/%s: %s", item.cocktail_id, item.size_id, e
            )
            self.recorder.record(
                DiagnosticEventType.INVENTORY_READ_ERROR, error=str(e), **context
            )
            return self._skipped(item, error=str(e))

        if record is None:
            self.recorder.record(DiagnosticEventType.INVENTORY_MISSING_RECORD, **context)
            return self._skipped(item, error="inventory record not found")

        previous = record.stock_quantity
        new_stock = previous - item.quantity
        if new_stock < 0:
            self.recorder.record(
                DiagnosticEventType.INVENTORY_OVERSOLD,
                previous_stock=previous,
                computed_stock=new_stock,
                clamped=self.clamp_negative_stock,
                **context,
            )
            if self.clamp_negative_stock:
                new_stock = 0

        try:
            updated = self.store.set_stock(
                item.cocktail_id,
                item.size_id,
                stock_quantity=new_stock,
                available=new_stock > 0,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Inventory write failed for %s/%s: %s", item.cocktail_id, item.size_id, e
            )
            self.recorder.record(
                DiagnosticEventType.INVENTORY_WRITE_ERROR,
                error=str(e),
                previous_stock=previous,
                new_stock=new_stock,
                **context,
            )
            return self._skipped(item, previous_stock=previous, error=str(e))

        if updated is None:
            # Record vanished between read and write.
            self.recorder.record(DiagnosticEventType.INVENTORY_MISSING_RECORD, **context)
            return self._skipped(
                item, previous_stock=previous, error="inventory record not found"
            )

        return InventoryAdjustment(
            cocktail_id=item.cocktail_id,
            size_id=item.size_id,
            quantity=item.quantity,
            applied=True,
            previous_stock=previous,
            new_stock=new_stock,
        )

    @staticmethod
    def _skipped(
        item: OrderLineItem,
        *,
        previous_stock: int | None = None,
        error: str | None = None,
    ) -> InventoryAdjustment:
        return InventoryAdjustment(
            cocktail_id=item.cocktail_id,
            size_id=item.size_id,
            quantity=item.quantity,
            applied=False,
            previous_stock=previous_stock,
            error=error,
        )
