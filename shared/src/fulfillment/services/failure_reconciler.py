"""Cancels orders whose payment failed or was canceled.

Never resurrects or downgrades a paid order: a failure event arriving for
an order with ``is_paid`` set is recorded and ignored, since the success
event for the same intent wins regardless of delivery order.
"""

from botocore.exceptions import BotoCoreError, ClientError

from fulfillment.models import (
    DiagnosticEventType,
    OrderStatus,
    PaymentEvent,
    PaymentEventKind,
    ProcessingResult,
    ReconciliationResult,
)
from fulfillment.utils.logging import get_logger, log_order_operation

from .diagnostics import DiagnosticRecorder
from .order_store import OrderStore

logger = get_logger(__name__)


class FailureReconciler:
    """Idempotently marks orders of failed/canceled payments as cancelled."""

    def __init__(self, order_store: OrderStore, recorder: DiagnosticRecorder) -> None:
        self.order_store = order_store
        self.recorder = recorder

    def reconcile(self, event: PaymentEvent) -> ReconciliationResult:
        """Reconcile one failed or canceled payment event.

        Never raises for store failures; they are recorded and reported as
        result ERROR so the webhook is still acknowledged.

        Args:
            event: Decoded payment event of kind FAILED or CANCELED

        Returns:
            ReconciliationResult
        """
        if event.kind not in (PaymentEventKind.FAILED, PaymentEventKind.CANCELED):
            raise ValueError(f"Cannot reconcile a {event.kind.value} event")

        reference = event.payment_reference
        if not reference:
            logger.warning("Skipping %s event without payment reference", event.event_type)
            return ReconciliationResult(
                result=ProcessingResult.SKIPPED, payment_reference=reference
            )

        context = {
            "payment_reference": reference,
            "amount": event.amount,
            "failure_reason": event.failure_reason,
            "metadata": dict(event.metadata),
        }

        try:
            order = self.order_store.find_by_payment_reference(reference)
        except (ClientError, BotoCoreError) as e:
            self._record(event.kind, "order_check_error", error=str(e), **context)
            log_order_operation(logger, "cancel", payment_reference=reference, error=str(e))
            return ReconciliationResult(
                result=ProcessingResult.ERROR, payment_reference=reference
            )

        if order is None:
            self._record(event.kind, "missing_order", **context)
            return ReconciliationResult(
                result=ProcessingResult.MISSING_ORDER, payment_reference=reference
            )

        if order.is_paid:
            self._record(
                event.kind,
                "already_paid",
                order_id=order.order_id,
                order_status=order.status.value,
                **context,
            )
            return ReconciliationResult(
                result=ProcessingResult.ALREADY_PAID,
                payment_reference=reference,
                order_id=order.order_id,
            )

        new_status = OrderStatus.CANCELLED if order.status != OrderStatus.CANCELLED else None
        new_is_paid = False if order.is_paid is not False else None
        updated_fields = [
            name
            for name, value in (("status", new_status), ("is_paid", new_is_paid))
            if value is not None
        ]

        if not updated_fields:
            log_order_operation(
                logger,
                "cancel",
                payment_reference=reference,
                order_id=order.order_id,
                status=order.status.value,
                result=ProcessingResult.UNCHANGED.value,
            )
            return ReconciliationResult(
                result=ProcessingResult.UNCHANGED,
                payment_reference=reference,
                order_id=order.order_id,
            )

        try:
            updated = self.order_store.update_status(
                order.order_id, status=new_status, is_paid=new_is_paid
            )
        except (ClientError, BotoCoreError) as e:
            self._record(
                event.kind,
                "order_update_error",
                order_id=order.order_id,
                error=str(e),
                **context,
            )
            log_order_operation(
                logger,
                "cancel",
                payment_reference=reference,
                order_id=order.order_id,
                error=str(e),
            )
            return ReconciliationResult(
                result=ProcessingResult.ERROR,
                payment_reference=reference,
                order_id=order.order_id,
            )

        if updated is None:
            self._record(
                event.kind,
                "order_update_error",
                order_id=order.order_id,
                error="order disappeared before update",
                **context,
            )
            return ReconciliationResult(
                result=ProcessingResult.ERROR,
                payment_reference=reference,
                order_id=order.order_id,
            )

        log_order_operation(
            logger,
            "cancel",
            payment_reference=reference,
            order_id=order.order_id,
            status=updated.status.value,
            updated_fields=",".join(updated_fields),
        )
        return ReconciliationResult(
            result=ProcessingResult.CANCELLED,
            payment_reference=reference,
            order_id=order.order_id,
            updated_fields=updated_fields,
        )

    def _record(self, kind: PaymentEventKind, suffix: str, **payload) -> None:
        self.recorder.record(DiagnosticEventType.for_failure(kind, suffix), **payload)
