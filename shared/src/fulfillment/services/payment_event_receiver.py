"""Entry point for Stripe payment webhooks.

Authenticates the delivery, decodes it into a PaymentEvent and dispatches
by kind. Every failure leaves as a FulfillmentError so the HTTP layer can
answer with a structured 400 and the provider can redeliver.
"""

from fulfillment.models import (
    ErrorCode,
    FulfillmentError,
    PaymentEvent,
    PaymentEventKind,
    ProcessingResult,
    WebhookResult,
)
from fulfillment.utils.logging import get_logger, log_webhook_event

from .failure_reconciler import FailureReconciler
from .order_materializer import OrderMaterializer
from .stripe_service import StripeService, StripeServiceError

logger = get_logger(__name__)


class PaymentEventReceiver:
    """Verifies, decodes and dispatches payment webhook deliveries."""

    def __init__(
        self,
        stripe_service: StripeService,
        materializer: OrderMaterializer,
        reconciler: FailureReconciler,
    ) -> None:
        self.stripe_service = stripe_service
        self.materializer = materializer
        self.reconciler = reconciler

    def handle(self, payload: bytes, signature: str | None) -> WebhookResult:
        """Process one webhook delivery.

        Args:
            payload: Raw request body, exactly as received
            signature: Stripe-Signature header value

        Returns:
            WebhookResult acknowledging the event

        Raises:
            FulfillmentError: INVALID_WEBHOOK_SIGNATURE, MALFORMED_PAYLOAD or
                a processing error from the downstream handler
        """
        if not signature:
            logger.warning("Webhook rejected: missing Stripe-Signature header")
            raise FulfillmentError(
                ErrorCode.INVALID_WEBHOOK_SIGNATURE,
                {"message": "Missing Stripe-Signature header"},
            )

        try:
            raw_event = self.stripe_service.verify_webhook_signature(payload, signature)
        except StripeServiceError as e:
            raise FulfillmentError(
                ErrorCode.INVALID_WEBHOOK_SIGNATURE, {"message": str(e)}
            ) from e
        except (UnicodeDecodeError, ValueError) as e:
            # Signed but not a JSON object.
            raise FulfillmentError(
                ErrorCode.MALFORMED_PAYLOAD, {"message": str(e)}
            ) from e

        try:
            event = PaymentEvent.from_stripe_event(raw_event)
        except ValueError as e:
            raise FulfillmentError(
                ErrorCode.MALFORMED_PAYLOAD,
                {"message": str(e), "event_id": raw_event.get("id")},
            ) from e

        try:
            return self._dispatch(event)
        except FulfillmentError as e:
            log_webhook_event(
                logger,
                event.event_type,
                event.event_id,
                payment_reference=event.payment_reference,
                result=ProcessingResult.ERROR.value,
                error=str(e),
            )
            raise
        except Exception as e:
            logger.exception(
                "Unexpected error processing %s (%s)", event.event_type, event.event_id
            )
            raise FulfillmentError(
                ErrorCode.WEBHOOK_PROCESSING_FAILED,
                {
                    "message": str(e),
                    "event_id": event.event_id,
                    "event_type": event.event_type,
                },
            ) from e

    def _dispatch(self, event: PaymentEvent) -> WebhookResult:
        if event.kind == PaymentEventKind.SUCCEEDED:
            materialized = self.materializer.materialize(event)
            result, order_id = materialized.result, materialized.order_id
        elif event.kind in (PaymentEventKind.FAILED, PaymentEventKind.CANCELED):
            reconciled = self.reconciler.reconcile(event)
            result, order_id = reconciled.result, reconciled.order_id
        else:
            result, order_id = ProcessingResult.IGNORED, None

        log_webhook_event(
            logger,
            event.event_type,
            event.event_id,
            payment_reference=event.payment_reference,
            order_id=order_id,
            result=result.value,
        )
        return WebhookResult(
            event_id=event.event_id,
            event_type=event.event_type,
            processing_result=result,
            order_id=order_id,
        )
