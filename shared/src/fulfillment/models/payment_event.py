"""Inbound payment event decoded from a Stripe webhook."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import STRIPE_EVENT_KINDS, PaymentEventKind


class PaymentEvent(BaseModel):
    """A payment notification from the provider.

    Received once per delivery and consumed synchronously; never persisted.
    Amounts are in minor currency units (cents).
    """

    model_config = ConfigDict(frozen=True)

    kind: PaymentEventKind = Field(..., description="Discriminated event kind")
    event_id: str = Field(default="", description="Stripe event ID (evt_xxx)")
    event_type: str = Field(
        default="",
        description="Raw Stripe event type",
        examples=["payment_intent.succeeded"],
    )
    payment_reference: str = Field(
        default="",
        description="PaymentIntent ID, unique per payment attempt",
        examples=["pi_3ABC123DEF456"],
    )
    amount: int = Field(default=0, ge=0, description="Amount in minor units")
    metadata: dict[str, str] = Field(default_factory=dict)
    failure_reason: str | None = Field(
        default=None,
        description="Human-readable reason for failed/canceled payments",
    )

    @classmethod
    def from_stripe_event(cls, event: dict[str, Any]) -> "PaymentEvent":
        """Decode a verified Stripe event dict.

        Args:
            event: Event as returned by signature verification

        Returns:
            PaymentEvent

        Raises:
            ValueError: If the event has no type or no data.object, or a
                field of data.object has the wrong shape
        """
        event_type = event.get("type")
        data = event.get("data")
        if not isinstance(event_type, str) or not isinstance(data, dict):
            raise ValueError("Event is missing type or data")

        intent = data.get("object")
        if not isinstance(intent, dict):
            raise ValueError("Event is missing data.object")

        kind = STRIPE_EVENT_KINDS.get(event_type, PaymentEventKind.OTHER)

        if kind == PaymentEventKind.SUCCEEDED:
            amount = intent.get("amount_received") or intent.get("amount") or 0
        else:
            amount = intent.get("amount") or 0
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(f"PaymentIntent amount must be an integer, got {amount!r}")

        failure_reason: str | None = None
        if kind == PaymentEventKind.FAILED:
            last_error = intent.get("last_payment_error") or {}
            if not isinstance(last_error, dict):
                raise ValueError("last_payment_error must be an object")
            failure_reason = last_error.get("message") or last_error.get("code")
        elif kind == PaymentEventKind.CANCELED:
            failure_reason = intent.get("cancellation_reason")

        raw_metadata = intent.get("metadata") or {}
        if not isinstance(raw_metadata, dict):
            raise ValueError("PaymentIntent metadata must be an object")
        metadata = {str(k): str(v) for k, v in raw_metadata.items() if v is not None}

        return cls(
            kind=kind,
            event_id=str(event.get("id") or ""),
            event_type=event_type,
            payment_reference=str(intent.get("id") or ""),
            amount=amount,
            metadata=metadata,
            failure_reason=failure_reason,
        )
