"""Unit tests for decoding Stripe events into PaymentEvent."""

import pytest

from fulfillment.models import PaymentEvent, PaymentEventKind


class TestPaymentEventKinds:
    @pytest.mark.parametrize(
        ("event_type", "kind"),
        [
            ("payment_intent.succeeded", PaymentEventKind.SUCCEEDED),
            ("payment_intent.payment_failed", PaymentEventKind.FAILED),
            ("payment_intent.canceled", PaymentEventKind.CANCELED),
            ("payment_intent.created", PaymentEventKind.OTHER),
            ("charge.refunded", PaymentEventKind.OTHER),
        ],
    )
    def test_maps_event_types(self, stripe_event, event_type, kind):
        event = PaymentEvent.from_stripe_event(stripe_event(event_type=event_type))

        assert event.kind == kind
        assert event.event_type == event_type


class TestPaymentEventFields:
    def test_succeeded_uses_amount_received(self, stripe_event):
        raw = stripe_event(amount=1000)
        raw["data"]["object"]["amount_received"] = 950

        event = PaymentEvent.from_stripe_event(raw)

        assert event.amount == 950
        assert event.payment_reference == "pi_abc"
        assert event.event_id == "evt_test_001"

    def test_succeeded_falls_back_to_amount(self, stripe_event):
        raw = stripe_event(amount=1200)
        del raw["data"]["object"]["amount_received"]

        assert PaymentEvent.from_stripe_event(raw).amount == 1200

    def test_succeeded_without_amounts_is_zero(self, stripe_event):
        raw = stripe_event()
        del raw["data"]["object"]["amount_received"]
        del raw["data"]["object"]["amount"]

        assert PaymentEvent.from_stripe_event(raw).amount == 0

    def test_failed_carries_last_payment_error(self, stripe_event):
        raw = stripe_event(
            event_type="payment_intent.payment_failed",
            last_payment_error={"code": "card_declined", "message": "Your card was declined."},
        )

        event = PaymentEvent.from_stripe_event(raw)

        assert event.failure_reason == "Your card was declined."

    def test_canceled_carries_cancellation_reason(self, stripe_event):
        raw = stripe_event(
            event_type="payment_intent.canceled",
            cancellation_reason="abandoned",
        )

        assert PaymentEvent.from_stripe_event(raw).failure_reason == "abandoned"

    def test_metadata_values_are_strings(self, stripe_event):
        raw = stripe_event(metadata={"items_count": 2, "user_id": None, "items": "[]"})

        event = PaymentEvent.from_stripe_event(raw)

        assert event.metadata == {"items_count": "2", "items": "[]"}


class TestPaymentEventMalformed:
    def test_missing_type(self, stripe_event):
        raw = stripe_event()
        del raw["type"]

        with pytest.raises(ValueError):
            PaymentEvent.from_stripe_event(raw)

    def test_missing_data_object(self):
        with pytest.raises(ValueError):
            PaymentEvent.from_stripe_event({"id": "evt_1", "type": "payment_intent.succeeded", "data": {}})

    @pytest.mark.parametrize(
        ("event_type", "intent_fields"),
        [
            ("payment_intent.succeeded", {"metadata": ["x"]}),
            ("payment_intent.canceled", {"metadata": "items=[]"}),
            ("payment_intent.payment_failed", {"last_payment_error": "card_declined"}),
            ("payment_intent.payment_failed", {"amount": "1000"}),
            ("payment_intent.succeeded", {"amount_received": True}),
        ],
    )
    def test_wrongly_shaped_fields(self, stripe_event, event_type, intent_fields):
        raw = stripe_event(event_type=event_type, **intent_fields)

        with pytest.raises(ValueError):
            PaymentEvent.from_stripe_event(raw)
