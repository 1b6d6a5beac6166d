"""Unit tests for FailureReconciler.

Test categories:
- Cancellation of unpaid orders (minimal update, idempotent repeat)
- Paid orders are never downgraded
- Missing orders and store failures become diagnostics
"""

import datetime as dt
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from fulfillment.models import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentEvent,
    ProcessingResult,
)
from fulfillment.services.failure_reconciler import FailureReconciler


def _client_error() -> ClientError:
    return ClientError({"Error": {"Code": "InternalServerError", "Message": "boom"}}, "GetItem")


def _order(status: OrderStatus = OrderStatus.PENDING, is_paid: bool = False) -> Order:
    now = dt.datetime.now(dt.UTC)
    return Order(
        order_id="ORD-000000000001",
        payment_reference="pi_abc",
        total_amount=Decimal("10.00"),
        status=status,
        is_paid=is_paid,
        item_count=1,
        created_at=now,
        updated_at=now,
    )


def _line() -> OrderLineItem:
    return OrderLineItem(
        order_id="ORD-000000000001",
        line_number=1,
        cocktail_id="c1",
        size_id="s1",
        quantity=2,
        unit_price=Decimal("5"),
        line_total=Decimal("10"),
    )


@pytest.fixture
def reconciler(order_store, recorder) -> FailureReconciler:
    return FailureReconciler(order_store, recorder)


@pytest.fixture
def failure_event(stripe_event):
    def _build(event_type: str = "payment_intent.payment_failed", reference: str = "pi_abc") -> PaymentEvent:
        return PaymentEvent.from_stripe_event(
            stripe_event(event_type=event_type, payment_intent_id=reference)
        )

    return _build


class TestCancelUnpaidOrder:
    @pytest.mark.parametrize(
        "event_type", ["payment_intent.payment_failed", "payment_intent.canceled"]
    )
    def test_cancels_pending_order(self, reconciler, failure_event, order_store, event_type):
        order_store.create_order_with_items(_order(), [_line()])

        result = reconciler.reconcile(failure_event(event_type))

        assert result.result == ProcessingResult.CANCELLED
        assert result.order_id == "ORD-000000000001"
        assert result.updated_fields == ["status"]
        stored = order_store.get_order("ORD-000000000001")
        assert stored.status == OrderStatus.CANCELLED
        assert stored.is_paid is False

    def test_repeat_delivery_is_unchanged(self, reconciler, failure_event, order_store, diagnostics):
        order_store.create_order_with_items(_order(), [_line()])
        reconciler.reconcile(failure_event())

        result = reconciler.reconcile(failure_event("payment_intent.canceled"))

        assert result.result == ProcessingResult.UNCHANGED
        assert order_store.get_order("ORD-000000000001").status == OrderStatus.CANCELLED
        assert diagnostics() == []

    def test_never_touches_line_items(self, reconciler, failure_event, order_store):
        order_store.create_order_with_items(_order(), [_line()])

        reconciler.reconcile(failure_event())

        assert order_store.get_items("ORD-000000000001") == [_line()]


class TestPaidOrderIsProtected:
    def test_already_paid_is_recorded_and_left_alone(
        self, reconciler, failure_event, order_store, diagnostics
    ):
        order_store.create_order_with_items(_order(OrderStatus.PAID, is_paid=True), [_line()])

        result = reconciler.reconcile(failure_event())

        assert result.result == ProcessingResult.ALREADY_PAID
        stored = order_store.get_order("ORD-000000000001")
        assert stored.status == OrderStatus.PAID
        assert stored.is_paid is True
        [event] = diagnostics()
        assert event["event_type"] == "payment_intent_failed_already_paid"
        assert event["payload"]["order_id"] == "ORD-000000000001"

    def test_canceled_variant_tag(self, reconciler, failure_event, order_store, diagnostics):
        order_store.create_order_with_items(_order(OrderStatus.PAID, is_paid=True), [_line()])

        reconciler.reconcile(failure_event("payment_intent.canceled"))

        assert [d["event_type"] for d in diagnostics()] == ["payment_intent_canceled_already_paid"]


class TestMissingAndFailures:
    def test_missing_order_records_diagnostic(self, reconciler, failure_event, table_items, diagnostics):
        result = reconciler.reconcile(failure_event("payment_intent.canceled", reference="pi_missing"))

        assert result.result == ProcessingResult.MISSING_ORDER
        assert table_items("orders") == []
        [event] = diagnostics()
        assert event["event_type"] == "payment_intent_canceled_missing_order"
        assert event["payload"]["payment_reference"] == "pi_missing"

    def test_diagnostic_carries_payment_metadata(self, reconciler, stripe_event, diagnostics):
        raw = stripe_event(
            event_type="payment_intent.payment_failed",
            payment_intent_id="pi_missing",
            metadata={"user_id": "u-7", "items": "[]"},
        )

        reconciler.reconcile(PaymentEvent.from_stripe_event(raw))

        [event] = diagnostics()
        assert event["payload"]["metadata"] == {"user_id": "u-7", "items": "[]"}

    def test_lookup_failure_is_recorded(self, recorder, failure_event, diagnostics):
        store = MagicMock()
        store.find_by_payment_reference.side_effect = _client_error()

        result = FailureReconciler(store, recorder).reconcile(failure_event())

        assert result.result == ProcessingResult.ERROR
        store.update_status.assert_not_called()
        assert [d["event_type"] for d in diagnostics()] == ["payment_intent_failed_order_check_error"]

    def test_update_failure_is_recorded(self, recorder, failure_event, diagnostics):
        store = MagicMock()
        store.find_by_payment_reference.return_value = _order()
        store.update_status.side_effect = _client_error()

        result = FailureReconciler(store, recorder).reconcile(failure_event())

        assert result.result == ProcessingResult.ERROR
        assert result.order_id == "ORD-000000000001"
        [event] = diagnostics()
        assert event["event_type"] == "payment_intent_failed_order_update_error"
        assert "boom" in event["payload"]["error"]

    def test_order_vanishing_before_update_is_recorded(self, recorder, failure_event, diagnostics):
        store = MagicMock()
        store.find_by_payment_reference.return_value = _order()
        store.update_status.return_value = None

        result = FailureReconciler(store, recorder).reconcile(failure_event())

        assert result.result == ProcessingResult.ERROR
        assert [d["event_type"] for d in diagnostics()] == ["payment_intent_failed_order_update_error"]

    def test_event_without_reference_is_skipped(self, reconciler, failure_event, diagnostics):
        result = reconciler.reconcile(failure_event(reference=""))

        assert result.result == ProcessingResult.SKIPPED
        assert diagnostics() == []

    def test_rejects_succeeded_event(self, reconciler, failure_event):
        with pytest.raises(ValueError):
            reconciler.reconcile(failure_event("payment_intent.succeeded"))
