"""Unit tests for OrderMaterializer.

Test categories:
- Order and line-item creation from a succeeded payment
- Idempotency (existing order, lost race on the guard row)
- No-items handling (truncated, invalid, empty metadata)
- Store failures (lookup aborts, persistence aborts)
- Price mismatch diagnostics
"""

from decimal import Decimal, Inexact
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from fulfillment.models import (
    ErrorCode,
    FulfillmentError,
    OrderStatus,
    PaymentEvent,
    ProcessingResult,
)
from fulfillment.services.inventory_adjuster import InventoryAdjuster
from fulfillment.services.order_materializer import (
    OrderMaterializer,
    cents_to_amount,
    generate_order_id,
)


def _client_error(code: str = "InternalServerError") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "Operation")


@pytest.fixture
def adjuster(inventory_store, recorder) -> InventoryAdjuster:
    return InventoryAdjuster(inventory_store, recorder)


@pytest.fixture
def materializer(order_store, inventory_store, adjuster, recorder) -> OrderMaterializer:
    return OrderMaterializer(order_store, inventory_store, adjuster, recorder)


@pytest.fixture
def succeeded(stripe_event, encode_items):
    """Build a succeeded PaymentEvent carrying the given items."""

    def _build(*items, amount: int = 1000, reference: str = "pi_abc", **metadata) -> PaymentEvent:
        if items:
            metadata.setdefault("items", encode_items(*items))
        raw = stripe_event(payment_intent_id=reference, amount=amount, metadata=metadata)
        return PaymentEvent.from_stripe_event(raw)

    return _build


ITEM = {"cocktail_id": "c1", "size_id": "s1", "quantity": 2, "unit_price": 5}


class TestHelpers:
    def test_generate_order_id_format(self):
        order_id = generate_order_id()

        assert order_id.startswith("ORD-")
        assert len(order_id) == 16
        assert order_id != generate_order_id()

    @pytest.mark.parametrize(
        ("cents", "amount"),
        [(1000, Decimal("10.00")), (1, Decimal("0.01")), (0, Decimal("0.00")), (2605, Decimal("26.05"))],
    )
    def test_cents_to_amount(self, cents, amount):
        assert cents_to_amount(cents) == amount


class TestMaterializeCreatesOrder:
    def test_creates_paid_order_with_items(self, materializer, succeeded, order_store, put_inventory):
        put_inventory("c1", "s1", stock_quantity=10)

        result = materializer.materialize(succeeded(ITEM))

        assert result.result == ProcessingResult.CREATED
        assert result.item_count == 1
        order = order_store.find_by_payment_reference("pi_abc")
        assert order.order_id == result.order_id
        assert order.total_amount == Decimal("10.00")
        assert order.status == OrderStatus.PAID
        assert order.is_paid is True
        items = order_store.get_items(order.order_id)
        assert len(items) == 1
        assert items[0].quantity == 2
        assert items[0].unit_price == Decimal("5")
        assert items[0].line_total == Decimal("10")

    def test_decrements_inventory(self, materializer, succeeded, put_inventory, read_inventory):
        put_inventory("c1", "s1", stock_quantity=10)

        result = materializer.materialize(succeeded(ITEM))

        assert read_inventory("c1", "s1")["stock_quantity"] == 8
        assert result.adjustments[0].applied is True
        assert result.adjustments[0].new_stock == 8

    def test_copies_user_id_from_metadata(self, materializer, succeeded, order_store, put_inventory):
        put_inventory()

        materializer.materialize(succeeded(ITEM, user_id="user-42"))

        assert order_store.find_by_payment_reference("pi_abc").user_id == "user-42"

    def test_order_survives_inventory_failure(self, materializer, succeeded, order_store, diagnostics):
        # No inventory record for c1/s1
        result = materializer.materialize(succeeded(ITEM))

        assert result.result == ProcessingResult.CREATED
        assert order_store.find_by_payment_reference("pi_abc") is not None
        assert "inventory_missing_record" in {d["event_type"] for d in diagnostics()}


class TestMaterializeIdempotency:
    def test_second_delivery_is_duplicate(self, materializer, succeeded, put_inventory, read_inventory, table_items):
        put_inventory("c1", "s1", stock_quantity=10)
        first = materializer.materialize(succeeded(ITEM))

        second = materializer.materialize(succeeded(ITEM))

        assert second.result == ProcessingResult.DUPLICATE
        assert second.order_id == first.order_id
        assert len(table_items("orders")) == 1
        assert len(table_items("order-items")) == 1
        assert read_inventory("c1", "s1")["stock_quantity"] == 8

    def test_lost_race_on_guard_is_duplicate(self, order_store, inventory_store, recorder, succeeded, table_items):
        # Fast-path lookup misses, but another delivery committed the guard row.
        lookups = []

        def stale_lookup(reference):
            lookups.append(reference)
            if len(lookups) <= 2:
                return None
            return order_store.find_by_payment_reference(reference)

        racing_store = MagicMock(wraps=order_store)
        racing_store.find_by_payment_reference.side_effect = stale_lookup
        adjuster = MagicMock()
        adjuster.adjust.return_value = []
        materializer = OrderMaterializer(racing_store, inventory_store, adjuster, recorder)
        first = materializer.materialize(succeeded(ITEM))

        result = materializer.materialize(succeeded(ITEM))

        assert first.result == ProcessingResult.CREATED
        assert result.result == ProcessingResult.DUPLICATE
        assert result.order_id == first.order_id
        assert len(table_items("orders")) == 1
        assert adjuster.adjust.call_count == 1


class TestMaterializeNoItems:
    @pytest.mark.parametrize(
        "metadata",
        [
            {},
            {"items": "[]"},
            {"items": "not json"},
            {"items": '[{"cocktail_id":"c1","size_id":"s1","quantity":1,"unit_price":5}...__truncated'},
            {"items": '[{"cocktail_id":"c1","quantity":1,"unit_price":5}]'},
        ],
    )
    def test_records_diagnostic_and_creates_nothing(
        self, materializer, stripe_event, metadata, table_items, diagnostics
    ):
        event = PaymentEvent.from_stripe_event(stripe_event(metadata=metadata))

        result = materializer.materialize(event)

        assert result.result == ProcessingResult.NO_ITEMS
        assert result.order_id is None
        assert table_items("orders") == []
        assert table_items("order-items") == []
        recorded = diagnostics()
        assert [d["event_type"] for d in recorded] == ["payment_intent_succeeded_no_items"]
        assert recorded[0]["payload"]["payment_reference"] == "pi_abc"
        assert recorded[0]["payload"]["amount"] == 1000


class TestMaterializeStoreFailures:
    def test_lookup_failure_aborts(self, inventory_store, recorder, succeeded, diagnostics):
        order_store = MagicMock()
        order_store.find_by_payment_reference.side_effect = _client_error()
        materializer = OrderMaterializer(order_store, inventory_store, MagicMock(), recorder)

        with pytest.raises(FulfillmentError) as exc_info:
            materializer.materialize(succeeded(ITEM))

        assert exc_info.value.code == ErrorCode.ORDER_LOOKUP_FAILED
        order_store.create_order_with_items.assert_not_called()
        assert [d["event_type"] for d in diagnostics()] == [
            "payment_intent_succeeded_order_check_error"
        ]

    def test_persistence_failure_aborts(self, inventory_store, recorder, succeeded, diagnostics):
        order_store = MagicMock()
        order_store.find_by_payment_reference.return_value = None
        order_store.create_order_with_items.side_effect = _client_error("ProvisionedThroughputExceededException")
        adjuster = MagicMock()
        materializer = OrderMaterializer(order_store, inventory_store, adjuster, recorder)

        with pytest.raises(FulfillmentError) as exc_info:
            materializer.materialize(succeeded(ITEM))

        assert exc_info.value.code == ErrorCode.ORDER_PERSISTENCE_FAILED
        assert "boom" in exc_info.value.details["message"]
        adjuster.adjust.assert_not_called()
        assert [d["event_type"] for d in diagnostics()] == ["payment_intent_succeeded_order_error"]

    def test_serialization_failure_is_recorded(self, inventory_store, recorder, succeeded, diagnostics):
        """Values the store cannot serialize still leave a diagnostic behind."""
        order_store = MagicMock()
        order_store.find_by_payment_reference.return_value = None
        order_store.create_order_with_items.side_effect = Inexact([Inexact])
        materializer = OrderMaterializer(order_store, inventory_store, MagicMock(), recorder)

        with pytest.raises(FulfillmentError) as exc_info:
            materializer.materialize(succeeded(ITEM))

        assert exc_info.value.code == ErrorCode.ORDER_PERSISTENCE_FAILED
        assert [d["event_type"] for d in diagnostics()] == ["payment_intent_succeeded_order_error"]


class TestPriceMismatch:
    def test_mismatch_is_recorded_but_order_created(self, materializer, succeeded, put_inventory, diagnostics):
        put_inventory("c1", "s1", stock_quantity=10, price=Decimal("6.50"))

        result = materializer.materialize(succeeded(ITEM))

        assert result.result == ProcessingResult.CREATED
        mismatches = [d for d in diagnostics() if d["event_type"] == "payment_intent_succeeded_price_mismatch"]
        assert len(mismatches) == 1
        assert mismatches[0]["payload"]["catalog_price"] == Decimal("6.50")
        assert mismatches[0]["payload"]["metadata_price"] == Decimal("5")

    def test_matching_price_records_nothing(self, materializer, succeeded, put_inventory, diagnostics):
        put_inventory("c1", "s1", stock_quantity=10, price=Decimal("5.00"))

        materializer.materialize(succeeded(ITEM))

        assert diagnostics() == []
