"""Order persistence on DynamoDB.

Tables:
- ``orders``: one item per order, PK ``order_id``
- ``order-items``: PK ``order_id``, SK ``line_number``
- ``payment-references``: PK ``payment_reference`` -> ``order_id``

The payment-references table is the uniqueness guard for payment
references: an order, its guard row and its line items are written in a
single transaction, so at most one order can ever exist per reference.
"""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from fulfillment.models import Order, OrderLineItem, OrderStatus

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

# DynamoDB caps a transaction at 100 actions; two go to the order and guard.
MAX_LINE_ITEMS_PER_ORDER = 98


class OrderStore:
    """Reads and writes orders and their line items."""

    ORDERS_TABLE = "orders"
    ITEMS_TABLE = "order-items"
    REFERENCES_TABLE = "payment-references"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize order store.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def find_by_payment_reference(self, payment_reference: str) -> Order | None:
        """Find the order created for a payment reference.

        Uses strongly consistent reads so a just-committed order is visible.

        Args:
            payment_reference: PaymentIntent ID

        Returns:
            Order or None if no order exists for the reference
        """
        guard = self.db.get_item(
            self.REFERENCES_TABLE,
            {"payment_reference": payment_reference},
            consistent_read=True,
        )
        if not guard:
            return None
        return self.get_order(guard["order_id"])

    def get_order(self, order_id: str) -> Order | None:
        """Get an order by ID."""
        item = self.db.get_item(
            self.ORDERS_TABLE, {"order_id": order_id}, consistent_read=True
        )
        return self._item_to_order(item) if item else None

    def get_items(self, order_id: str) -> list[OrderLineItem]:
        """Get the line items of an order, ordered by line number."""
        items = self.db.query_by_partition(self.ITEMS_TABLE, "order_id", order_id)
        line_items = [self._item_to_line_item(item) for item in items]
        return sorted(line_items, key=lambda li: li.line_number)

    def create_order_with_items(
        self,
        order: Order,
        line_items: list[OrderLineItem],
    ) -> bool:
        """Atomically create an order, its guard row and its line items.

        Args:
            order: Order to create
            line_items: Line items belonging to the order

        Returns:
            True if created, False if an order already exists for the
            payment reference

        Raises:
            ValueError: If there are more line items than one transaction holds
            ClientError: On any store failure other than the uniqueness guard
        """
        if len(line_items) > MAX_LINE_ITEMS_PER_ORDER:
            raise ValueError(
                f"Order has {len(line_items)} line items; "
                f"at most {MAX_LINE_ITEMS_PER_ORDER} fit in one transaction"
            )

        now = order.created_at.isoformat()
        writes = [
            self.db.transact_put(
                self.REFERENCES_TABLE,
                {
                    "payment_reference": order.payment_reference,
                    "order_id": order.order_id,
                    "created_at": now,
                },
                condition_expression="attribute_not_exists(payment_reference)",
            ),
            self.db.transact_put(
                self.ORDERS_TABLE,
                self._order_to_item(order),
                condition_expression="attribute_not_exists(order_id)",
            ),
        ]
        writes.extend(
            self.db.transact_put(self.ITEMS_TABLE, self._line_item_to_item(li))
            for li in line_items
        )

        return self.db.transact_write(writes)

    def update_status(
        self,
        order_id: str,
        *,
        status: OrderStatus | None = None,
        is_paid: bool | None = None,
    ) -> Order | None:
        """Update only the given fields of an existing order.

        Args:
            order_id: Order to update
            status: New status, or None to leave unchanged
            is_paid: New paid flag, or None to leave unchanged

        Returns:
            Updated Order, or None if the order does not exist

        Raises:
            ValueError: If no field is given
        """
        assignments = ["updated_at = :now"]
        values: dict[str, Any] = {":now": dt.datetime.now(dt.UTC).isoformat()}
        names: dict[str, str] = {}

        if status is not None:
            assignments.append("#status = :status")
            values[":status"] = status.value
            names["#status"] = "status"  # status is a reserved word
        if is_paid is not None:
            assignments.append("is_paid = :is_paid")
            values[":is_paid"] = is_paid

        if len(assignments) == 1:
            raise ValueError("update_status requires status or is_paid")

        attrs = self.db.update_item(
            self.ORDERS_TABLE,
            {"order_id": order_id},
            "SET " + ", ".join(assignments),
            values,
            names or None,
            condition_expression="attribute_exists(order_id)",
        )
        return self._item_to_order(attrs) if attrs else None

    # Conversion helpers

    def _order_to_item(self, order: Order) -> dict[str, Any]:
        """Convert Order model to DynamoDB item."""
        item: dict[str, Any] = {
            "order_id": order.order_id,
            "payment_reference": order.payment_reference,
            "total_amount": order.total_amount,
            "status": order.status.value,
            "is_paid": order.is_paid,
            "item_count": order.item_count,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
        }
        if order.user_id:
            item["user_id"] = order.user_id
        return item

    def _item_to_order(self, item: dict[str, Any]) -> Order:
        """Convert DynamoDB item to Order model."""
        return Order(
            order_id=item["order_id"],
            payment_reference=item["payment_reference"],
            total_amount=Decimal(str(item["total_amount"])),
            status=OrderStatus(item["status"]),
            is_paid=bool(item["is_paid"]),
            item_count=int(item.get("item_count", 0)),
            user_id=item.get("user_id"),
            created_at=dt.datetime.fromisoformat(item["created_at"]),
            updated_at=dt.datetime.fromisoformat(item["updated_at"]),
        )

    def _line_item_to_item(self, line_item: OrderLineItem) -> dict[str, Any]:
        """Convert OrderLineItem model to DynamoDB item."""
        return {
            "order_id": line_item.order_id,
            "line_number": line_item.line_number,
            "cocktail_id": line_item.cocktail_id,
            "size_id": line_item.size_id,
            "quantity": line_item.quantity,
            "unit_price": line_item.unit_price,
            "line_total": line_item.line_total,
        }

    def _item_to_line_item(self, item: dict[str, Any]) -> OrderLineItem:
        """Convert DynamoDB item to OrderLineItem model."""
        return OrderLineItem(
            order_id=item["order_id"],
            line_number=int(item["line_number"]),
            cocktail_id=item["cocktail_id"],
            size_id=item["size_id"],
            quantity=int(item["quantity"]),
            unit_price=Decimal(str(item["unit_price"])),
            line_total=Decimal(str(item["line_total"])),
        )
