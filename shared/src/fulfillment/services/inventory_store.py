"""Inventory persistence and read queries.

The ``inventory`` table holds one item per (cocktail_id, size_id) with
``stock_quantity``, ``available`` and an optional catalog ``price``.
Records are owned by the catalog: this module updates them but never
creates or deletes them.
"""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from fulfillment.models import InventoryCheckItem, InventoryRecord, InventoryStatus
from fulfillment.utils.logging import get_logger

from .inventory_cache import TTLCache

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# BatchGetItem accepts at most 100 keys per call.
_BATCH_GET_LIMIT = 100


class InventoryStore:
    """Per (cocktail, size) stock counters."""

    TABLE = "inventory"

    def __init__(
        self,
        db: "DynamoDBService",
        cache: TTLCache[InventoryRecord] | None = None,
    ) -> None:
        """Initialize inventory store.

        Args:
            db: DynamoDB service instance
            cache: Optional read cache for storefront queries
        """
        self.db = db
        self.cache = cache

    def get_record(self, cocktail_id: str, size_id: str) -> InventoryRecord | None:
        """Read the current record straight from the store (no cache).

        Used by the fulfillment flow, which must see the latest stock.
        """
        item = self.db.get_item(
            self.TABLE,
            {"cocktail_id": cocktail_id, "size_id": size_id},
            consistent_read=True,
        )
        return self._item_to_record(item) if item else None

    def set_stock(
        self,
        cocktail_id: str,
        size_id: str,
        stock_quantity: int,
        available: bool,
    ) -> InventoryRecord | None:
        """Write a new stock level for an existing record.

        Returns:
            Updated record, or None if no record exists
        """
        attrs = self.db.update_item(
            self.TABLE,
            {"cocktail_id": cocktail_id, "size_id": size_id},
            "SET stock_quantity = :stock, available = :available, updated_at = :now",
            {
                ":stock": stock_quantity,
                ":available": available,
                ":now": dt.datetime.now(dt.UTC).isoformat(),
            },
            condition_expression="attribute_exists(cocktail_id)",
        )
        if self.cache is not None:
            self.cache.invalidate((cocktail_id, size_id))
        return self._item_to_record(attrs) if attrs else None

    def get_cached_records(
        self, keys: list[tuple[str, str]]
    ) -> dict[tuple[str, str], InventoryRecord]:
        """Read several records, serving hot keys from the cache.

        Args:
            keys: (cocktail_id, size_id) pairs; duplicates are fine

        Returns:
            Mapping of found keys to records (missing keys are absent)
        """
        found: dict[tuple[str, str], InventoryRecord] = {}
        to_fetch: list[tuple[str, str]] = []

        for key in dict.fromkeys(keys):
            cached = self.cache.get(key) if self.cache is not None else None
            if cached is not None:
                found[key] = cached
            else:
                to_fetch.append(key)

        for start in range(0, len(to_fetch), _BATCH_GET_LIMIT):
            chunk = to_fetch[start : start + _BATCH_GET_LIMIT]
            items = self.db.batch_get(
                self.TABLE,
                [{"cocktail_id": c, "size_id": s} for c, s in chunk],
            )
            for item in items:
                record = self._item_to_record(item)
                key = (record.cocktail_id, record.size_id)
                found[key] = record
                if self.cache is not None:
                    self.cache.set(key, record)

        return found

    def check_items(self, items: list[InventoryCheckItem]) -> list[InventoryStatus]:
        """Answer availability for each requested item.

        Quantities for the same (cocktail, size) are summed before comparing
        with stock. Unknown items are reported unavailable with zero stock.
        """
        requested: dict[tuple[str, str], int] = {}
        for item in items:
            key = (item.cocktail_id, item.size_id)
            requested[key] = requested.get(key, 0) + item.quantity

        records = self.get_cached_records(list(requested))

        statuses = []
        for (cocktail_id, size_id), quantity in requested.items():
            record = records.get((cocktail_id, size_id))
            if record is None:
                statuses.append(
                    InventoryStatus(
                        cocktail_id=cocktail_id,
                        size_id=size_id,
                        available=False,
                        stock_quantity=0,
                        requested_quantity=quantity,
                    )
                )
                continue
            statuses.append(
                InventoryStatus(
                    cocktail_id=cocktail_id,
                    size_id=size_id,
                    available=record.available and record.stock_quantity >= quantity,
                    stock_quantity=record.stock_quantity,
                    requested_quantity=quantity,
                )
            )
        return statuses

    def _item_to_record(self, item: dict[str, Any]) -> InventoryRecord:
        """Convert DynamoDB item to InventoryRecord."""
        stock = int(item.get("stock_quantity", 0))
        price = item.get("price")
        updated_at = item.get("updated_at")
        return InventoryRecord(
            cocktail_id=item["cocktail_id"],
            size_id=item["size_id"],
            stock_quantity=stock,
            available=bool(item.get("available", stock > 0)),
            price=Decimal(str(price)) if price is not None else None,
            updated_at=dt.datetime.fromisoformat(updated_at) if updated_at else None,
        )
