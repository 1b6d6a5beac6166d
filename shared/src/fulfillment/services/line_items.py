"""Line-item encoding in PaymentIntent metadata.

Stripe caps each metadata value at 500 characters. At checkout the cart is
serialized into ``metadata["items"]``; oversized values are cut and marked
with ``TRUNCATION_MARKER`` so the webhook side knows the list is incomplete.
"""

import json
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from fulfillment.models import OrderLineItemRequest
from fulfillment.utils.logging import get_logger

logger = get_logger(__name__)

TRUNCATION_MARKER = "...__truncated"
MAX_METADATA_VALUE = 480
TRUNCATED_KEEP = 460


def encode_items_metadata(items: Iterable[OrderLineItemRequest]) -> tuple[str, bool]:
    """Serialize cart items for the ``items`` metadata key.

    Args:
        items: Cart line items

    Returns:
        Tuple of (metadata value, truncated flag)
    """
    payload = [
        {
            "cocktail_id": item.cocktail_id,
            "size_id": item.size_id,
            "quantity": item.quantity,
            "unit_price": float(item.unit_price),
        }
        for item in items
    ]
    value = json.dumps(payload, separators=(",", ":"))
    if len(value) <= MAX_METADATA_VALUE:
        return value, False

    logger.warning(
        "Items metadata is %d chars; truncating to %d", len(value), TRUNCATED_KEEP
    )
    return value[:TRUNCATED_KEEP] + TRUNCATION_MARKER, True


def parse_line_items(metadata: dict[str, str]) -> list[OrderLineItemRequest]:
    """Parse and normalize the line items carried in payment metadata.

    All-or-nothing: a truncated value, invalid JSON, a non-list payload or
    any single invalid item yields an empty list, because a partial list
    would not match what was paid for.

    Args:
        metadata: PaymentIntent metadata

    Returns:
        Normalized line items, or [] if the items cannot be trusted
    """
    raw = metadata.get("items")
    if not raw:
        return []

    if raw.endswith(TRUNCATION_MARKER):
        logger.warning("Items metadata was truncated at checkout; cannot rebuild order")
        return []

    try:
        decoded: Any = json.loads(raw, parse_float=Decimal)
    except json.JSONDecodeError as e:
        logger.warning("Items metadata is not valid JSON: %s", e)
        return []

    if not isinstance(decoded, list):
        logger.warning("Items metadata is %s, expected a list", type(decoded).__name__)
        return []

    try:
        return [OrderLineItemRequest.model_validate(entry) for entry in decoded]
    except ValidationError as e:
        logger.warning("Rejecting items metadata: %d invalid field(s)", e.error_count())
        return []
