"""Inventory availability endpoints.

Reads go through the process inventory cache, so answers may lag stock
writes from other processes by up to INVENTORY_CACHE_TTL seconds.
"""

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends

from fulfillment.models import ErrorCode, ErrorResponse, FulfillmentError, InventoryCheckItem
from fulfillment.services.inventory_store import InventoryStore
from fulfillment.utils.logging import get_logger

from storefront_api.dependencies import get_inventory_store
from storefront_api.models.inventory import (
    CheckInventoryRequest,
    CheckInventoryResponse,
    InventoryAvailability,
)

logger = get_logger(__name__)

router = APIRouter(tags=["inventory"])


@router.post(
    "/check-inventory",
    summary="Check stock for one item or a batch",
    description="""
Single item: `{"cocktail_id": "...", "sizes_id": "..."}` returns
`{"available", "stock_quantity"}`.

Batch: `{"items": [{"cocktail_id", "sizes_id", "quantity"?}, ...]}` returns
`{"results": [...]}` in request order. Unknown items are reported as
unavailable with zero stock.
""",
    response_model=CheckInventoryResponse,
    response_model_exclude_none=True,
    responses={500: {"description": "Inventory store error", "model": ErrorResponse}},
)
async def check_inventory(
    request: CheckInventoryRequest,
    store: InventoryStore = Depends(get_inventory_store),
) -> CheckInventoryResponse:
    """Answer availability for the requested items."""
    if request.items is not None:
        items = request.items
    else:
        items = [InventoryCheckItem(cocktail_id=request.cocktail_id, size_id=request.sizes_id)]

    if not items:
        return CheckInventoryResponse(results=[])

    try:
        statuses = store.check_items(items)
    except (ClientError, BotoCoreError) as e:
        logger.error("Inventory check failed: %s", e)
        raise FulfillmentError(ErrorCode.INVENTORY_CHECK_FAILED, {"message": str(e)}) from e

    by_key = {(s.cocktail_id, s.size_id): s for s in statuses}
    results = [
        InventoryAvailability(
            cocktail_id=item.cocktail_id,
            sizes_id=item.size_id,
            available=by_key[(item.cocktail_id, item.size_id)].available,
            stock_quantity=by_key[(item.cocktail_id, item.size_id)].stock_quantity,
        )
        for item in items
    ]

    if request.items is None:
        return CheckInventoryResponse(
            available=results[0].available,
            stock_quantity=results[0].stock_quantity,
        )
    return CheckInventoryResponse(results=results)
