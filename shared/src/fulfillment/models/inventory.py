"""Inventory models for per (cocktail, size) stock counters."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InventoryRecord(BaseModel):
    """Stock for one cocktail in one size.

    Owned by the catalog; the fulfillment flow only mutates
    ``stock_quantity`` and ``available``.
    """

    cocktail_id: str
    size_id: str
    stock_quantity: int = Field(..., description="Sellable units")
    available: bool = Field(..., description="stock_quantity > 0")
    price: Decimal | None = Field(
        default=None,
        ge=0,
        description="Current catalog price in major units, if tracked",
    )
    updated_at: datetime | None = None


class InventoryAdjustment(BaseModel):
    """Outcome of decrementing stock for one line item."""

    model_config = ConfigDict(frozen=True)

    cocktail_id: str
    size_id: str
    quantity: int
    applied: bool = Field(..., description="True if the new stock was written")
    previous_stock: int | None = None
    new_stock: int | None = None
    error: str | None = None


class InventoryCheckItem(BaseModel):
    """An item whose availability is being checked."""

    cocktail_id: str = Field(..., min_length=1)
    size_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _accept_sizes_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("size_id") and data.get("sizes_id"):
            data = {**data, "size_id": data["sizes_id"]}
        return data


class InventoryStatus(BaseModel):
    """Availability answer for one (cocktail, size)."""

    cocktail_id: str
    size_id: str
    available: bool
    stock_quantity: int
    requested_quantity: int | None = None
