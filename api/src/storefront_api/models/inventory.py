"""API models for inventory availability queries."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from fulfillment.models import InventoryCheckItem


class CheckInventoryRequest(BaseModel):
    """Availability query for one item or a batch.

    Either ``items`` or both ``cocktail_id`` and ``sizes_id`` must be given.
    """

    cocktail_id: str | None = Field(default=None, examples=["c1"])
    sizes_id: str | None = Field(default=None, examples=["s1"])
    items: list[InventoryCheckItem] | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_size_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("sizes_id") and data.get("size_id"):
            data = {**data, "sizes_id": data["size_id"]}
        return data

    @model_validator(mode="after")
    def _require_item_or_items(self) -> "CheckInventoryRequest":
        if self.items is None and not (self.cocktail_id and self.sizes_id):
            raise ValueError("Provide items, or cocktail_id and sizes_id")
        return self


class InventoryAvailability(BaseModel):
    """Availability of a single (cocktail, size)."""

    cocktail_id: str
    sizes_id: str
    available: bool
    stock_quantity: int


class CheckInventoryResponse(BaseModel):
    """Availability answer; ``results`` is set for batch queries."""

    available: bool | None = None
    stock_quantity: int | None = None
    results: list[InventoryAvailability] | None = None
