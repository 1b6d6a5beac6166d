"""Results returned by the reconciliation components."""

from pydantic import BaseModel, Field

from .enums import ProcessingResult
from .inventory import InventoryAdjustment


class MaterializationResult(BaseModel):
    """Outcome of turning a succeeded payment into an order."""

    result: ProcessingResult
    payment_reference: str
    order_id: str | None = None
    item_count: int = 0
    adjustments: list[InventoryAdjustment] = Field(default_factory=list)


class ReconciliationResult(BaseModel):
    """Outcome of reconciling a failed or canceled payment."""

    result: ProcessingResult
    payment_reference: str
    order_id: str | None = None
    updated_fields: list[str] = Field(default_factory=list)


class WebhookResult(BaseModel):
    """Acknowledgement body returned to the payment provider."""

    received: bool = True
    event_id: str | None = None
    event_type: str | None = None
    processing_result: ProcessingResult
    order_id: str | None = None
    message: str | None = None
