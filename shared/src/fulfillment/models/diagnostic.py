"""Diagnostic event model for the security/diagnostic event sink."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import DiagnosticEventType


class DiagnosticEvent(BaseModel):
    """A non-fatal anomaly recorded during fulfillment.

    Used for:
    - Auditing: payments that produced no order, guard hits
    - Debugging: store read/write failures during reconciliation
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(..., description="Unique diagnostic ID", examples=["DIAG-1A2B3C4D5E6F"])
    event_type: DiagnosticEventType
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="payment_reference, amount, metadata, error, ...",
    )
    correlation_id: str | None = None
    created_at: datetime
