"""Write-only sink for fulfillment anomalies.

Records go to the ``security-events`` table. Recording never raises:
a diagnostic that cannot be written is logged and dropped so that it
cannot change the outcome of the flow that produced it.
"""

import datetime as dt
import json
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from fulfillment.models import DiagnosticEvent, DiagnosticEventType
from fulfillment.utils.logging import get_correlation_id, get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def _to_storable(value: Any) -> Any:
    """Make a payload value safe for DynamoDB (no floats, no empty sets)."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {str(k): _to_storable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_storable(v) for v in value]
    if value is None or isinstance(value, (str, int, bool, Decimal)):
        return value
    return str(value)


class DiagnosticRecorder:
    """Appends diagnostic events to the security event log."""

    TABLE = "security-events"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize diagnostic recorder.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def record(
        self,
        event_type: DiagnosticEventType,
        **payload: Any,
    ) -> DiagnosticEvent:
        """Record a diagnostic event.

        Args:
            event_type: Diagnostic tag
            **payload: Free-form context (payment_reference, amount, error, ...)

        Returns:
            The event that was (or would have been) stored
        """
        event = DiagnosticEvent(
            event_id=f"DIAG-{uuid.uuid4().hex[:12].upper()}",
            event_type=event_type,
            payload={k: v for k, v in payload.items() if v is not None},
            correlation_id=get_correlation_id(),
            created_at=dt.datetime.now(dt.UTC),
        )

        item: dict[str, Any] = {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "payload": _to_storable(event.payload),
            "created_at": event.created_at.isoformat(),
        }
        if event.correlation_id:
            item["correlation_id"] = event.correlation_id

        try:
            self.db.put_item(self.TABLE, item)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to record diagnostic %s: %s | payload=%s",
                event_type.value,
                e,
                json.dumps(event.payload, default=str),
            )
        else:
            logger.warning(
                "Diagnostic recorded: %s (%s)", event_type.value, event.event_id
            )

        return event
