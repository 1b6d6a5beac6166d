"""Standard error codes for the fulfillment backend.

Every failure that reaches the HTTP boundary is a FulfillmentError carrying
one of these codes. The API layer maps codes to status codes.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Webhook errors (ERR_WEBHOOK_001-ERR_WEBHOOK_003)
    INVALID_WEBHOOK_SIGNATURE = "ERR_WEBHOOK_001"
    MALFORMED_PAYLOAD = "ERR_WEBHOOK_002"
    WEBHOOK_PROCESSING_FAILED = "ERR_WEBHOOK_003"

    # Order errors (ERR_ORDER_001-ERR_ORDER_003)
    ORDER_LOOKUP_FAILED = "ERR_ORDER_001"
    ORDER_PERSISTENCE_FAILED = "ERR_ORDER_002"
    ORDER_NOT_FOUND = "ERR_ORDER_003"

    # Checkout errors (ERR_CHECKOUT_001-ERR_CHECKOUT_004)
    INVALID_ORDER_ITEMS = "ERR_CHECKOUT_001"
    ITEMS_UNAVAILABLE = "ERR_CHECKOUT_002"
    INVENTORY_CHECK_FAILED = "ERR_CHECKOUT_003"
    STRIPE_API_ERROR = "ERR_CHECKOUT_004"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.MALFORMED_PAYLOAD: "Webhook payload could not be decoded",
    ErrorCode.WEBHOOK_PROCESSING_FAILED: "Webhook event could not be processed",
    ErrorCode.ORDER_LOOKUP_FAILED: "Failed to check for an existing order",
    ErrorCode.ORDER_PERSISTENCE_FAILED: "Failed to persist order",
    ErrorCode.ORDER_NOT_FOUND: "Order not found",
    ErrorCode.INVALID_ORDER_ITEMS: "Invalid order items",
    ErrorCode.ITEMS_UNAVAILABLE: "Some items are no longer available",
    ErrorCode.INVENTORY_CHECK_FAILED: "Failed to verify inventory",
    ErrorCode.STRIPE_API_ERROR: "Payment provider error occurred",
}

ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.MALFORMED_PAYLOAD: "Check the event payload sent by the provider",
    ErrorCode.WEBHOOK_PROCESSING_FAILED: "The provider will redeliver the event",
    ErrorCode.ORDER_LOOKUP_FAILED: "The provider will redeliver the event",
    ErrorCode.ORDER_PERSISTENCE_FAILED: "The provider will redeliver the event",
    ErrorCode.ORDER_NOT_FOUND: "Verify the payment reference",
    ErrorCode.INVALID_ORDER_ITEMS: "Review the cart and try again",
    ErrorCode.ITEMS_UNAVAILABLE: "Remove unavailable items from the cart",
    ErrorCode.INVENTORY_CHECK_FAILED: "Try again in a moment",
    ErrorCode.STRIPE_API_ERROR: "Try again or contact support",
}


class ErrorResponse(BaseModel):
    """Standard JSON body for failed requests."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class FulfillmentError(Exception):
    """Exception raised by fulfillment and checkout operations.

    Caught at the HTTP boundary and converted to an ErrorResponse.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        detail_message = (details or {}).get("message")
        super().__init__(f"{self.message}: {detail_message}" if detail_message else self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse body."""
        return ErrorResponse.from_code(self.code, self.details)
