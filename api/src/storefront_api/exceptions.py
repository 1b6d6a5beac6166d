"""FastAPI exception handlers for converting FulfillmentError to HTTP responses.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: webhook authentication/processing failures, invalid carts
- 404 Not Found: unknown order
- 409 Conflict: cart items out of stock
- 500 Internal Server Error: inventory store unavailable during checkout
- 502 Bad Gateway: payment provider API errors

Webhook failures are deliberately 400 rather than 5xx: Stripe redelivers
on any non-2xx, and the idempotency checks make redelivery safe.

Usage:
    from storefront_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from fulfillment.models.errors import ErrorCode, FulfillmentError
from fulfillment.utils.logging import get_logger

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Webhook errors -> 400 so the provider redelivers
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.MALFORMED_PAYLOAD: HTTP_400_BAD_REQUEST,
    ErrorCode.WEBHOOK_PROCESSING_FAILED: HTTP_400_BAD_REQUEST,
    ErrorCode.ORDER_LOOKUP_FAILED: HTTP_400_BAD_REQUEST,
    ErrorCode.ORDER_PERSISTENCE_FAILED: HTTP_400_BAD_REQUEST,
    # Not found errors -> 404 Not Found
    ErrorCode.ORDER_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Checkout errors
    ErrorCode.INVALID_ORDER_ITEMS: HTTP_400_BAD_REQUEST,
    ErrorCode.ITEMS_UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.INVENTORY_CHECK_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.STRIPE_API_ERROR: HTTP_502_BAD_GATEWAY,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    """Handle FulfillmentError exceptions and convert to JSON response.

    Args:
        request: The incoming request
        exc: The FulfillmentError exception

    Returns:
        JSONResponse with ErrorResponse body and mapped status code.
    """
    status_code = get_http_status_for_error(exc.code)
    logger.warning(
        "%s %s -> %d %s: %s",
        request.method,
        request.url.path,
        status_code,
        exc.code.value,
        exc,
    )

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(FulfillmentError, fulfillment_error_handler)  # type: ignore[arg-type]
