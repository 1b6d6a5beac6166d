"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for tracing one webhook delivery
- A formatter that prefixes every line with the correlation ID
- Helpers for logging webhook and order operations consistently

Usage:
    from fulfillment.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Order created", extra={"order_id": "ORD-123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Async-safe: each request task sees its own value
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, if any."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes records with their correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; existing root handlers are reformatted
    rather than duplicated.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG")
    """
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        root.addHandler(logging.StreamHandler())

    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(DEFAULT_FORMAT))
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def _build_context(fixed: dict[str, Any], optional: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    """Merge fixed fields with the optional ones that were actually given."""
    context = dict(fixed)
    context.update({k: v for k, v in optional.items() if v is not None and v != ""})
    context.update(extra)
    return context


def _render(head: str, context: dict[str, Any], skip: set[str]) -> str:
    tail = [f"{k}={v}" for k, v in context.items() if k not in skip]
    return " | ".join([head, *tail])


def log_order_operation(
    logger: logging.Logger,
    operation: str,
    *,
    payment_reference: str | None = None,
    order_id: str | None = None,
    amount_cents: int | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one step of an order's lifecycle.

    Errors go out at ERROR, everything else at INFO. The context dict is
    also attached to the record so JSON handlers can pick it up.
    """
    context = _build_context(
        {"operation": operation},
        {
            "payment_reference": payment_reference,
            "order_id": order_id,
            "amount_cents": amount_cents,
            "status": status,
            "error": error,
        },
        extra,
    )
    level = logging.ERROR if error else logging.INFO
    logger.log(level, _render(f"Order {operation}", context, {"operation"}), extra=context)


# Webhook outcomes that are expected but worth noticing
_NOTICE_RESULTS = frozenset({"duplicate", "ignored", "no_items", "already_paid", "missing_order"})


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    payment_reference: str | None = None,
    order_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log the outcome of a delivered payment event.

    Args:
        logger: Logger instance
        event_type: Provider event type, e.g. "payment_intent.succeeded"
        event_id: Provider event ID
        payment_reference: PaymentIntent ID, when the event carries one
        order_id: Order touched by the event
        result: Processing result (created, duplicate, ignored, error, ...)
        error: Failure message
        **extra: Additional context fields
    """
    context = _build_context(
        {"event_type": event_type, "event_id": event_id},
        {
            "payment_reference": payment_reference,
            "order_id": order_id,
            "result": result,
            "error": error,
        },
        extra,
    )
    if result == "error" or error:
        level = logging.ERROR
    elif result in _NOTICE_RESULTS:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger.log(
        level,
        _render(f"Webhook {event_type} [{event_id}]", context, {"event_type", "event_id"}),
        extra=context,
    )
