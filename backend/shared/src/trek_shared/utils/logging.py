"""Logging for the trek backend.

Every request gets a correlation ID (from ``X-Correlation-ID`` or a fresh
UUID) held in a ContextVar, so log lines written by the services while a
booking is cancelled or refunded can be tied back to the API call:

    [3f0c...] 2026-06-01 12:00:00 INFO trek_shared.services.booking:
        Booking operation: cancel_booking | booking_id=BKG-1 | actor=admin-sub

Services use ``get_logger(__name__)`` and the ``log_*_operation`` helpers,
which also attach the fields to the record as ``extra``.
"""

import logging
import uuid
from contextvars import ContextVar
from decimal import Decimal
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, generating one if needed."""
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamp ``record.correlation_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefix each line with ``[correlation_id]``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id() or NO_CORRELATION_ID
        return f"[{cid}] {super().format(record)}"


def configure_logging(level: int = logging.INFO) -> None:
    """Install a stderr handler using StructuredFormatter on the root logger.

    Called once by the API entry point and by the scripts.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler])


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _log_operation(
    logger: logging.Logger, kind: str, operation: str, fields: dict[str, Any]
) -> None:
    context = {key: value for key, value in fields.items() if value is not None and value != ""}
    message = " | ".join(
        [f"{kind} operation: {operation}", *(f"{key}={value}" for key, value in context.items())]
    )
    level = logging.ERROR if context.get("error") else logging.INFO
    logger.log(level, message, extra={"operation": operation, **context})


def log_booking_operation(
    logger: logging.Logger, operation: str, *, error: str | None = None, **fields: Any
) -> None:
    """Log a booking lifecycle step.

    Args:
        logger: Service logger
        operation: e.g. "create_booking", "cancel_booking", "shift_batch"
        error: Failure message; the line is logged at ERROR when set
        **fields: booking_id, batch_id, actor, status and any other context,
            written in the order given. ``None`` values are skipped.
    """
    _log_operation(logger, "Booking", operation, {**fields, "error": error})


def log_refund_operation(
    logger: logging.Logger,
    operation: str,
    *,
    amount: Decimal | None = None,
    error: str | None = None,
    **fields: Any,
) -> None:
    """Log a gateway refund; ``amount`` is INR and rendered as a string."""
    _log_operation(
        logger,
        "Refund",
        operation,
        {**fields, "amount": None if amount is None else str(amount), "error": error},
    )
