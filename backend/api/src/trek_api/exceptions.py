"""FastAPI exception handlers for converting BookingError to HTTP responses.

Domain errors raised by the shared services are rendered with the ToolError
JSON structure and a status code chosen from the ErrorCode:
- 400 Bad Request: Business rule violations
- 401 Unauthorized: Missing identity
- 403 Forbidden: Not the owner, or not an admin
- 404 Not Found: Unknown booking, trek, batch, region, promo code or offer
- 409 Conflict: Capacity, duplicates and already-pending requests
- 502 Bad Gateway: Payment gateway failures

Usage:
    from trek_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from trek_shared.models.errors import BookingError, ErrorCode

logger = logging.getLogger(__name__)

# Codes not listed here map to 400
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Authentication / authorization
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    ErrorCode.UNAUTHORIZED: HTTP_403_FORBIDDEN,
    ErrorCode.ADMIN_REQUIRED: HTTP_403_FORBIDDEN,
    # Not found
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.PARTICIPANT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.TREK_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.BATCH_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.REGION_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.OFFER_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Conflicts with current state
    ErrorCode.CAPACITY_EXCEEDED: HTTP_409_CONFLICT,
    ErrorCode.REQUEST_ALREADY_PENDING: HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_SLUG: HTTP_409_CONFLICT,
    ErrorCode.PROMO_DUPLICATE: HTTP_409_CONFLICT,
    ErrorCode.BATCH_HAS_BOOKINGS: HTTP_409_CONFLICT,
    # Payment gateway
    ErrorCode.REFUND_FAILED: HTTP_502_BAD_GATEWAY,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render a BookingError as a ToolError body with the mapped status."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request %s failed: %s", request.url.path, exc.message)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_tool_error().model_dump(mode="json"),
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Render a rule violation raised as ValueError by a service as 400."""
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error_code": "ERR_VALIDATION",
            "message": str(exc),
            "recovery": "Check the request parameters and try again",
            "details": None,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a generic 500 body for unexpected exceptions.

    The exception is logged; internal details are not exposed to the client.
    """
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Please try again later or contact support",
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValueError, value_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
