import logging
import traceback
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from meeting_booking.utils.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying after a store outage
RETRY_AFTER_SECONDS = 5


def _error_body(message: str, code: str, details=None, field: str | None = None) -> dict:
    return {
        "success": False,
        "message": message,
        "error": {"code": code, "details": details, "field": field},
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render any AppException subclass in the standard error envelope."""
    headers = None
    if exc.error_code == ErrorCode.TRANSIENT_STORE_ERROR:
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
        logger.error(f"Store unavailable on {request.method} {request.url.path}")
    elif exc.error_code == ErrorCode.BOOKING_CONFLICT:
        logger.info(f"Booking conflict on {request.method} {request.url.path}: {len(exc.details or [])} clash(es)")
    elif exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, exc.details, exc.field),
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Request bodies or query params that do not fit the schema (422).
    Each pydantic error becomes one {field, message} entry; "body"/"query" prefixes are dropped.
    """
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({
            "field": ".".join(loc) or "unknown",
            "message": error.get("msg", "Invalid value"),
        })

    first_field = details[0]["field"] if len(details) == 1 else None
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("Validation error. Please check your input.",
                            ErrorCode.VALIDATION_ERROR, details, first_field),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Constraint violations surface as 409 without leaking driver text."""
    logger.warning(f"IntegrityError on {request.method} {request.url.path}: {exc.orig}")
    reason = str(exc.orig).lower()
    if "foreign key" in reason:
        message = "Referenced meeting room does not exist."
    else:
        message = "The booking could not be saved because it clashes with existing data."
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(message, ErrorCode.DUPLICATE_ENTRY),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("An unexpected error occurred. Please try again later.",
                            ErrorCode.INTERNAL_SERVER_ERROR),
    )
