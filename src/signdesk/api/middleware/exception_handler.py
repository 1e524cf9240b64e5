"""Exception handlers for FastAPI.

Every error leaves the API in the same envelope:
``{"success": false, "error": {code, message, details}, "correlation_id"}``.
Admission rejections arrive here as ``QuotaPolicyError`` subclasses and
are answered with 403 and their user-facing message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from signdesk.core.exceptions import (
    ErrorCode,
    SignDeskException,
    get_http_status_for_exception,
)
from signdesk.core.logging import get_correlation_id, get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = get_logger(__name__)

STATUS_TO_ERROR_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.AUTHENTICATION_REQUIRED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    405: ErrorCode.INVALID_INPUT,
    409: ErrorCode.INTEGRITY_ERROR,
    500: ErrorCode.INTERNAL_ERROR,
    502: ErrorCode.EXTERNAL_API_ERROR,
    503: ErrorCode.EXTERNAL_API_ERROR,
}


def create_error_response(
    error_code: str,
    message: str,
    details: dict[str, Any] | None = None,
    correlation_id: str | None = None,
) -> dict[str, Any]:
    """Create a standardized error response.

    Args:
        error_code: Machine-readable error code.
        message: Human-readable error message.
        details: Additional error details.
        correlation_id: Request correlation ID.

    Returns:
        Standardized error response dictionary.
    """
    response: dict[str, Any] = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message,
        },
    }

    if details:
        response["error"]["details"] = details

    if correlation_id:
        response["correlation_id"] = correlation_id

    return response


async def signdesk_exception_handler(
    request: Request,
    exc: SignDeskException,
) -> JSONResponse:
    """Handle SignDeskException and subclasses."""
    logger.warning(
        "signdesk_exception",
        error_code=exc.error_code.value,
        error_message=exc.message,
        http_status=exc.http_status.value,
        path=request.url.path,
        details=exc.details,
    )

    return JSONResponse(
        status_code=exc.http_status.value,
        content=create_error_response(
            error_code=exc.error_code.value,
            message=exc.user_message,
            details=exc.details if exc.details else None,
            correlation_id=get_correlation_id(),
        ),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle FastAPI request validation errors."""
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        error_count=len(errors),
        errors=errors[:5],
    )

    return JSONResponse(
        status_code=400,
        content=create_error_response(
            error_code=ErrorCode.VALIDATION_ERROR.value,
            message="Request validation failed",
            details={"validation_errors": errors},
            correlation_id=get_correlation_id(),
        ),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Map Starlette HTTP exceptions to the error envelope."""
    error_code = STATUS_TO_ERROR_CODE.get(exc.status_code, ErrorCode.UNKNOWN_ERROR)

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            error_code=error_code.value,
            message=str(exc.detail) if exc.detail else "An error occurred",
            correlation_id=get_correlation_id(),
        ),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Log unexpected exceptions and answer without leaking internals."""
    http_status = get_http_status_for_exception(exc)

    logger.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
    )

    return JSONResponse(
        status_code=http_status.value,
        content=create_error_response(
            error_code=ErrorCode.INTERNAL_ERROR.value,
            message="An unexpected error occurred. Please try again later.",
            correlation_id=get_correlation_id(),
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(SignDeskException, signdesk_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
