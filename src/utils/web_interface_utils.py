"""
Web interface utilities.

Response envelope construction and the mapping from application exceptions
onto HTTP status codes shared by every monitoring endpoint.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from src.core.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    PipelineMonitorError,
    ValidationError,
)
from src.core.logging import get_logger

logger = get_logger(__name__)

DEGRADED_HEADER = "X-Data-Degraded"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def envelope(
    success: bool,
    data: Any = None,
    error: str | None = None,
    message: str | None = None,
) -> dict[str, Any]:
    """
    Build the response body shared by all endpoints.

    Optional keys are omitted rather than sent as null.
    """
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    if message is not None:
        body["message"] = message
    body["timestamp"] = utc_timestamp()
    return body


def success_response(
    data: Any = None, message: str | None = None, degraded: bool = False
) -> JSONResponse:
    headers = {DEGRADED_HEADER: "true"} if degraded else None
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=envelope(True, data=data, message=message),
        headers=headers,
    )


def status_code_for(error: Exception) -> int:
    """404 for unknown entities, 400 for bad input, 500 for everything else.

    ``ConfigurationError`` is a server fault even though it shares the
    validation base class.
    """
    if isinstance(error, ConfigurationError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(error, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def handle_api_error(
    error: Exception, operation: str, context: dict[str, Any] | None = None
) -> HTTPException:
    """
    Convert application exceptions to HTTP exceptions with a client-safe detail.

    Args:
        error: The original exception
        operation: The operation that failed (for logging)
        context: Additional context for logging

    Returns:
        HTTPException with appropriate status code and message
    """
    status_code = status_code_for(error)
    log_context = {"operation": operation, **(context or {})}

    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            f"{operation} failed", error=str(error), error_type=type(error).__name__, **log_context
        )
    else:
        logger.warning(f"{operation} rejected", error=str(error), **log_context)

    if isinstance(error, PipelineMonitorError):
        detail = error.message
    else:
        detail = f"{operation} failed: {error!s}"
    return HTTPException(status_code=status_code, detail=detail)


def error_response(
    error: Exception, operation: str, context: dict[str, Any] | None = None
) -> JSONResponse:
    """Envelope a failure with the status code ``handle_api_error`` assigns."""
    http_error = handle_api_error(error, operation, context)
    return JSONResponse(
        status_code=http_error.status_code,
        content=envelope(False, error=http_error.detail),
    )
