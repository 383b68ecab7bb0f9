"""
Correlation ID middleware for request tracking.

Every request runs inside a correlation context so all log lines it produces
share one id. The id is taken from ``X-Correlation-ID`` when the caller sends
one and echoed back on the response.
"""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.logging import correlation_context, get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id to the request and echo it in the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_HEADER)
            or correlation_context.generate_correlation_id()
        )

        with correlation_context.correlation_context(correlation_id):
            logger.debug("Request started", method=request.method, path=request.url.path)
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            logger.debug(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
            return response
