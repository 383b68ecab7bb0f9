"""
Error handling middleware.

Last line of defence for exceptions that escape a route handler: the client
gets the standard failure envelope with a status from ``status_code_for`` and
never a stack trace.
"""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.web_interface_utils import error_response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert unhandled exceptions into enveloped JSON errors."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(e, f"{request.method} {request.url.path}")
