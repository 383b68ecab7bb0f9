"""Web interface middleware."""

from .correlation import CorrelationMiddleware
from .error_handler import ErrorHandlerMiddleware
from .request_timing import RequestTimingMiddleware

__all__ = [
    "CorrelationMiddleware",
    "ErrorHandlerMiddleware",
    "RequestTimingMiddleware",
]
