"""
Request timing middleware.

Adds ``X-Process-Time`` to every response and reports API request timings to
the pipeline monitor so its API counters and performance trend reflect real
traffic.
"""

import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.logging import get_logger

logger = get_logger(__name__)

API_PATH_PREFIX = "/api/"
SERVER_ERROR_STATUS = 500


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Time each request; API requests are recorded on ``app.state.request_recorder``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._record(request, (time.perf_counter() - start_time) * 1000, success=False)
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{elapsed_ms / 1000:.6f}"
        self._record(request, elapsed_ms, success=response.status_code < SERVER_ERROR_STATUS)
        return response

    def _record(self, request: Request, elapsed_ms: float, success: bool) -> None:
        if not request.url.path.startswith(API_PATH_PREFIX):
            return
        recorder = getattr(request.app.state, "request_recorder", None)
        if recorder is not None:
            recorder.record_request(elapsed_ms, success)
