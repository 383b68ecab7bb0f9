"""
Shared helpers for the web layer.

- web_interface_utils: response envelope and exception to HTTP status mapping
"""

from .web_interface_utils import (
    DEGRADED_HEADER,
    envelope,
    error_response,
    handle_api_error,
    status_code_for,
    success_response,
)

__all__ = [
    "DEGRADED_HEADER",
    "envelope",
    "error_response",
    "handle_api_error",
    "status_code_for",
    "success_response",
]
