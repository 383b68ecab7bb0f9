"""
Web interface for the pipeline monitoring service.

FastAPI application exposing the monitoring read and control actions under
``/api/monitoring`` plus a liveness check at ``/health``.
"""

from .app import create_app, get_app

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "create_app",
    "get_app",
]
