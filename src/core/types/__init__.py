"""
Core type definitions for the pipeline monitoring service.

Import from ``src.core.types``; the submodules are an organizational detail.
"""

from .monitoring import AlertSeverity, ComponentState, HealthVerdict

__all__ = [
    "AlertSeverity",
    "ComponentState",
    "HealthVerdict",
]
