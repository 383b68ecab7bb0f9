"""Monitoring domain enumerations shared across the package."""

from enum import Enum


class ComponentState(Enum):
    """Status reported for a single pipeline component."""

    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"
    UNKNOWN = "unknown"


class HealthVerdict(Enum):
    """Overall verdict reduced from a set of component states."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class AlertSeverity(Enum):
    """Alert severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
