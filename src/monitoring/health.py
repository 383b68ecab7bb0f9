"""
Health scoring for pipeline components.

Reduces the per-component states reported by the metrics source into a
single verdict and a 0-100 score. Everything here is pure: identical input
always yields an identical summary.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from src.core.types import ComponentState, HealthVerdict
from src.monitoring.config import HEALTHY_RATIO_THRESHOLD, WARNING_RATIO_THRESHOLD


@dataclass
class ComponentCheckResult:
    """Outcome of a single component check."""

    status: ComponentState
    message: str = ""
    response_time_ms: float = 0.0
    metrics: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "response_time_ms": self.response_time_ms,
            "metrics": dict(self.metrics),
        }


@dataclass
class ComponentStatus:
    """Current status of one named component."""

    name: str
    status: ComponentState = ComponentState.UNKNOWN
    metrics: dict[str, float] = field(default_factory=dict)
    last_check: str | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "metrics": dict(self.metrics),
            "last_check": self.last_check,
            "message": self.message,
        }


@dataclass(frozen=True)
class HealthSummary:
    """Aggregated component health."""

    total_components: int
    healthy_components: int
    warning_components: int
    error_components: int
    health_percentage: float
    status: HealthVerdict

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def state_of(component: Any) -> ComponentState:
    """Read the state from a ComponentStatus or a mapping with a ``status`` key."""
    raw = component.status if hasattr(component, "status") else component.get("status")
    if isinstance(raw, ComponentState):
        return raw
    try:
        return ComponentState(raw)
    except ValueError:
        return ComponentState.UNKNOWN


def verdict_for_ratio(ratio: float, total: int) -> HealthVerdict:
    """Map a healthy ratio onto a verdict.

    Boundaries are inclusive on the upper side: exactly 0.8 is healthy and
    exactly 0.5 is warning.
    """
    if total == 0:
        return HealthVerdict.UNKNOWN
    if ratio >= HEALTHY_RATIO_THRESHOLD:
        return HealthVerdict.HEALTHY
    if ratio >= WARNING_RATIO_THRESHOLD:
        return HealthVerdict.WARNING
    return HealthVerdict.CRITICAL


def score_components(components: Mapping[str, Any]) -> HealthSummary:
    """
    Reduce a map of component statuses into a health summary.

    Args:
        components: Mapping of component name to ``ComponentStatus`` (or a
            mapping carrying a ``status`` value)

    Returns:
        HealthSummary with counts, percentage and verdict
    """
    states = [state_of(component) for component in components.values()]
    total = len(states)
    healthy = sum(1 for s in states if s is ComponentState.HEALTHY)
    warning = sum(1 for s in states if s is ComponentState.WARNING)
    error = sum(1 for s in states if s is ComponentState.ERROR)

    ratio = healthy / total if total else 0.0

    return HealthSummary(
        total_components=total,
        healthy_components=healthy,
        warning_components=warning,
        error_components=error,
        health_percentage=ratio * 100,
        status=verdict_for_ratio(ratio, total),
    )


def overall_status(components: Mapping[str, Any]) -> HealthVerdict:
    return score_components(components).status


def health_score(components: Mapping[str, Any]) -> float:
    """Percentage of components reporting healthy, 0 for an empty set."""
    return score_components(components).health_percentage
