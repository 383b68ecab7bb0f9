"""
Threshold alerting for the content pipeline.

This module implements:
- AlertConfig: the mutable-by-replacement threshold configuration
- Alert: an immutable alert record
- AlertEvaluator: independent threshold rules evaluated against a snapshot
- evaluate_components: status, latency and health-score alerts for components
- AlertHistory: the append-only, clearable alert log with summaries

Rules compare with a strict inequality, so a value sitting exactly on its
threshold never alerts. Evaluation is stateless; suppression of repeats is a
policy applied by the caller through ``AlertHistory.has_recent``.
"""

import time
import uuid
from collections import Counter, deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from src.core.exceptions import InputValidationError
from src.core.logging import get_logger
from src.core.types import AlertSeverity, ComponentState
from src.monitoring.config import (
    ALERT_HISTORY_MAX_SIZE,
    DEFAULT_COMPONENT_RESPONSE_THRESHOLD,
    DEFAULT_DATABASE_RESPONSE_THRESHOLD,
    DEFAULT_ERROR_RATE_THRESHOLD,
    DEFAULT_HEALTH_SCORE_THRESHOLD,
    DEFAULT_MEMORY_THRESHOLD,
    DEFAULT_RESPONSE_TIME_THRESHOLD,
    RECENT_ALERT_WINDOW_MINUTES,
)
from src.monitoring.health import score_components, state_of
from src.monitoring.metrics import MetricsSnapshot

logger = get_logger(__name__)


class AlertConfig(BaseModel):
    """Alert thresholds, as percentages or milliseconds.

    ``health_score_threshold`` is a floor; every other threshold is a ceiling.

    Instances are frozen; an update produces a new config via ``merged`` so
    readers holding the previous instance keep a consistent view.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    memory_threshold: float = Field(default=DEFAULT_MEMORY_THRESHOLD, ge=0)
    response_time_threshold: float = Field(default=DEFAULT_RESPONSE_TIME_THRESHOLD, ge=0)
    error_rate_threshold: float = Field(default=DEFAULT_ERROR_RATE_THRESHOLD, ge=0)
    database_response_threshold: float = Field(default=DEFAULT_DATABASE_RESPONSE_THRESHOLD, ge=0)
    health_score_threshold: float = Field(default=DEFAULT_HEALTH_SCORE_THRESHOLD, ge=0, le=100)
    component_response_threshold: float = Field(default=DEFAULT_COMPONENT_RESPONSE_THRESHOLD, ge=0)

    def merged(self, updates: Mapping[str, Any]) -> "AlertConfig":
        """
        Return a copy with only the given thresholds replaced.

        Raises:
            InputValidationError: unknown key, non-numeric or negative value
        """
        if not isinstance(updates, Mapping):
            raise InputValidationError(
                "Thresholds must be an object", parameter_name="thresholds"
            )

        known = set(type(self).model_fields)
        for key, value in updates.items():
            if key not in known:
                raise InputValidationError(
                    f"Unknown threshold '{key}'",
                    parameter_name=key,
                    valid_values=sorted(known),
                )
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InputValidationError(
                    f"Threshold '{key}' must be a number",
                    parameter_name=key,
                    parameter_value=value,
                )

        try:
            return type(self)(**{**self.model_dump(), **updates})
        except PydanticValidationError as e:
            raise InputValidationError(
                f"Invalid thresholds: {e.errors()[0]['msg']}", parameter_name="thresholds"
            ) from e


def generate_alert_id(prefix: str = "alert", separator: str = "_") -> str:
    return f"{prefix}{separator}{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class Alert:
    """An emitted alert. Never mutated after creation."""

    type: str
    severity: AlertSeverity
    message: str
    component: str
    threshold: Any = None
    current_value: Any = None
    id: str = field(default_factory=generate_alert_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "component": self.component,
            "threshold": self.threshold,
            "current_value": self.current_value,
        }


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class ThresholdRule:
    """Alert when a snapshot value is strictly above a configured threshold."""

    type: str
    severity: AlertSeverity
    component: str
    threshold_field: str
    value: Callable[[MetricsSnapshot], float]
    message: Callable[[float], str]

    def check(self, snapshot: MetricsSnapshot, config: AlertConfig) -> Alert | None:
        current = self.value(snapshot)
        threshold = getattr(config, self.threshold_field)
        if current <= threshold:
            return None
        return Alert(
            type=self.type,
            severity=self.severity,
            message=self.message(current),
            component=self.component,
            threshold=threshold,
            current_value=current,
        )


@dataclass(frozen=True)
class DatabaseStatusRule:
    """Alert when the datastore reports anything but healthy."""

    type: str = "database_unhealthy"
    severity: AlertSeverity = AlertSeverity.CRITICAL
    component: str = "database"

    def check(self, snapshot: MetricsSnapshot, config: AlertConfig) -> Alert | None:
        status = snapshot.database.status
        if status == ComponentState.HEALTHY.value:
            return None
        return Alert(
            type=self.type,
            severity=self.severity,
            message="Database is not responding properly",
            component=self.component,
            threshold=ComponentState.HEALTHY.value,
            current_value=status,
        )


DEFAULT_RULES: tuple[Any, ...] = (
    ThresholdRule(
        type="memory_high",
        severity=AlertSeverity.WARNING,
        component="memory",
        threshold_field="memory_threshold",
        value=lambda s: s.memory_usage.percentage,
        message=lambda v: f"Memory usage is at {v:.1f}%",
    ),
    ThresholdRule(
        type="database_slow",
        severity=AlertSeverity.WARNING,
        component="database",
        threshold_field="database_response_threshold",
        value=lambda s: s.database.response_time_ms,
        message=lambda v: f"Database response time is {_fmt(v)}ms",
    ),
    ThresholdRule(
        type="api_slow",
        severity=AlertSeverity.WARNING,
        component="api",
        threshold_field="response_time_threshold",
        value=lambda s: s.api.avg_response_time_ms,
        message=lambda v: f"API response time is {_fmt(v)}ms",
    ),
    ThresholdRule(
        type="error_rate_high",
        severity=AlertSeverity.CRITICAL,
        component="api",
        threshold_field="error_rate_threshold",
        value=lambda s: s.api.error_rate_pct,
        message=lambda v: f"Error rate is {_fmt(v)}%",
    ),
    DatabaseStatusRule(),
)


class AlertEvaluator:
    """Evaluates every rule independently against one snapshot."""

    def __init__(self, rules: Iterable[Any] = DEFAULT_RULES):
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[Any, ...]:
        return self._rules

    def evaluate(self, snapshot: MetricsSnapshot, config: AlertConfig) -> list[Alert]:
        """
        Produce one alert per triggered rule.

        Args:
            snapshot: Metrics at evaluation time
            config: Thresholds to compare against

        Returns:
            Alerts in rule order; empty when nothing breaches
        """
        alerts = []
        for rule in self._rules:
            alert = rule.check(snapshot, config)
            if alert is not None:
                alerts.append(alert)
        return alerts


def _component_field(component: Any, key: str) -> Any:
    if isinstance(component, Mapping):
        return component.get(key)
    return getattr(component, key, None)


def component_response_time(component: Any) -> float:
    """Last check duration in ms, read from the component's ``metrics``."""
    metrics = _component_field(component, "metrics") or {}
    value = metrics.get("response_time_ms", _component_field(component, "response_time_ms"))
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def evaluate_components(
    components: Mapping[str, Any], config: AlertConfig | None = None
) -> list[Alert]:
    """
    Alerts derived from a set of component statuses.

    Produces, per component, a ``component_unhealthy`` alert when it is in
    warning or error and a ``component_slow`` alert when its last check took
    longer than ``component_response_threshold``; then one ``health_score_low``
    alert when the share of healthy components is below
    ``health_score_threshold``. An empty set raises nothing.
    """
    config = config or AlertConfig()
    alerts = []
    for name, component in components.items():
        status = state_of(component)
        if status in (ComponentState.ERROR, ComponentState.WARNING):
            severity = (
                AlertSeverity.CRITICAL if status is ComponentState.ERROR else AlertSeverity.WARNING
            )
            message = _component_field(component, "message")
            detail = f": {message}" if message else ""
            alerts.append(
                Alert(
                    type="component_unhealthy",
                    severity=severity,
                    message=f"Component {name} is {status.value}{detail}",
                    component=name,
                    threshold=ComponentState.HEALTHY.value,
                    current_value=status.value,
                )
            )

        response_time = component_response_time(component)
        if response_time > config.component_response_threshold:
            alerts.append(
                Alert(
                    type="component_slow",
                    severity=AlertSeverity.WARNING,
                    message=f"Component {name} responded in {_fmt(response_time)}ms",
                    component=name,
                    threshold=config.component_response_threshold,
                    current_value=response_time,
                )
            )

    if components:
        score = score_components(components).health_percentage
        if score < config.health_score_threshold:
            alerts.append(
                Alert(
                    type="health_score_low",
                    severity=AlertSeverity.WARNING,
                    message=f"Health score is {score:.1f}%",
                    component="system",
                    threshold=config.health_score_threshold,
                    current_value=score,
                )
            )
    return alerts


@dataclass(frozen=True)
class AlertSummary:
    total: int
    critical: int
    warning: int
    info: int
    recent: int
    by_type: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "critical": self.critical,
            "warning": self.warning,
            "info": self.info,
            "recent": self.recent,
            "by_type": dict(self.by_type),
        }


def summarize_alerts(
    alerts: Iterable[Alert],
    now: datetime | None = None,
    recent_window_minutes: float = RECENT_ALERT_WINDOW_MINUTES,
) -> AlertSummary:
    """Count alerts by severity and type; "recent" is relative to ``now``."""
    alerts = list(alerts)
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=recent_window_minutes)
    severities = Counter(a.severity for a in alerts)

    return AlertSummary(
        total=len(alerts),
        critical=severities[AlertSeverity.CRITICAL],
        warning=severities[AlertSeverity.WARNING],
        info=severities[AlertSeverity.INFO],
        recent=sum(1 for a in alerts if a.timestamp > cutoff),
        by_type=dict(Counter(a.type for a in alerts)),
    )


class AlertHistory:
    """
    Append-only alert log, cleared only explicitly.

    Bounded by ``max_size``; when full, the oldest alert is evicted.
    The class does no locking itself; the owning service serializes writes.
    """

    def __init__(
        self,
        max_size: int = ALERT_HISTORY_MAX_SIZE,
        recent_window_minutes: float = RECENT_ALERT_WINDOW_MINUTES,
    ):
        self._alerts: deque[Alert] = deque(maxlen=max_size)
        self._recent_window_minutes = recent_window_minutes

    def __len__(self) -> int:
        return len(self._alerts)

    def all(self) -> list[Alert]:
        """All alerts in insertion order."""
        return list(self._alerts)

    def append(self, alert: Alert) -> None:
        self._alerts.append(alert)

    def extend(self, alerts: Iterable[Alert]) -> None:
        self._alerts.extend(alerts)

    def recent(self, limit: int) -> list[Alert]:
        """Up to ``limit`` most recently appended alerts, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._alerts))[:limit]

    def clear(self) -> int:
        """Drop every alert; returns how many were removed."""
        removed = len(self._alerts)
        self._alerts.clear()
        return removed

    def has_recent(
        self,
        alert_type: str,
        component: str,
        window_seconds: float,
        now: datetime | None = None,
    ) -> bool:
        """Whether an alert with the same type and component exists inside the window."""
        if window_seconds <= 0:
            return False
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=window_seconds)
        return any(
            a.type == alert_type and a.component == component and a.timestamp >= cutoff
            for a in reversed(self._alerts)
        )

    def summarize(self, now: datetime | None = None) -> AlertSummary:
        return summarize_alerts(self._alerts, now, self._recent_window_minutes)
