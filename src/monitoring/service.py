"""
Monitoring service.

MonitoringService is constructed once by the application factory and owns
the process-wide alert state: the current ``AlertConfig`` and the
``AlertHistory``. Every mutation of that state, and every read that combines
more than one piece of it, happens under a single ``asyncio.Lock``.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from src.core.base import BaseComponent
from src.core.config import MonitoringConfig
from src.core.exceptions import EntityNotFoundError, InputValidationError, ServiceError
from src.core.types import AlertSeverity
from src.monitoring.alerting import (
    Alert,
    AlertConfig,
    AlertEvaluator,
    AlertHistory,
    evaluate_components,
    generate_alert_id,
)
from src.monitoring.dashboards import DashboardAggregator
from src.monitoring.health import overall_status, score_components
from src.monitoring.interfaces import ContentStoreInterface, MetricsSourceInterface, MonitorEvent
from src.monitoring.metrics import MetricsSnapshot

DEFAULT_TIMEFRAME = "1h"


@dataclass
class ActionResult:
    """Outcome of one read or control action, before envelope wrapping."""

    data: Any = None
    message: str | None = None
    degraded: bool = False


class MonitoringService(BaseComponent):
    """
    Entry point for every monitoring read and control action.

    Alerts reach the history from three places: explicit ``collect-metrics``
    and ``health-check`` actions, the metrics source's background loops via
    listeners, and ``simulate-alert``. Evaluated alerts pass the configured
    dedup window; simulated ones are always recorded.
    """

    def __init__(
        self,
        source: MetricsSourceInterface,
        content_store: ContentStoreInterface,
        config: MonitoringConfig | None = None,
        evaluator: AlertEvaluator | None = None,
    ):
        super().__init__(name="MonitoringService")
        self.config = config or MonitoringConfig()
        self.source = source
        self.content_store = content_store
        self.evaluator = evaluator or AlertEvaluator()
        self.aggregator = DashboardAggregator(source, content_store, self.config)

        self._lock = asyncio.Lock()
        self._alert_config = AlertConfig(
            memory_threshold=self.config.memory_threshold,
            response_time_threshold=self.config.response_time_threshold,
            error_rate_threshold=self.config.error_rate_threshold,
            database_response_threshold=self.config.database_response_threshold,
            health_score_threshold=self.config.health_score_threshold,
            component_response_threshold=self.config.component_response_threshold,
        )
        self._history = AlertHistory(
            max_size=self.config.alert_history_max_size,
            recent_window_minutes=self.config.recent_alert_window_minutes,
        )

        source.add_listener(MonitorEvent.METRICS_COLLECTED, self._on_metrics_collected)
        source.add_listener(MonitorEvent.HEALTH_CHECK_COMPLETE, self._on_health_check_complete)

    @property
    def alert_config(self) -> AlertConfig:
        return self._alert_config

    async def alerts(self) -> list[Alert]:
        async with self._lock:
            return self._history.all()

    async def _do_stop(self) -> None:
        if self.source.is_monitoring:
            await self.source.stop_monitoring()

    # ------------------------------------------------------------------
    # Alert recording
    # ------------------------------------------------------------------

    async def record_alerts(self, alerts: list[Alert]) -> list[Alert]:
        """Append alerts not suppressed by the dedup window; returns those appended."""
        window = self.config.alert_dedup_window_seconds
        recorded = []
        async with self._lock:
            for alert in alerts:
                if self._history.has_recent(alert.type, alert.component, window, alert.timestamp):
                    self.logger.debug(
                        "Duplicate alert suppressed",
                        alert_type=alert.type,
                        alert_component=alert.component,
                    )
                    continue
                self._history.append(alert)
                recorded.append(alert)

        for alert in recorded:
            self.logger.warning(
                "Alert raised",
                alert_type=alert.type,
                severity=alert.severity.value,
                alert_component=alert.component,
                alert_message=alert.message,
            )
        return recorded

    async def evaluate_metrics(self, metrics: Mapping[str, Any]) -> list[Alert]:
        snapshot = MetricsSnapshot.from_metrics(metrics)
        return await self.record_alerts(self.evaluator.evaluate(snapshot, self._alert_config))

    async def _on_metrics_collected(self, metrics: Mapping[str, Any]) -> None:
        await self.evaluate_metrics(metrics)

    async def _on_health_check_complete(self, components: Mapping[str, Any]) -> None:
        await self.record_alerts(evaluate_components(components, self._alert_config))

    # ------------------------------------------------------------------
    # Read actions
    # ------------------------------------------------------------------

    async def get_status(self) -> ActionResult:
        status = self.aggregator.current_status()
        components = status.payload.get("components") or {}
        return ActionResult(
            data={
                **status.payload,
                "health_summary": score_components(components).to_dict(),
            },
            degraded=status.degraded,
        )

    async def get_metrics(self, timeframe: str = DEFAULT_TIMEFRAME) -> ActionResult:
        historical = await self.aggregator.historical_metrics(timeframe)
        metrics = self.aggregator.current_metrics()
        return ActionResult(
            data={
                **metrics.payload,
                "thresholds": self._alert_config.model_dump(),
                "historical_data": historical.payload,
            },
            degraded=metrics.degraded or historical.degraded,
        )

    async def get_component(self, name: str | None) -> ActionResult:
        if not name:
            raise InputValidationError("Component name is required", parameter_name="component")

        metrics = self.source.get_component_metrics(name)
        if metrics is None:
            raise EntityNotFoundError(
                f"Component '{name}' not found", entity_type="component", entity_id=name
            )
        return ActionResult(data=metrics)

    async def get_alerts(self) -> ActionResult:
        async with self._lock:
            alerts = self._history.all()
            summary = self._history.summarize()
        return ActionResult(
            data={
                "alerts": [a.to_dict() for a in alerts],
                "alert_summary": summary.to_dict(),
            }
        )

    async def get_health(self) -> ActionResult:
        status = self.aggregator.current_status()
        components = status.payload.get("components") or {}
        summary = score_components(components)
        return ActionResult(
            data={
                "overall_status": overall_status(components).value,
                "components": components,
                "health_score": summary.health_percentage,
            },
            degraded=status.degraded,
        )

    async def get_performance(self, timeframe: str = DEFAULT_TIMEFRAME) -> ActionResult:
        result = await self.aggregator.performance_metrics(timeframe)
        return ActionResult(data=result.payload, degraded=result.degraded)

    async def get_dashboard(self) -> ActionResult:
        async with self._lock:
            alerts = self._history.all()
        result = await self.aggregator.build(alerts)
        return ActionResult(data=result.payload, degraded=result.degraded)

    # ------------------------------------------------------------------
    # Control actions
    # ------------------------------------------------------------------

    def _ensure_monitoring(self, operation: str) -> None:
        if not self.source.is_monitoring:
            raise ServiceError(
                "Monitoring did not start", component=self.name, operation=operation
            )

    async def start_monitoring(self, body: Mapping[str, Any]) -> ActionResult:
        await self.source.start_monitoring()
        self._ensure_monitoring("start")
        return ActionResult(
            data={"monitoring_active": self.source.is_monitoring}, message="Monitoring started"
        )

    async def stop_monitoring(self, body: Mapping[str, Any]) -> ActionResult:
        await self.source.stop_monitoring()
        return ActionResult(
            data={"monitoring_active": self.source.is_monitoring}, message="Monitoring stopped"
        )

    async def restart_monitoring(self, body: Mapping[str, Any]) -> ActionResult:
        """Stop, wait ``restart_delay_seconds``, start. A failed start leaves monitoring stopped."""
        if self.source.is_monitoring:
            await self.source.stop_monitoring()
        await asyncio.sleep(self.config.restart_delay_seconds)
        await self.source.start_monitoring()
        self._ensure_monitoring("restart")
        return ActionResult(
            data={"monitoring_active": self.source.is_monitoring}, message="Monitoring restarted"
        )

    async def run_health_check(self, body: Mapping[str, Any]) -> ActionResult:
        result = await self.source.perform_health_check()
        components = result.get("components") or {}
        await self.record_alerts(evaluate_components(components, self._alert_config))

        summary = score_components(components)
        return ActionResult(
            data={
                "components": components,
                "health_score": summary.health_percentage,
                "health_summary": summary.to_dict(),
            },
            message="Health check completed",
        )

    async def collect_metrics(self, body: Mapping[str, Any]) -> ActionResult:
        metrics = await self.source.collect_metrics()
        raised = await self.evaluate_metrics(metrics)
        return ActionResult(
            data={**metrics, "alerts_raised": [a.to_dict() for a in raised]},
            message="Metrics collected",
        )

    async def clear_alerts(self, body: Mapping[str, Any]) -> ActionResult:
        async with self._lock:
            cleared = self._history.clear()
        self.logger.info("Alert history cleared", cleared=cleared)
        return ActionResult(data={"cleared": cleared}, message="Alerts cleared")

    async def update_thresholds(self, body: Mapping[str, Any]) -> ActionResult:
        thresholds = body.get("thresholds")
        if thresholds is None:
            raise InputValidationError(
                "Thresholds parameter is required", parameter_name="thresholds"
            )

        async with self._lock:
            self._alert_config = self._alert_config.merged(thresholds)
            updated = self._alert_config.model_dump()

        self.logger.info("Alert thresholds updated", **updated)
        return ActionResult(data=updated, message="Thresholds updated")

    async def simulate_alert(self, body: Mapping[str, Any]) -> ActionResult:
        data = body.get("data") or {}
        if not isinstance(data, Mapping):
            raise InputValidationError("Alert data must be an object", parameter_name="data")

        raw_severity = body.get("severity") or AlertSeverity.WARNING.value
        try:
            severity = AlertSeverity(raw_severity)
        except ValueError as e:
            raise InputValidationError(
                f"Invalid severity '{raw_severity}'",
                parameter_name="severity",
                parameter_value=raw_severity,
                valid_values=[s.value for s in AlertSeverity],
            ) from e

        alert = Alert(
            id=generate_alert_id("test", separator="-"),
            timestamp=datetime.now(timezone.utc),
            type=str(body.get("type") or "test"),
            severity=severity,
            message=str(data.get("message") or "Test alert"),
            component=str(data.get("component") or "test"),
        )
        async with self._lock:
            self._history.append(alert)

        return ActionResult(data=alert.to_dict(), message="Alert simulated")
