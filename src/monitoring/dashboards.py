"""
Dashboard aggregation.

Composes health, alert, content and request-timing data into the payloads
served by the monitoring reads. A failing datastore or metrics source never
propagates out of an aggregate read: the result is ``Degraded`` with a
structurally complete, zeroed payload and the cause attached.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.config import MonitoringConfig
from src.core.logging import get_logger
from src.core.types import AlertSeverity, ComponentState
from src.monitoring.alerting import Alert
from src.monitoring.config import (
    CONTENT_STATUS_APPROVED,
    CONTENT_STATUS_REJECTED,
    UNKNOWN_CATEGORY,
)
from src.monitoring.interfaces import (
    ContentRecord,
    ContentStoreInterface,
    MetricsSourceInterface,
)
from src.monitoring.metrics import empty_metrics
from src.monitoring.pipeline_monitor import system_info
from src.monitoring.timeseries import (
    TimeSeriesRecord,
    assign_buckets,
    bucketize,
    parse_timeframe,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Ok:
    payload: dict[str, Any]

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Degraded:
    """A zeroed payload returned because a dependency failed."""

    payload: dict[str, Any]
    cause: BaseException = field(compare=False)

    @property
    def degraded(self) -> bool:
        return True


AggregateResult = Ok | Degraded


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def empty_dashboard() -> dict[str, Any]:
    return {
        "overview": {
            "monitoring_active": False,
            "total_components": 0,
            "healthy_components": 0,
            "active_alerts": 0,
            "uptime": 0,
        },
        "metrics": {
            "content_generated_today": 0,
            "avg_quality_score": 0,
            "approval_rate": 0,
            "avg_processing_time": 0,
        },
        "components": {},
        "recent_alerts": [],
        "content_distribution": {},
        "performance_trend": [],
    }


def empty_status() -> dict[str, Any]:
    return {"components": {}, "monitoring_active": False, "uptime": 0}


def empty_historical(timeframe: str) -> dict[str, Any]:
    return {
        "timeframe": timeframe,
        "data_points": 0,
        "time_series": [],
        "summary": {"avg_quality": 0, "content_count": 0, "approval_rate": 0},
    }


def empty_performance() -> dict[str, Any]:
    return {
        "system": {"uptime": 0, "memory_usage": {}, "python_version": "", "platform": ""},
        "pipeline": {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "success_rate": 0,
        },
        "timestamp": _utc_now().isoformat(),
    }


def content_distribution(records: Sequence[ContentRecord]) -> dict[str, int]:
    """Count records per ``content_type``; a missing type counts as ``unknown``."""
    return dict(Counter(r.content_type or UNKNOWN_CATEGORY for r in records))


def content_metrics(records: Sequence[ContentRecord]) -> dict[str, Any]:
    approved = sum(1 for r in records if r.status == CONTENT_STATUS_APPROVED)
    return {
        "content_generated_today": len(records),
        "avg_quality_score": _mean([r.quality_score or 0 for r in records]),
        "approval_rate": _percentage(approved, len(records)),
        "avg_processing_time": _mean([r.processing_time_ms or 0 for r in records]),
    }


class DashboardAggregator:
    """
    Builds the aggregate read payloads.

    Alerts are passed in by the caller as an already-copied list so the
    payload reflects one consistent view of the alert history.
    """

    def __init__(
        self,
        source: MetricsSourceInterface,
        content_store: ContentStoreInterface,
        config: MonitoringConfig | None = None,
    ):
        self.source = source
        self.content_store = content_store
        self.config = config or MonitoringConfig()

    def current_status(self) -> AggregateResult:
        """The metrics source's component statuses; zeroed if the source fails."""
        try:
            return Ok(payload=self.source.get_status())
        except Exception as e:
            logger.error("Status unavailable", error=str(e), error_type=type(e).__name__)
            return Degraded(payload=empty_status(), cause=e)

    def current_metrics(self) -> AggregateResult:
        try:
            return Ok(payload=self.source.get_metrics())
        except Exception as e:
            logger.error("Metrics unavailable", error=str(e), error_type=type(e).__name__)
            return Degraded(payload={**empty_metrics(), "monitoring_active": False}, cause=e)

    def performance_trend(self, now: datetime) -> list[dict[str, Any]]:
        """Hourly response time, throughput and error rate from request samples."""
        hours = float(self.config.trend_points)
        since = now - timedelta(hours=hours)
        samples = self.source.request_samples(since)

        trend = []
        for end, members in assign_buckets(samples, hours, now):
            failed = sum(1 for s in members if not s.success)
            trend.append(
                {
                    "hour": end.isoformat(),
                    "response_time": _mean([s.response_time_ms for s in members]),
                    "throughput": len(members),
                    "error_rate": _percentage(failed, len(members)),
                }
            )
        return trend

    async def build(self, alerts: Sequence[Alert], now: datetime | None = None) -> AggregateResult:
        """
        Build the consolidated dashboard payload.

        Args:
            alerts: Alert history in insertion order
            now: Reference time; defaults to the current UTC time

        Returns:
            ``Ok`` with the payload, or ``Degraded`` with a zeroed payload
            when the datastore or metrics source fails
        """
        now = now or _utc_now()
        try:
            status = self.source.get_status()
            records = await self.content_store.fetch_content_since(
                now - timedelta(hours=self.config.dashboard_window_hours),
                limit=self.config.dashboard_content_limit,
                newest_first=True,
            )
            trend = self.performance_trend(now)
        except Exception as e:
            logger.error(
                "Dashboard build failed, serving defaults",
                error=str(e),
                error_type=type(e).__name__,
            )
            return Degraded(payload=empty_dashboard(), cause=e)

        components = status.get("components") or {}
        healthy = sum(
            1 for c in components.values() if c.get("status") == ComponentState.HEALTHY.value
        )
        recent = list(reversed(alerts))[: self.config.recent_alerts_limit]

        return Ok(
            payload={
                "overview": {
                    "monitoring_active": bool(status.get("monitoring_active")),
                    "total_components": len(components),
                    "healthy_components": healthy,
                    "active_alerts": sum(
                        1 for a in alerts if a.severity is AlertSeverity.CRITICAL
                    ),
                    "uptime": status.get("uptime") or 0,
                },
                "metrics": content_metrics(records),
                "components": components,
                "recent_alerts": [a.to_dict() for a in recent],
                "content_distribution": content_distribution(records),
                "performance_trend": trend,
            }
        )

    async def historical_metrics(self, timeframe: str, now: datetime | None = None) -> AggregateResult:
        """
        Quality scores bucketed over ``timeframe`` plus a summary.

        Raises:
            InputValidationError: If the timeframe cannot be parsed
        """
        hours = parse_timeframe(timeframe)
        now = now or _utc_now()
        try:
            records = await self.content_store.fetch_content_since(now - timedelta(hours=hours))
        except Exception as e:
            logger.error("Historical metrics unavailable", timeframe=timeframe, error=str(e))
            return Degraded(payload=empty_historical(timeframe), cause=e)

        in_window = [r for r in records if r.created_at < now]
        series = bucketize(
            [TimeSeriesRecord(timestamp=r.created_at, value=r.quality_score) for r in in_window],
            hours,
            now,
        )
        approved = sum(1 for r in in_window if r.status == CONTENT_STATUS_APPROVED)

        return Ok(
            payload={
                "timeframe": timeframe,
                "data_points": len(in_window),
                "time_series": [bucket.to_dict() for bucket in series],
                "summary": {
                    "avg_quality": _mean([r.quality_score or 0 for r in in_window]),
                    "content_count": len(in_window),
                    "approval_rate": _percentage(approved, len(in_window)),
                },
            }
        )

    async def performance_metrics(self, timeframe: str, now: datetime | None = None) -> AggregateResult:
        """Process details plus pipeline throughput by content outcome."""
        hours = parse_timeframe(timeframe)
        now = now or _utc_now()
        try:
            records = await self.content_store.fetch_content_since(now - timedelta(hours=hours))
            system = system_info()
        except Exception as e:
            logger.error("Performance metrics unavailable", timeframe=timeframe, error=str(e))
            return Degraded(payload=empty_performance(), cause=e)

        approved = sum(1 for r in records if r.status == CONTENT_STATUS_APPROVED)
        rejected = sum(1 for r in records if r.status == CONTENT_STATUS_REJECTED)

        return Ok(
            payload={
                "system": system,
                "pipeline": {
                    "total_requests": len(records),
                    "successful_requests": approved,
                    "failed_requests": rejected,
                    "success_rate": _percentage(approved, len(records)),
                },
                "timestamp": now.isoformat(),
            }
        )


__all__ = [
    "AggregateResult",
    "DashboardAggregator",
    "Degraded",
    "Ok",
    "content_distribution",
    "content_metrics",
    "empty_dashboard",
    "empty_status",
]
