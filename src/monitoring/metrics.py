"""
Point-in-time metrics snapshot consumed by the alert evaluator, plus the
content-derived pipeline and quality sections a metrics source reports.

A snapshot is built fresh from the metrics source output on every
evaluation and never changes afterwards.
"""

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.monitoring.config import (
    CONTENT_STATUS_APPROVED,
    CONTENT_STATUS_REJECTED,
    QUALITY_EXCELLENT,
    QUALITY_FAIR,
    QUALITY_GOOD,
    UNKNOWN_CATEGORY,
)
from src.monitoring.interfaces import ContentRecord


def _number(data: Mapping[str, Any] | None, key: str) -> float:
    if not data:
        return 0.0
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class MemoryUsage:
    used_mb: float = 0.0
    total_mb: float = 0.0
    percentage: float = 0.0


@dataclass(frozen=True)
class DatabaseMetrics:
    status: str = "unknown"
    response_time_ms: float = 0.0


@dataclass(frozen=True)
class ApiMetrics:
    avg_response_time_ms: float = 0.0
    error_rate_pct: float = 0.0
    total_requests: int = 0


@dataclass(frozen=True)
class CacheMetrics:
    hit_rate_pct: float = 0.0


@dataclass(frozen=True)
class MetricsSnapshot:
    """Immutable view of the counters the alert rules compare against."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = 0.0
    memory_usage: MemoryUsage = field(default_factory=MemoryUsage)
    database: DatabaseMetrics = field(default_factory=DatabaseMetrics)
    api: ApiMetrics = field(default_factory=ApiMetrics)
    cache: CacheMetrics = field(default_factory=CacheMetrics)

    @classmethod
    def from_metrics(cls, metrics: Mapping[str, Any]) -> "MetricsSnapshot":
        """
        Build a snapshot from a metrics source ``get_metrics()`` payload.

        Missing sections and non-numeric values read as 0; a missing
        database status reads as ``unknown``.
        """
        memory = metrics.get("memory_usage") or {}
        database = metrics.get("database") or {}
        api = metrics.get("api") or {}
        cache = metrics.get("cache") or {}

        return cls(
            timestamp=datetime.now(timezone.utc),
            uptime_seconds=_number(metrics, "uptime_seconds"),
            memory_usage=MemoryUsage(
                used_mb=_number(memory, "used_mb"),
                total_mb=_number(memory, "total_mb"),
                percentage=_number(memory, "percentage"),
            ),
            database=DatabaseMetrics(
                status=str(database.get("status") or "unknown"),
                response_time_ms=_number(database, "response_time_ms"),
            ),
            api=ApiMetrics(
                avg_response_time_ms=_number(api, "avg_response_time_ms"),
                error_rate_pct=_number(api, "error_rate_pct"),
                total_requests=int(_number(api, "total_requests")),
            ),
            cache=CacheMetrics(hit_rate_pct=_number(cache, "hit_rate_pct")),
        )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def empty_pipeline() -> dict[str, Any]:
    return {
        "total_content": 0,
        "approved_content": 0,
        "rejected_content": 0,
        "approval_rate": 0.0,
        "content_by_type": {},
    }


def empty_quality() -> dict[str, Any]:
    return {
        "avg_quality_score": 0.0,
        "avg_readability_score": 0.0,
        "avg_engagement_score": 0.0,
        "quality_distribution": {"excellent": 0, "good": 0, "fair": 0, "poor": 0},
    }


def empty_metrics() -> dict[str, Any]:
    """Zeroed metrics payload with every section a source reports."""
    return {
        "timestamp": None,
        "uptime_seconds": 0.0,
        "memory_usage": {"used_mb": 0.0, "total_mb": 0.0, "percentage": 0.0},
        "database": {"status": "unknown", "response_time_ms": 0.0},
        "api": {"avg_response_time_ms": 0.0, "error_rate_pct": 0.0, "total_requests": 0},
        "pipeline": empty_pipeline(),
        "quality": empty_quality(),
        "requests": {"total": 0, "successful": 0, "failed": 0},
    }


def pipeline_metrics(records: Sequence[ContentRecord]) -> dict[str, Any]:
    """Content throughput for a window of records; missing types count as ``unknown``."""
    if not records:
        return empty_pipeline()

    approved = sum(1 for r in records if r.status == CONTENT_STATUS_APPROVED)
    return {
        "total_content": len(records),
        "approved_content": approved,
        "rejected_content": sum(1 for r in records if r.status == CONTENT_STATUS_REJECTED),
        "approval_rate": approved / len(records) * 100,
        "content_by_type": dict(Counter(r.content_type or UNKNOWN_CATEGORY for r in records)),
    }


def quality_band(score: float) -> str:
    if score >= QUALITY_EXCELLENT:
        return "excellent"
    if score >= QUALITY_GOOD:
        return "good"
    if score >= QUALITY_FAIR:
        return "fair"
    return "poor"


def quality_metrics(records: Sequence[ContentRecord]) -> dict[str, Any]:
    """Average scores and band counts over records that carry a quality score."""
    scored = [r for r in records if r.quality_score is not None]
    if not scored:
        return empty_quality()

    bands = Counter(quality_band(r.quality_score) for r in scored)
    return {
        "avg_quality_score": _mean([r.quality_score for r in scored]),
        "avg_readability_score": _mean([r.readability_score or 0 for r in scored]),
        "avg_engagement_score": _mean([r.engagement_prediction or 0 for r in scored]),
        "quality_distribution": {
            band: bands[band] for band in ("excellent", "good", "fair", "poor")
        },
    }
