"""
Collaborator interfaces consumed by the monitoring core.

The monitoring service depends on these abstractions only. The in-process
implementations are ``src.monitoring.pipeline_monitor.PipelineMonitor`` and
``src.database.repository.ContentRepository``.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class MonitorEvent(Enum):
    """Events emitted by a metrics source's background loops."""

    HEALTH_CHECK_COMPLETE = "health-check-complete"
    METRICS_COLLECTED = "metrics-collected"


Listener = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True)
class ContentRecord:
    """One generated content item as read from the datastore."""

    id: str
    content_type: str | None
    status: str | None
    quality_score: float | None
    readability_score: float | None
    engagement_prediction: float | None
    processing_time_ms: float | None
    created_at: datetime


@dataclass(frozen=True)
class RequestSample:
    """Timing of one handled request."""

    timestamp: datetime
    response_time_ms: float
    success: bool


class MetricsSourceInterface(ABC):
    """Supplies component statuses and raw counters."""

    @property
    @abstractmethod
    def is_monitoring(self) -> bool:
        """Whether background monitoring is running."""

    @abstractmethod
    def get_status(self) -> dict[str, Any]:
        """Return ``{components, monitoring_active, uptime}``."""

    @abstractmethod
    def get_metrics(self) -> dict[str, Any]:
        """Return the raw counters a ``MetricsSnapshot`` is built from."""

    @abstractmethod
    def get_component_metrics(self, name: str) -> dict[str, Any] | None:
        """Return metrics for one component, ``None`` if it is not registered."""

    @abstractmethod
    async def perform_health_check(self) -> dict[str, Any]:
        """Run every component check and return the updated statuses."""

    @abstractmethod
    async def collect_metrics(self) -> dict[str, Any]:
        """Sample system counters and return the new metrics."""

    @abstractmethod
    async def start_monitoring(self) -> None:
        """Start background health checks and collection."""

    @abstractmethod
    async def stop_monitoring(self) -> None:
        """Stop background work."""

    @abstractmethod
    def add_listener(self, event: MonitorEvent, listener: Listener) -> None:
        """Call ``listener`` with the event payload after each background run."""

    @abstractmethod
    def request_samples(self, since: datetime) -> list[RequestSample]:
        """Request timings recorded at or after ``since``."""


class ContentStoreInterface(ABC):
    """Read access to generated content."""

    @abstractmethod
    async def fetch_content_since(
        self,
        since: datetime,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[ContentRecord]:
        """Content created at or after ``since``."""

    @abstractmethod
    async def ping(self) -> float:
        """Round-trip a trivial query; returns elapsed milliseconds."""
