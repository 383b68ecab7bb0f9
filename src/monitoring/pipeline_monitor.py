"""
In-process metrics source for the content pipeline.

PipelineMonitor runs registered component checks concurrently, samples
process and host resources with psutil, records request timings reported by
the web layer, and drives the periodic health-check and collection loops
while monitoring is active.
"""

import asyncio
import os
import platform
import time
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import aiohttp
import psutil

from src.core.base import BaseComponent
from src.core.config import MonitoringConfig
from src.core.logging import log_async_performance
from src.core.types import ComponentState
from src.monitoring.config import (
    BASELINE_LOOKBACK_DAYS,
    BASELINE_SAMPLE_LIMIT,
    BYTES_PER_MB,
    COMPONENT_METRICS_RESPONSE_LIMIT,
    HTTP_CHECK_TIMEOUT,
    HTTP_ERROR_STATUS,
    PIPELINE_WINDOW_HOURS,
)
from src.monitoring.health import ComponentCheckResult, ComponentStatus, score_components
from src.monitoring.interfaces import (
    ContentStoreInterface,
    Listener,
    MetricsSourceInterface,
    MonitorEvent,
    RequestSample,
)
from src.monitoring.metrics import (
    empty_metrics,
    empty_pipeline,
    empty_quality,
    pipeline_metrics,
    quality_metrics,
)

ComponentCheck = Callable[[], Awaitable[ComponentCheckResult]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _process_uptime() -> float:
    return max(0.0, time.time() - psutil.Process(os.getpid()).create_time())


def system_info() -> dict[str, Any]:
    """Process uptime, resident memory and interpreter details."""
    memory = psutil.Process(os.getpid()).memory_info()
    return {
        "uptime": _process_uptime(),
        "memory_usage": {
            "rss_mb": memory.rss / BYTES_PER_MB,
            "vms_mb": memory.vms / BYTES_PER_MB,
        },
        "python_version": platform.python_version(),
        "platform": platform.system().lower(),
    }


def _level_for(value: float, warning: float, error: float) -> ComponentState:
    if value >= error:
        return ComponentState.ERROR
    if value >= warning:
        return ComponentState.WARNING
    return ComponentState.HEALTHY


class HttpEndpointCheck:
    """Health check that GETs an HTTP endpoint; any 4xx or 5xx is an error."""

    def __init__(self, url: str, timeout: float = HTTP_CHECK_TIMEOUT):
        self.url = url
        self.timeout = timeout

    async def __call__(self) -> ComponentCheckResult:
        started = time.perf_counter()
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(self.url) as response:
                elapsed_ms = (time.perf_counter() - started) * 1000
                if response.status >= HTTP_ERROR_STATUS:
                    return ComponentCheckResult(
                        status=ComponentState.ERROR,
                        message=f"{self.url} returned HTTP {response.status}",
                        response_time_ms=elapsed_ms,
                        metrics={"http_status": response.status},
                    )
                return ComponentCheckResult(
                    status=ComponentState.HEALTHY,
                    message=f"{self.url} responded in {elapsed_ms:.0f}ms",
                    response_time_ms=elapsed_ms,
                    metrics={"http_status": response.status},
                )


class PipelineMonitor(BaseComponent, MetricsSourceInterface):
    """
    Metrics source backed by live checks and in-memory counters.

    Component checks are async callables returning ``ComponentCheckResult``.
    The datastore, memory and disk checks are registered by default; each
    configured API health endpoint adds an ``HttpEndpointCheck``.

    ``get_status`` and ``get_metrics`` only read state captured by the last
    health check or collection, so repeated reads are identical.
    """

    def __init__(
        self,
        config: MonitoringConfig | None = None,
        content_store: ContentStoreInterface | None = None,
        register_default_checks: bool = True,
    ):
        super().__init__(name="PipelineMonitor")
        self.config = config or MonitoringConfig()
        self._content_store = content_store

        self._checks: dict[str, ComponentCheck] = {}
        self._components: dict[str, ComponentStatus] = {}
        self._history: dict[str, deque[dict[str, Any]]] = {}
        self._listeners: dict[MonitorEvent, list[Listener]] = {event: [] for event in MonitorEvent}
        self._tasks: list[asyncio.Task] = []

        self._samples: deque[RequestSample] = deque(maxlen=self.config.max_request_samples)
        self._request_counts = {"total": 0, "successful": 0, "failed": 0}

        self._metrics: dict[str, Any] = empty_metrics()
        self._uptime_seconds = _process_uptime()
        self._baselines: dict[str, float] = {
            "quality_score": 0.0,
            "readability_score": 0.0,
            "engagement_score": 0.0,
        }

        if register_default_checks:
            if content_store is not None:
                self.register_check("database", self._check_database)
            self.register_check("memory", self._check_memory)
            self.register_check("disk", self._check_disk)
            for index, url in enumerate(self.config.api_health_endpoints):
                self.register_check(
                    f"api_{index}", HttpEndpointCheck(url, self.config.health_check_timeout_seconds)
                )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_check(self, name: str, check: ComponentCheck) -> None:
        self._checks[name] = check
        self._components[name] = ComponentStatus(name=name)
        self._history[name] = deque(maxlen=self.config.max_component_metrics)

    def add_listener(self, event: MonitorEvent, listener: Listener) -> None:
        self._listeners[event].append(listener)

    async def _emit(self, event: MonitorEvent, payload: Any) -> None:
        for listener in list(self._listeners[event]):
            try:
                await listener(payload)
            except Exception as e:
                self.logger.error(
                    "Monitor listener failed",
                    monitor_event=event.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    # ------------------------------------------------------------------
    # Request accounting
    # ------------------------------------------------------------------

    def record_request(
        self, response_time_ms: float, success: bool, timestamp: datetime | None = None
    ) -> None:
        self._samples.append(
            RequestSample(
                timestamp=timestamp or _utc_now(),
                response_time_ms=float(response_time_ms),
                success=success,
            )
        )
        self._request_counts["total"] += 1
        self._request_counts["successful" if success else "failed"] += 1

    def request_samples(self, since: datetime) -> list[RequestSample]:
        return [s for s in self._samples if s.timestamp >= since]

    # ------------------------------------------------------------------
    # Component checks
    # ------------------------------------------------------------------

    async def _check_database(self) -> ComponentCheckResult:
        elapsed_ms = await self._content_store.ping()
        status = (
            ComponentState.HEALTHY
            if elapsed_ms < self.config.database_slow_ms
            else ComponentState.WARNING
        )
        return ComponentCheckResult(
            status=status,
            message=f"Database responsive in {elapsed_ms:.0f}ms",
            response_time_ms=elapsed_ms,
        )

    async def _check_memory(self) -> ComponentCheckResult:
        memory = psutil.virtual_memory()
        return ComponentCheckResult(
            status=_level_for(
                memory.percent,
                self.config.memory_warning_percent,
                self.config.memory_error_percent,
            ),
            message=f"Memory usage at {memory.percent:.1f}%",
            metrics={"percentage": memory.percent},
        )

    async def _check_disk(self) -> ComponentCheckResult:
        disk = psutil.disk_usage(os.path.abspath(os.sep))
        return ComponentCheckResult(
            status=_level_for(
                disk.percent, self.config.disk_warning_percent, self.config.disk_error_percent
            ),
            message=f"Disk usage at {disk.percent:.1f}%",
            metrics={"percentage": disk.percent},
        )

    async def _run_check(self, name: str, check: ComponentCheck) -> ComponentCheckResult:
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(check(), timeout=self.config.health_check_timeout_seconds)
        except asyncio.TimeoutError:
            message = f"Check timed out after {self.config.health_check_timeout_seconds}s"
        except Exception as e:
            message = str(e) or type(e).__name__

        self.logger.warning("Component check failed", check=name, reason=message)
        return ComponentCheckResult(
            status=ComponentState.ERROR,
            message=message,
            response_time_ms=(time.perf_counter() - started) * 1000,
        )

    @log_async_performance
    async def perform_health_check(self) -> dict[str, Any]:
        """
        Run every registered check concurrently.

        A check that raises or exceeds ``health_check_timeout_seconds`` marks
        only its own component as ``error``.

        Returns:
            Dictionary with ``timestamp``, ``components`` and ``summary``
        """
        names = list(self._checks)
        results = await asyncio.gather(
            *(self._run_check(name, self._checks[name]) for name in names)
        )

        checked_at = _utc_now().isoformat()
        for name, result in zip(names, results):
            self._components[name] = ComponentStatus(
                name=name,
                status=result.status,
                metrics={**result.metrics, "response_time_ms": result.response_time_ms},
                last_check=checked_at,
                message=result.message,
            )
            self._history[name].append(
                {
                    "timestamp": checked_at,
                    "status": result.status.value,
                    "response_time_ms": result.response_time_ms,
                }
            )

        self._uptime_seconds = _process_uptime()
        summary = score_components(self._components)
        self.logger.info(
            "Health check complete",
            status=summary.status.value,
            health_percentage=round(summary.health_percentage, 1),
        )

        return {
            "timestamp": checked_at,
            "components": {name: c.to_dict() for name, c in self._components.items()},
            "summary": summary.to_dict(),
        }

    def components(self) -> dict[str, ComponentStatus]:
        return {
            name: ComponentStatus(
                name=c.name,
                status=c.status,
                metrics=dict(c.metrics),
                last_check=c.last_check,
                message=c.message,
            )
            for name, c in self._components.items()
        }

    # ------------------------------------------------------------------
    # Metrics collection
    # ------------------------------------------------------------------

    async def _database_metrics(self) -> dict[str, Any]:
        if self._content_store is None:
            return {"status": ComponentState.UNKNOWN.value, "response_time_ms": 0.0}
        try:
            elapsed_ms = await asyncio.wait_for(
                self._content_store.ping(), timeout=self.config.health_check_timeout_seconds
            )
        except Exception as e:
            self.logger.warning("Database ping failed", error=str(e), error_type=type(e).__name__)
            return {"status": ComponentState.ERROR.value, "response_time_ms": 0.0}
        return {"status": ComponentState.HEALTHY.value, "response_time_ms": elapsed_ms}

    def _api_metrics(self) -> dict[str, Any]:
        samples = list(self._samples)
        if not samples:
            return {
                "avg_response_time_ms": 0.0,
                "error_rate_pct": 0.0,
                "total_requests": self._request_counts["total"],
            }
        failed = sum(1 for s in samples if not s.success)
        return {
            "avg_response_time_ms": sum(s.response_time_ms for s in samples) / len(samples),
            "error_rate_pct": failed / len(samples) * 100,
            "total_requests": self._request_counts["total"],
        }

    async def _content_metrics(self) -> dict[str, Any]:
        """Pipeline throughput and quality over the last ``PIPELINE_WINDOW_HOURS``."""
        if self._content_store is None:
            return {"pipeline": empty_pipeline(), "quality": empty_quality()}
        try:
            records = await self._content_store.fetch_content_since(
                _utc_now() - timedelta(hours=PIPELINE_WINDOW_HOURS)
            )
        except Exception as e:
            self.logger.warning(
                "Content metrics unavailable", error=str(e), error_type=type(e).__name__
            )
            return {"pipeline": empty_pipeline(), "quality": empty_quality()}
        return {"pipeline": pipeline_metrics(records), "quality": quality_metrics(records)}

    async def collect_metrics(self) -> dict[str, Any]:
        """Sample resources and counters; the result replaces the current metrics."""
        memory = psutil.virtual_memory()
        self._uptime_seconds = _process_uptime()

        self._metrics = {
            "timestamp": _utc_now().isoformat(),
            "uptime_seconds": self._uptime_seconds,
            "memory_usage": {
                "used_mb": memory.used / BYTES_PER_MB,
                "total_mb": memory.total / BYTES_PER_MB,
                "percentage": memory.percent,
            },
            "database": await self._database_metrics(),
            "api": self._api_metrics(),
            **await self._content_metrics(),
            "requests": dict(self._request_counts),
        }
        self.logger.debug("Metrics collected", timestamp=self._metrics["timestamp"])
        return self.get_metrics()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def is_monitoring(self) -> bool:
        return self.is_running

    @property
    def baselines(self) -> dict[str, float]:
        return dict(self._baselines)

    def get_status(self) -> dict[str, Any]:
        checks = [c.last_check for c in self._components.values() if c.last_check]
        return {
            "components": {name: c.to_dict() for name, c in self._components.items()},
            "monitoring_active": self.is_monitoring,
            "uptime": self._uptime_seconds,
            "last_health_check": max(checks) if checks else None,
        }

    def get_metrics(self) -> dict[str, Any]:
        metrics = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in self._metrics.items()
        }
        return {
            **metrics,
            "baselines": dict(self._baselines),
            "monitoring_active": self.is_monitoring,
        }

    def get_component_metrics(self, name: str) -> dict[str, Any] | None:
        component = self._components.get(name)
        if component is None:
            return None

        history = list(self._history[name])
        healthy = sum(1 for h in history if h["status"] == ComponentState.HEALTHY.value)
        avg_response = (
            sum(h["response_time_ms"] for h in history) / len(history) if history else 0.0
        )
        return {
            "name": name,
            "status": component.status.value,
            "last_check": component.last_check,
            "metrics": history[-COMPONENT_METRICS_RESPONSE_LIMIT:],
            "avg_response_time": avg_response,
            "uptime": healthy / len(history) if history else 0.0,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_monitoring(self) -> None:
        await self.start()

    async def stop_monitoring(self) -> None:
        await self.stop()

    async def _initialize_baselines(self) -> None:
        if self._content_store is None:
            return
        since = _utc_now() - timedelta(days=BASELINE_LOOKBACK_DAYS)
        records = await self._content_store.fetch_content_since(
            since, limit=BASELINE_SAMPLE_LIMIT, newest_first=True
        )
        if not records:
            return

        count = len(records)
        self._baselines = {
            "quality_score": sum(r.quality_score or 0 for r in records) / count,
            "readability_score": sum(r.readability_score or 0 for r in records) / count,
            "engagement_score": sum(r.engagement_prediction or 0 for r in records) / count,
        }
        self.logger.info("Baselines initialized", samples=count, **self._baselines)

    async def _do_start(self) -> None:
        await self._initialize_baselines()
        self._uptime_seconds = _process_uptime()
        self._tasks = [
            asyncio.create_task(self._health_check_loop()),
            asyncio.create_task(self._metrics_collection_loop()),
        ]
        self.logger.info(
            "Monitoring loops started",
            health_check_interval=self.config.health_check_interval_seconds,
            metrics_collection_interval=self.config.metrics_collection_interval_seconds,
        )

    async def _do_stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        self._uptime_seconds = _process_uptime()

    async def _health_check_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.health_check_interval_seconds)
            try:
                await self.perform_health_check()
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                continue
            await self._emit(MonitorEvent.HEALTH_CHECK_COMPLETE, self.components())

    async def _metrics_collection_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.metrics_collection_interval_seconds)
            try:
                metrics = await self.collect_metrics()
            except Exception as e:
                self.logger.error("Metrics collection failed", error=str(e))
                continue
            await self._emit(MonitorEvent.METRICS_COLLECTED, metrics)
