"""
Unit tests for the in-process pipeline monitor.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.core.config import MonitoringConfig
from src.core.exceptions import ComponentError
from src.core.types import ComponentState
from src.monitoring.health import ComponentCheckResult
from src.monitoring.interfaces import MonitorEvent
from src.monitoring.pipeline_monitor import PipelineMonitor, system_info
from tests.fakes import FakeContentStore, make_record


def _healthy(response_time_ms: float = 1.0):
    async def check():
        return ComponentCheckResult(
            status=ComponentState.HEALTHY, message="ok", response_time_ms=response_time_ms
        )

    return check


async def _hanging():
    await asyncio.sleep(10)


async def _raising():
    raise RuntimeError("connection refused")


@pytest.fixture
def config():
    return MonitoringConfig(
        health_check_timeout_seconds=0.05,
        health_check_interval_seconds=0.01,
        metrics_collection_interval_seconds=0.01,
    )


@pytest.fixture
def monitor(config):
    return PipelineMonitor(config, register_default_checks=False)


class TestHealthChecks:
    """Test concurrent component checks."""

    @pytest.mark.asyncio
    async def test_hanging_check_times_out_in_isolation(self, monitor):
        monitor.register_check("cache", _healthy())
        monitor.register_check("renderer", _hanging)

        result = await monitor.perform_health_check()

        components = result["components"]
        assert components["cache"]["status"] == "healthy"
        assert components["renderer"]["status"] == "error"
        assert "timed out" in components["renderer"]["message"]
        assert result["summary"]["status"] == "warning"

    @pytest.mark.asyncio
    async def test_raising_check_marks_only_its_component(self, monitor):
        monitor.register_check("cache", _healthy())
        monitor.register_check("queue", _raising)

        result = await monitor.perform_health_check()

        assert result["components"]["cache"]["status"] == "healthy"
        assert result["components"]["queue"]["status"] == "error"
        assert result["components"]["queue"]["message"] == "connection refused"

    def test_unchecked_components_are_unknown(self, monitor):
        monitor.register_check("cache", _healthy())

        status = monitor.get_status()

        assert status["components"]["cache"]["status"] == "unknown"
        assert status["last_health_check"] is None

    @pytest.mark.asyncio
    async def test_default_checks(self, config):
        store = FakeContentStore()
        monitor = PipelineMonitor(config, content_store=store)

        result = await monitor.perform_health_check()

        assert set(result["components"]) == {"database", "memory", "disk"}
        assert result["components"]["database"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_is_error(self):
        config = MonitoringConfig(
            health_check_timeout_seconds=1.0,
            api_health_endpoints=["http://127.0.0.1:1/health"],
        )
        monitor = PipelineMonitor(config)

        result = await monitor.perform_health_check()

        assert result["components"]["api_0"]["status"] == "error"

    @pytest.mark.asyncio
    async def test_database_outage_is_error(self, config):
        store = FakeContentStore()
        store.fail = True
        monitor = PipelineMonitor(config, content_store=store)

        result = await monitor.perform_health_check()

        assert result["components"]["database"]["status"] == "error"


class TestComponentMetrics:
    """Test per-component history."""

    def test_unknown_component(self, monitor):
        assert monitor.get_component_metrics("nonexistent") is None

    @pytest.mark.asyncio
    async def test_history_accumulates(self, monitor):
        monitor.register_check("cache", _healthy(10.0))

        await monitor.perform_health_check()
        await monitor.perform_health_check()

        metrics = monitor.get_component_metrics("cache")
        assert metrics["status"] == "healthy"
        assert len(metrics["metrics"]) == 2
        assert metrics["avg_response_time"] == pytest.approx(10.0)
        assert metrics["uptime"] == 1.0

    @pytest.mark.asyncio
    async def test_status_reads_are_stable(self, monitor):
        monitor.register_check("cache", _healthy())
        await monitor.perform_health_check()

        assert monitor.get_status() == monitor.get_status()


class TestMetricsCollection:
    """Test resource and request sampling."""

    @pytest.mark.asyncio
    async def test_request_accounting(self, monitor):
        monitor.record_request(100.0, success=True)
        monitor.record_request(300.0, success=False)

        metrics = await monitor.collect_metrics()

        assert metrics["api"]["avg_response_time_ms"] == pytest.approx(200.0)
        assert metrics["api"]["error_rate_pct"] == pytest.approx(50.0)
        assert metrics["api"]["total_requests"] == 2
        assert metrics["requests"] == {"total": 2, "successful": 1, "failed": 1}
        assert metrics["memory_usage"]["total_mb"] > 0

    @pytest.mark.asyncio
    async def test_database_status_without_store(self, monitor):
        metrics = await monitor.collect_metrics()

        assert metrics["database"]["status"] == "unknown"
        assert metrics["pipeline"]["total_content"] == 0
        assert metrics["quality"]["avg_quality_score"] == 0.0

    @pytest.mark.asyncio
    async def test_database_failure_reported(self, config):
        store = FakeContentStore()
        store.fail = True
        monitor = PipelineMonitor(config, content_store=store)

        metrics = await monitor.collect_metrics()

        assert metrics["database"]["status"] == "error"
        assert metrics["pipeline"]["content_by_type"] == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ConnectionRefusedError(111, "Connect call failed"),
            OSError("network unreachable"),
            RuntimeError(),
        ],
    )
    async def test_any_ping_error_is_reported(self, config, error):
        store = FakeContentStore()
        store.ping_error = error
        monitor = PipelineMonitor(config, content_store=store, register_default_checks=False)

        metrics = await monitor.collect_metrics()

        assert metrics["database"] == {"status": "error", "response_time_ms": 0.0}
        assert monitor.get_metrics()["database"]["status"] == "error"

    @pytest.mark.asyncio
    async def test_pipeline_and_quality_cover_last_hour(self, config):
        now = datetime.now(timezone.utc)
        store = FakeContentStore(
            [
                make_record(now - timedelta(minutes=5), "blog_post", "approved", 0.95),
                make_record(now - timedelta(minutes=10), "blog_post", "rejected", 0.4),
                make_record(now - timedelta(minutes=20), None, "approved", None),
                make_record(now - timedelta(hours=3), "social_post", "approved", 0.8),
            ]
        )
        monitor = PipelineMonitor(config, content_store=store, register_default_checks=False)

        metrics = await monitor.collect_metrics()

        pipeline = metrics["pipeline"]
        assert pipeline["total_content"] == 3
        assert pipeline["approved_content"] == 2
        assert pipeline["rejected_content"] == 1
        assert pipeline["approval_rate"] == pytest.approx(200 / 3)
        assert pipeline["content_by_type"] == {"blog_post": 2, "unknown": 1}

        quality = metrics["quality"]
        assert quality["avg_quality_score"] == pytest.approx(0.675)
        assert quality["avg_readability_score"] == pytest.approx(0.7)
        assert quality["quality_distribution"] == {
            "excellent": 1,
            "good": 0,
            "fair": 0,
            "poor": 1,
        }

    def test_request_samples_since(self, monitor):
        now = datetime.now(timezone.utc)
        monitor.record_request(50.0, True, timestamp=now - timedelta(hours=2))
        monitor.record_request(60.0, True, timestamp=now - timedelta(minutes=5))

        samples = monitor.request_samples(now - timedelta(hours=1))

        assert [s.response_time_ms for s in samples] == [60.0]

    def test_system_info(self):
        info = system_info()

        assert info["uptime"] >= 0
        assert info["memory_usage"]["rss_mb"] > 0
        assert info["python_version"]


class TestLifecycle:
    """Test start and stop of the monitoring loops."""

    @pytest.mark.asyncio
    async def test_start_initializes_baselines(self, config):
        now = datetime.now(timezone.utc)
        store = FakeContentStore(
            [
                make_record(now - timedelta(days=1), quality_score=0.6),
                make_record(now - timedelta(days=2), quality_score=0.8),
            ]
        )
        monitor = PipelineMonitor(config, content_store=store, register_default_checks=False)

        await monitor.start_monitoring()
        try:
            assert monitor.is_monitoring
            assert monitor.baselines["quality_score"] == pytest.approx(0.7)
        finally:
            await monitor.stop_monitoring()

        assert not monitor.is_monitoring

    @pytest.mark.asyncio
    async def test_start_stop_after_collection(self, monitor):
        await monitor.collect_metrics()

        await monitor.start_monitoring()
        assert monitor.is_monitoring
        assert monitor.get_metrics()["monitoring_active"] is True

        await monitor.stop_monitoring()
        assert not monitor.is_monitoring

        await monitor.start_monitoring()
        try:
            assert monitor.is_monitoring
        finally:
            await monitor.stop_monitoring()

    @pytest.mark.asyncio
    async def test_failed_start_leaves_stopped(self, config):
        store = FakeContentStore()
        store.fail = True
        monitor = PipelineMonitor(config, content_store=store, register_default_checks=False)

        with pytest.raises(ComponentError):
            await monitor.start_monitoring()

        assert not monitor.is_monitoring
        assert monitor.get_status()["monitoring_active"] is False

    @pytest.mark.asyncio
    async def test_loops_emit_events(self, monitor):
        monitor.register_check("cache", _healthy())
        received = {event: [] for event in MonitorEvent}

        async def on_health(payload):
            received[MonitorEvent.HEALTH_CHECK_COMPLETE].append(payload)

        async def on_metrics(payload):
            received[MonitorEvent.METRICS_COLLECTED].append(payload)

        monitor.add_listener(MonitorEvent.HEALTH_CHECK_COMPLETE, on_health)
        monitor.add_listener(MonitorEvent.METRICS_COLLECTED, on_metrics)

        await monitor.start_monitoring()
        try:
            for _ in range(100):
                if all(received.values()):
                    break
                await asyncio.sleep(0.01)
        finally:
            await monitor.stop_monitoring()

        assert received[MonitorEvent.HEALTH_CHECK_COMPLETE]
        assert received[MonitorEvent.METRICS_COLLECTED]
        assert "cache" in received[MonitorEvent.HEALTH_CHECK_COMPLETE][0]

    @pytest.mark.asyncio
    async def test_listener_failure_does_not_stop_loop(self, monitor):
        calls = []

        async def broken(payload):
            calls.append(payload)
            raise RuntimeError("listener bug")

        monitor.add_listener(MonitorEvent.METRICS_COLLECTED, broken)

        await monitor.start_monitoring()
        try:
            for _ in range(100):
                if len(calls) >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            await monitor.stop_monitoring()

        assert len(calls) >= 2
