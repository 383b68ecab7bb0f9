"""
Unit tests for the monitoring service actions.

The service runs against the fake metrics source and content store from
``tests.fakes``; no database or live checks are involved.
"""

import asyncio

import pytest

from src.core.config import MonitoringConfig
from src.core.exceptions import (
    ComponentError,
    EntityNotFoundError,
    InputValidationError,
    ServiceError,
)
from src.core.types import AlertSeverity
from src.monitoring.interfaces import MonitorEvent
from src.monitoring.pipeline_monitor import PipelineMonitor
from src.monitoring.service import MonitoringService
from tests.fakes import healthy_metrics

HOT_MEMORY = {"used_mb": 900.0, "total_mb": 1000.0, "percentage": 90.0}


class TestReadActions:
    """Test read actions."""

    @pytest.mark.asyncio
    async def test_status_includes_health_summary(self, monitoring_service):
        result = await monitoring_service.get_status()

        assert result.data["monitoring_active"] is False
        assert result.data["health_summary"]["status"] == "healthy"
        assert result.data["health_summary"]["total_components"] == 2

    @pytest.mark.asyncio
    async def test_repeated_status_reads_are_identical(self, monitoring_service):
        first = await monitoring_service.get_status()
        second = await monitoring_service.get_status()

        assert first.data == second.data

    @pytest.mark.asyncio
    async def test_health_does_not_run_checks(self, monitoring_service, fake_source):
        fake_source.components["disk"] = {"name": "disk", "status": "error"}

        result = await monitoring_service.get_health()

        assert fake_source.health_check_calls == 0
        assert result.data["overall_status"] == "warning"
        assert result.data["health_score"] == pytest.approx(200 / 3)

    @pytest.mark.asyncio
    async def test_metrics_include_thresholds_and_history(self, monitoring_service):
        result = await monitoring_service.get_metrics("24h")

        assert result.data["thresholds"]["memory_threshold"] == 85
        assert result.data["historical_data"]["data_points"] == 3
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_metrics_degrade_when_store_down(self, monitoring_service, fake_store):
        fake_store.fail = True

        result = await monitoring_service.get_metrics("1h")

        assert result.degraded
        assert result.data["historical_data"]["data_points"] == 0
        assert result.data["memory_usage"]["percentage"] == 50.0

    @pytest.mark.asyncio
    async def test_status_degrades_when_source_fails(self, monitoring_service, fake_source):
        fake_source.status_error = RuntimeError("monitor offline")

        result = await monitoring_service.get_status()

        assert result.degraded
        assert result.data["components"] == {}
        assert result.data["monitoring_active"] is False
        assert result.data["health_summary"]["total_components"] == 0

    @pytest.mark.asyncio
    async def test_health_degrades_when_source_fails(self, monitoring_service, fake_source):
        fake_source.status_error = ConnectionRefusedError(111, "Connect call failed")

        result = await monitoring_service.get_health()

        assert result.degraded
        assert result.data["overall_status"] == "unknown"
        assert result.data["health_score"] == 0

    @pytest.mark.asyncio
    async def test_metrics_degrade_when_source_fails(self, monitoring_service, fake_source):
        fake_source.metrics_error = RuntimeError("monitor offline")

        result = await monitoring_service.get_metrics("24h")

        assert result.degraded
        assert result.data["memory_usage"]["percentage"] == 0.0
        assert result.data["database"]["status"] == "unknown"
        assert result.data["thresholds"]["memory_threshold"] == 85
        assert result.data["historical_data"]["data_points"] == 3

    @pytest.mark.asyncio
    async def test_metrics_source_failure_keeps_timeframe_validation(
        self, monitoring_service, fake_source
    ):
        fake_source.metrics_error = RuntimeError("monitor offline")

        with pytest.raises(InputValidationError):
            await monitoring_service.get_metrics("forever")

    @pytest.mark.asyncio
    async def test_component_lookup(self, monitoring_service):
        result = await monitoring_service.get_component("database")

        assert result.data["name"] == "database"

    @pytest.mark.asyncio
    async def test_unknown_component_not_found(self, monitoring_service):
        with pytest.raises(EntityNotFoundError):
            await monitoring_service.get_component("nonexistent")

    @pytest.mark.asyncio
    async def test_component_name_required(self, monitoring_service):
        with pytest.raises(InputValidationError):
            await monitoring_service.get_component(None)

    @pytest.mark.asyncio
    async def test_dashboard_degrades_when_store_down(self, monitoring_service, fake_store):
        fake_store.fail = True

        result = await monitoring_service.get_dashboard()

        assert result.degraded
        assert result.data["overview"]["total_components"] == 0


class TestAlerting:
    """Test alert recording through the service."""

    @pytest.mark.asyncio
    async def test_collect_metrics_raises_alerts(self, monitoring_service, fake_source):
        fake_source.metrics = healthy_metrics(memory_usage=HOT_MEMORY)

        result = await monitoring_service.collect_metrics({})

        assert [a["type"] for a in result.data["alerts_raised"]] == ["memory_high"]
        alerts = await monitoring_service.alerts()
        assert len(alerts) == 1

    @pytest.mark.asyncio
    async def test_without_dedup_every_evaluation_appends(self, monitoring_service, fake_source):
        fake_source.metrics = healthy_metrics(memory_usage=HOT_MEMORY)

        await monitoring_service.collect_metrics({})
        await monitoring_service.collect_metrics({})

        assert len(await monitoring_service.alerts()) == 2

    @pytest.mark.asyncio
    async def test_dedup_window_suppresses_repeats(self, fake_source, fake_store):
        config = MonitoringConfig(restart_delay_seconds=0.0, alert_dedup_window_seconds=300)
        service = MonitoringService(fake_source, fake_store, config)
        fake_source.metrics = healthy_metrics(memory_usage=HOT_MEMORY)

        await service.collect_metrics({})
        second = await service.collect_metrics({})

        assert second.data["alerts_raised"] == []
        assert len(await service.alerts()) == 1

    @pytest.mark.asyncio
    async def test_background_events_record_alerts(self, monitoring_service, fake_source):
        await fake_source.emit(
            MonitorEvent.METRICS_COLLECTED, healthy_metrics(memory_usage=HOT_MEMORY)
        )
        await fake_source.emit(
            MonitorEvent.HEALTH_CHECK_COMPLETE,
            {"disk": {"status": "error", "message": "Disk full"}},
        )

        types = [a.type for a in await monitoring_service.alerts()]
        assert types == ["memory_high", "component_unhealthy", "health_score_low"]

    @pytest.mark.asyncio
    async def test_health_check_records_component_alerts(self, monitoring_service, fake_source):
        fake_source.components["disk"] = {"name": "disk", "status": "warning", "message": ""}

        result = await monitoring_service.run_health_check({})

        assert fake_source.health_check_calls == 1
        assert result.data["health_summary"]["warning_components"] == 1
        alerts = await monitoring_service.alerts()
        assert [(a.type, a.component) for a in alerts] == [
            ("component_unhealthy", "disk"),
            ("health_score_low", "system"),
        ]

    @pytest.mark.asyncio
    async def test_health_check_records_slow_components(self, monitoring_service, fake_source):
        fake_source.components["renderer"] = {
            "name": "renderer",
            "status": "healthy",
            "metrics": {"response_time_ms": 5200.0},
        }

        await monitoring_service.run_health_check({})

        alerts = await monitoring_service.alerts()
        assert [(a.type, a.component, a.severity) for a in alerts] == [
            ("component_slow", "renderer", AlertSeverity.WARNING)
        ]
        assert alerts[0].threshold == 5000
        assert alerts[0].current_value == 5200.0

    @pytest.mark.asyncio
    async def test_health_thresholds_are_configurable(self, monitoring_service, fake_source):
        fake_source.components["disk"] = {"name": "disk", "status": "warning", "message": ""}
        await monitoring_service.update_thresholds({"thresholds": {"health_score_threshold": 50}})

        await monitoring_service.run_health_check({})

        assert [a.type for a in await monitoring_service.alerts()] == ["component_unhealthy"]

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_alert(self, fake_store):
        fake_store.ping_error = ConnectionRefusedError(111, "Connect call failed")
        source = PipelineMonitor(
            MonitoringConfig(), content_store=fake_store, register_default_checks=False
        )
        service = MonitoringService(source, fake_store, MonitoringConfig())

        result = await service.collect_metrics({})

        assert result.data["database"]["status"] == "error"
        assert "database_unhealthy" in [a["type"] for a in result.data["alerts_raised"]]

    @pytest.mark.asyncio
    async def test_alerts_summary(self, monitoring_service):
        await monitoring_service.simulate_alert({"type": "test", "severity": "critical"})

        result = await monitoring_service.get_alerts()

        assert result.data["alert_summary"]["total"] == 1
        assert result.data["alert_summary"]["critical"] == 1
        assert result.data["alert_summary"]["recent"] == 1

    @pytest.mark.asyncio
    async def test_clear_alerts(self, monitoring_service):
        await monitoring_service.simulate_alert({})
        await monitoring_service.simulate_alert({})

        result = await monitoring_service.clear_alerts({})

        assert result.data == {"cleared": 2}
        assert await monitoring_service.alerts() == []


class TestSimulateAlert:
    """Test synthetic alerts."""

    @pytest.mark.asyncio
    async def test_defaults(self, monitoring_service):
        result = await monitoring_service.simulate_alert({})

        assert result.data["id"].startswith("test-")
        assert result.data["type"] == "test"
        assert result.data["severity"] == "warning"
        assert result.data["message"] == "Test alert"
        assert result.data["component"] == "test"

    @pytest.mark.asyncio
    async def test_uses_body_fields(self, monitoring_service):
        result = await monitoring_service.simulate_alert(
            {
                "type": "latency",
                "severity": "info",
                "data": {"message": "Slow render", "component": "renderer"},
            }
        )

        assert result.data["type"] == "latency"
        assert result.data["severity"] == "info"
        assert result.data["message"] == "Slow render"
        assert result.data["component"] == "renderer"

    @pytest.mark.asyncio
    async def test_simulated_alerts_bypass_dedup(self, fake_source, fake_store):
        config = MonitoringConfig(alert_dedup_window_seconds=3600)
        service = MonitoringService(fake_source, fake_store, config)

        await service.simulate_alert({})
        await service.simulate_alert({})

        assert len(await service.alerts()) == 2

    @pytest.mark.asyncio
    async def test_invalid_severity(self, monitoring_service):
        with pytest.raises(InputValidationError):
            await monitoring_service.simulate_alert({"severity": "apocalyptic"})

    @pytest.mark.asyncio
    async def test_data_must_be_object(self, monitoring_service):
        with pytest.raises(InputValidationError):
            await monitoring_service.simulate_alert({"data": "oops"})


class TestThresholds:
    """Test threshold updates."""

    @pytest.mark.asyncio
    async def test_partial_update(self, monitoring_service):
        result = await monitoring_service.update_thresholds({"thresholds": {"memory_threshold": 95}})

        assert result.data["memory_threshold"] == 95
        assert result.data["response_time_threshold"] == 2000
        assert monitoring_service.alert_config.memory_threshold == 95

    @pytest.mark.asyncio
    async def test_missing_thresholds(self, monitoring_service):
        with pytest.raises(InputValidationError):
            await monitoring_service.update_thresholds({})

    @pytest.mark.asyncio
    async def test_rejected_update_leaves_config(self, monitoring_service):
        before = monitoring_service.alert_config

        with pytest.raises(InputValidationError):
            await monitoring_service.update_thresholds({"thresholds": {"memory_threshold": "x"}})

        assert monitoring_service.alert_config is before

    @pytest.mark.asyncio
    async def test_new_threshold_applies_to_evaluation(self, monitoring_service, fake_source):
        await monitoring_service.update_thresholds({"thresholds": {"memory_threshold": 40}})

        result = await monitoring_service.collect_metrics({})

        assert [a["type"] for a in result.data["alerts_raised"]] == ["memory_high"]

    @pytest.mark.asyncio
    async def test_concurrent_updates_serialize(self, monitoring_service):
        await asyncio.gather(
            monitoring_service.update_thresholds({"thresholds": {"memory_threshold": 70}}),
            monitoring_service.update_thresholds({"thresholds": {"error_rate_threshold": 2}}),
        )

        config = monitoring_service.alert_config
        assert config.memory_threshold == 70
        assert config.error_rate_threshold == 2


class TestLifecycle:
    """Test start, stop and restart."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, monitoring_service, fake_source):
        started = await monitoring_service.start_monitoring({})
        assert started.data == {"monitoring_active": True}

        stopped = await monitoring_service.stop_monitoring({})
        assert stopped.data == {"monitoring_active": False}

    @pytest.mark.asyncio
    async def test_restart_ends_running(self, monitoring_service, fake_source):
        await monitoring_service.start_monitoring({})

        result = await monitoring_service.restart_monitoring({})

        assert result.data == {"monitoring_active": True}
        assert fake_source.stop_calls == 1
        assert fake_source.start_calls == 2

    @pytest.mark.asyncio
    async def test_failed_restart_leaves_stopped(self, monitoring_service, fake_source):
        await monitoring_service.start_monitoring({})
        fake_source.start_error = ComponentError("boom", component="PipelineMonitor")

        with pytest.raises(ComponentError):
            await monitoring_service.restart_monitoring({})

        assert fake_source.is_monitoring is False

    @pytest.mark.asyncio
    async def test_service_stop_stops_monitoring(self, monitoring_service, fake_source):
        await monitoring_service.start()
        await monitoring_service.start_monitoring({})

        await monitoring_service.stop()

        assert fake_source.is_monitoring is False
        assert not monitoring_service.is_running

    @pytest.mark.asyncio
    async def test_start_that_does_not_take_effect(self, monitoring_service, fake_source):
        async def no_op():
            fake_source.start_calls += 1

        fake_source.start_monitoring = no_op

        with pytest.raises(ServiceError):
            await monitoring_service.start_monitoring({})
