"""Monitoring engine configuration: polling, alert defaults and dashboard windows."""

from pydantic import Field, field_validator

from .base import BaseConfig


class MonitoringConfig(BaseConfig):
    """Settings for the pipeline monitor, alerting and dashboard aggregation.

    Every field can be overridden with a ``MONITORING_`` prefixed environment
    variable, e.g. ``MONITORING_HEALTH_CHECK_TIMEOUT_SECONDS=2``.
    """

    model_config = {**BaseConfig.model_config, "env_prefix": "MONITORING_"}

    # Polling
    health_check_interval_seconds: float = Field(default=30.0, gt=0)
    metrics_collection_interval_seconds: float = Field(default=60.0, gt=0)
    health_check_timeout_seconds: float = Field(default=5.0, gt=0)
    restart_delay_seconds: float = Field(default=1.0, ge=0)
    max_component_metrics: int = Field(default=1000, ge=1)
    max_request_samples: int = Field(default=10000, ge=1)
    api_health_endpoints: list[str] = Field(default_factory=list)

    # Component check thresholds
    database_slow_ms: float = Field(default=1000.0, gt=0)
    memory_warning_percent: float = Field(default=75.0, ge=0, le=100)
    memory_error_percent: float = Field(default=90.0, ge=0, le=100)
    disk_warning_percent: float = Field(default=80.0, ge=0, le=100)
    disk_error_percent: float = Field(default=90.0, ge=0, le=100)

    # Alert defaults
    memory_threshold: float = Field(default=85.0, ge=0)
    response_time_threshold: float = Field(default=2000.0, ge=0)
    error_rate_threshold: float = Field(default=5.0, ge=0)
    database_response_threshold: float = Field(default=1000.0, ge=0)
    health_score_threshold: float = Field(default=70.0, ge=0, le=100)
    component_response_threshold: float = Field(default=5000.0, ge=0)
    alert_history_max_size: int = Field(default=1000, ge=1)
    alert_dedup_window_seconds: float = Field(default=0.0, ge=0)
    recent_alert_window_minutes: float = Field(default=60.0, gt=0)

    # Dashboard
    dashboard_window_hours: float = Field(default=24.0, gt=0)
    dashboard_content_limit: int = Field(default=100, ge=1)
    recent_alerts_limit: int = Field(default=10, ge=1)
    trend_points: int = Field(default=24, ge=1, le=24)

    @field_validator("memory_error_percent")
    @classmethod
    def validate_memory_levels(cls, v: float, info) -> float:
        warning = info.data.get("memory_warning_percent")
        if warning is not None and v < warning:
            raise ValueError("memory_error_percent must not be below memory_warning_percent")
        return v
