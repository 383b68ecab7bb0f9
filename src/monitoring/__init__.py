"""
Monitoring and alerting aggregation for the content pipeline.

Components:
    health: component health scoring
    alerting: threshold rules, alert records and the alert history
    metrics: immutable metrics snapshots
    timeseries: time bucketing and timeframe parsing
    dashboards: aggregate dashboard, historical and performance payloads
    pipeline_monitor: the in-process metrics source
    service: the monitoring service owning alert state
"""

from .alerting import Alert, AlertConfig, AlertEvaluator, AlertHistory, AlertSummary
from .dashboards import DashboardAggregator, Degraded, Ok
from .health import ComponentCheckResult, ComponentStatus, HealthSummary, score_components
from .interfaces import ContentRecord, ContentStoreInterface, MetricsSourceInterface, MonitorEvent
from .metrics import MetricsSnapshot
from .pipeline_monitor import HttpEndpointCheck, PipelineMonitor
from .service import ActionResult, MonitoringService
from .timeseries import TimeBucket, bucketize, parse_timeframe

__all__ = [
    "ActionResult",
    "Alert",
    "AlertConfig",
    "AlertEvaluator",
    "AlertHistory",
    "AlertSummary",
    "ComponentCheckResult",
    "ComponentStatus",
    "ContentRecord",
    "ContentStoreInterface",
    "DashboardAggregator",
    "Degraded",
    "HealthSummary",
    "HttpEndpointCheck",
    "MetricsSnapshot",
    "MetricsSourceInterface",
    "MonitorEvent",
    "MonitoringService",
    "Ok",
    "PipelineMonitor",
    "TimeBucket",
    "bucketize",
    "parse_timeframe",
    "score_components",
]
