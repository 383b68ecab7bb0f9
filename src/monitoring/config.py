"""
Constants for the monitoring package.

Tunable values live in ``src.core.config.MonitoringConfig``; the constants
here are fixed by the health and alerting contracts.
"""

from typing import Final

# Health scoring boundaries (ratio of healthy components)
HEALTHY_RATIO_THRESHOLD: Final[float] = 0.8
WARNING_RATIO_THRESHOLD: Final[float] = 0.5

# Alert defaults
DEFAULT_MEMORY_THRESHOLD: Final[float] = 85.0  # percent
DEFAULT_RESPONSE_TIME_THRESHOLD: Final[float] = 2000.0  # ms
DEFAULT_ERROR_RATE_THRESHOLD: Final[float] = 5.0  # percent
DEFAULT_DATABASE_RESPONSE_THRESHOLD: Final[float] = 1000.0  # ms
DEFAULT_HEALTH_SCORE_THRESHOLD: Final[float] = 70.0  # percent of healthy components
DEFAULT_COMPONENT_RESPONSE_THRESHOLD: Final[float] = 5000.0  # ms
ALERT_HISTORY_MAX_SIZE: Final[int] = 1000
RECENT_ALERT_WINDOW_MINUTES: Final[float] = 60.0

# Time-series bucketing
MAX_BUCKETS: Final[int] = 24
HOURS_PER_DAY: Final[int] = 24
DAYS_PER_WEEK: Final[int] = 7
MAX_TIMEFRAME_HOURS: Final[float] = 24 * 365.0

# Component checks
COMPONENT_METRICS_RESPONSE_LIMIT: Final[int] = 100
HTTP_CHECK_TIMEOUT: Final[float] = 5.0  # seconds
HTTP_ERROR_STATUS: Final[int] = 400

# Content statuses counted by the dashboard
CONTENT_STATUS_APPROVED: Final[str] = "approved"
CONTENT_STATUS_REJECTED: Final[str] = "rejected"
UNKNOWN_CATEGORY: Final[str] = "unknown"

BYTES_PER_MB: Final[int] = 1024 * 1024

# Quality baselines captured when monitoring starts
BASELINE_LOOKBACK_DAYS: Final[int] = 7
BASELINE_SAMPLE_LIMIT: Final[int] = 100

# Pipeline and quality metrics cover the most recent window
PIPELINE_WINDOW_HOURS: Final[float] = 1.0

# Quality distribution lower bounds
QUALITY_EXCELLENT: Final[float] = 0.9
QUALITY_GOOD: Final[float] = 0.7
QUALITY_FAIR: Final[float] = 0.5
