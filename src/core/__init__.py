"""
Core Framework Package

Configuration, exceptions, logging, shared types and the base component
lifecycle used by every other package.
"""

from .config import Config, DatabaseConfig, MonitoringConfig
from .exceptions import (
    ComponentError,
    ConfigurationError,
    DataSourceError,
    EntityNotFoundError,
    InputValidationError,
    PipelineMonitorError,
    ServiceError,
    ValidationError,
)
from .logging import correlation_context, get_logger, log_async_performance, setup_logging
from .types import AlertSeverity, ComponentState, HealthVerdict

__all__ = [
    "AlertSeverity",
    "ComponentError",
    "ComponentState",
    "Config",
    "ConfigurationError",
    "DataSourceError",
    "DatabaseConfig",
    "EntityNotFoundError",
    "HealthVerdict",
    "InputValidationError",
    "MonitoringConfig",
    "PipelineMonitorError",
    "ServiceError",
    "ValidationError",
    "correlation_context",
    "get_logger",
    "log_async_performance",
    "setup_logging",
]
