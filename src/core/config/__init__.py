"""
Configuration management for the pipeline monitoring service.

Usage:
    ```python
    from src.core.config import Config

    config = Config("config/monitoring.yaml")
    timeout = config.monitoring.health_check_timeout_seconds
    ```
"""

from .base import BaseConfig
from .database import DatabaseConfig
from .main import Config, load_config
from .monitoring import MonitoringConfig

__all__ = [
    "BaseConfig",
    "Config",
    "DatabaseConfig",
    "MonitoringConfig",
    "load_config",
]
