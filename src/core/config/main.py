"""Main configuration aggregator for the pipeline monitoring service."""

import json
import os
from pathlib import Path
from typing import Any

import yaml

from .database import DatabaseConfig
from .monitoring import MonitoringConfig


class Config:
    """
    Aggregates the domain configurations and app-level settings.

    Values come from environment variables (and ``.env``) first; an optional
    YAML or JSON file can then override individual fields per section:

        database:
          database_url: postgresql+asyncpg://...
        monitoring:
          health_check_timeout_seconds: 2
    """

    def __init__(self, config_file: str | None = None):
        self.database = DatabaseConfig()
        self.monitoring = MonitoringConfig()

        self.app_name = os.getenv("APP_NAME", "Pipeline Monitor")
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_file = os.getenv("LOG_FILE") or None

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str) -> None:
        """Load configuration from YAML or JSON file."""
        config_path = Path(config_file)
        self._validate_config_file(config_path)

        config_data = self._parse_config_file(config_path) or {}
        self._apply_config_data(config_data)

    def _validate_config_file(self, config_path: Path) -> None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        if config_path.suffix not in [".yaml", ".yml", ".json"]:
            raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    def _parse_config_file(self, config_path: Path) -> dict[str, Any]:
        try:
            with open(config_path) as file_handle:
                if config_path.suffix in [".yaml", ".yml"]:
                    return yaml.safe_load(file_handle)
                return json.load(file_handle)
        except Exception as e:
            raise ValueError(f"Failed to parse config file {config_path}: {e!s}") from e

    def _apply_config_data(self, config_data: dict[str, Any]) -> None:
        config_mappings = {
            "database": self.database,
            "monitoring": self.monitoring,
        }

        for section_name, config_obj in config_mappings.items():
            section_data = config_data.get(section_name) or {}
            for key, value in section_data.items():
                if hasattr(config_obj, key):
                    setattr(config_obj, key, value)

        app_data = config_data.get("app") or {}
        for key in ("app_name", "environment", "debug", "log_level", "log_file"):
            if key in app_data:
                setattr(self, key, app_data[key])

    def to_dict(self) -> dict[str, Any]:
        return {
            "app": {
                "app_name": self.app_name,
                "environment": self.environment,
                "debug": self.debug,
                "log_level": self.log_level,
                "log_file": self.log_file,
            },
            "database": self.database.model_dump(),
            "monitoring": self.monitoring.model_dump(),
        }


def load_config(config_file: str | None = None) -> Config:
    """Build a fresh configuration, optionally overlaid with a file."""
    return Config(config_file=config_file or os.getenv("CONFIG_FILE"))
