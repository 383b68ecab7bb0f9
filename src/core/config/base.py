"""Base configuration class for the pipeline monitoring service."""

from pydantic_settings import BaseSettings


class BaseConfig(BaseSettings):
    """Base configuration class with common patterns.

    Provides common Pydantic settings configuration with environment
    variable support, case insensitive matching, and validation on
    assignment so runtime overrides are checked too.
    """

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "validate_assignment": True,
        "extra": "ignore",
        "populate_by_name": True,
    }
