"""
Web interface dependencies.

The monitoring service is created once by ``create_app`` and stored on
``app.state``; handlers receive it through ``Depends``.
"""

from typing import TYPE_CHECKING

from fastapi import Request

from src.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from src.monitoring.service import MonitoringService


def get_monitoring_service(request: Request) -> "MonitoringService":
    service = getattr(request.app.state, "monitoring_service", None)
    if service is None:
        raise ConfigurationError(
            "Monitoring service is not configured", config_section="web_interface"
        )
    return service
