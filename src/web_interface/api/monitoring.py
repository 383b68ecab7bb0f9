"""
Monitoring API endpoints.

One GET endpoint serves the read actions and one POST endpoint the control
actions. Both action sets are closed enums; every member must map to a
handler, which is checked when this module is imported.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from json import JSONDecodeError
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from src.core.exceptions import ConfigurationError, InputValidationError
from src.core.logging import get_logger
from src.monitoring.service import DEFAULT_TIMEFRAME, ActionResult, MonitoringService
from src.utils.web_interface_utils import error_response, success_response
from src.web_interface.dependencies import get_monitoring_service

logger = get_logger(__name__)

router = APIRouter()


class ReadAction(Enum):
    STATUS = "status"
    METRICS = "metrics"
    COMPONENT = "component"
    ALERTS = "alerts"
    HEALTH = "health"
    PERFORMANCE = "performance"
    DASHBOARD = "dashboard"


class ControlAction(Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    HEALTH_CHECK = "health-check"
    COLLECT_METRICS = "collect-metrics"
    CLEAR_ALERTS = "clear-alerts"
    UPDATE_THRESHOLDS = "update-thresholds"
    SIMULATE_ALERT = "simulate-alert"


@dataclass(frozen=True)
class ReadParams:
    component: str | None
    timeframe: str


ReadHandler = Callable[[MonitoringService, ReadParams], Awaitable[ActionResult]]
ControlHandler = Callable[[MonitoringService, Mapping[str, Any]], Awaitable[ActionResult]]

READ_HANDLERS: dict[ReadAction, ReadHandler] = {
    ReadAction.STATUS: lambda service, params: service.get_status(),
    ReadAction.METRICS: lambda service, params: service.get_metrics(params.timeframe),
    ReadAction.COMPONENT: lambda service, params: service.get_component(params.component),
    ReadAction.ALERTS: lambda service, params: service.get_alerts(),
    ReadAction.HEALTH: lambda service, params: service.get_health(),
    ReadAction.PERFORMANCE: lambda service, params: service.get_performance(params.timeframe),
    ReadAction.DASHBOARD: lambda service, params: service.get_dashboard(),
}

CONTROL_HANDLERS: dict[ControlAction, ControlHandler] = {
    ControlAction.START: MonitoringService.start_monitoring,
    ControlAction.STOP: MonitoringService.stop_monitoring,
    ControlAction.RESTART: MonitoringService.restart_monitoring,
    ControlAction.HEALTH_CHECK: MonitoringService.run_health_check,
    ControlAction.COLLECT_METRICS: MonitoringService.collect_metrics,
    ControlAction.CLEAR_ALERTS: MonitoringService.clear_alerts,
    ControlAction.UPDATE_THRESHOLDS: MonitoringService.update_thresholds,
    ControlAction.SIMULATE_ALERT: MonitoringService.simulate_alert,
}


def ensure_exhaustive(actions: type[Enum], handlers: Mapping[Enum, Any]) -> None:
    """
    Raises:
        ConfigurationError: If any action has no handler
    """
    missing = [action.value for action in actions if action not in handlers]
    if missing:
        raise ConfigurationError(
            f"No handler registered for {actions.__name__}: {', '.join(missing)}",
            config_section="web_interface",
        )


ensure_exhaustive(ReadAction, READ_HANDLERS)
ensure_exhaustive(ControlAction, CONTROL_HANDLERS)


def parse_action(raw: Any, actions: type[Enum]) -> Enum:
    """
    Resolve an action name.

    Raises:
        InputValidationError: If the name is missing or not a member of ``actions``
    """
    valid = [action.value for action in actions]
    try:
        return actions(raw)
    except ValueError:
        raise InputValidationError(
            f"Invalid action. Supported actions: {', '.join(valid)}",
            parameter_name="action",
            parameter_value=raw,
            valid_values=valid,
        ) from None


@router.get("")
async def read_monitoring(
    action: str = Query(default=ReadAction.STATUS.value),
    component: str | None = Query(default=None),
    timeframe: str = Query(default=DEFAULT_TIMEFRAME),
    service: MonitoringService = Depends(get_monitoring_service),
) -> JSONResponse:
    """Serve a read action selected by the ``action`` query parameter."""
    try:
        read_action = parse_action(action, ReadAction)
        result = await READ_HANDLERS[read_action](
            service, ReadParams(component=component, timeframe=timeframe)
        )
    except Exception as e:
        return error_response(e, f"monitoring {action}", {"component": component})

    return success_response(result.data, message=result.message, degraded=result.degraded)


async def _read_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (JSONDecodeError, UnicodeDecodeError) as e:
        raise InputValidationError("Request body must be valid JSON", parameter_name="body") from e

    if not isinstance(body, dict):
        raise InputValidationError("Request body must be a JSON object", parameter_name="body")
    return body


@router.post("")
async def control_monitoring(
    request: Request,
    service: MonitoringService = Depends(get_monitoring_service),
) -> JSONResponse:
    """Run a control action named by the ``action`` field of the JSON body."""
    action: Any = None
    try:
        body = await _read_body(request)
        action = body.get("action")
        control_action = parse_action(action, ControlAction)
        logger.info("Monitoring control action", action=control_action.value)
        result = await CONTROL_HANDLERS[control_action](service, body)
    except Exception as e:
        return error_response(e, f"monitoring {action or 'control'}")

    return success_response(result.data, message=result.message, degraded=result.degraded)
