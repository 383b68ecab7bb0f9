"""Unified exception hierarchy for the pipeline monitoring service.

Every exception raised by this package derives from ``PipelineMonitorError``
and carries a standardized error code, a category for automated handling,
a severity and free-form context. The web layer maps categories of errors
onto HTTP status codes (see ``src.utils.web_interface_utils``).

Example Usage:
    from src.core.exceptions import InputValidationError

    raise InputValidationError(
        "Timeframe must be positive",
        parameter_name="timeframe",
        parameter_value="-1h",
    )
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categorization for automated handling."""

    RETRYABLE = "retryable"
    FATAL = "fatal"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    SYSTEM = "system"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PipelineMonitorError(Exception):
    """Base exception for all monitoring service errors.

    Attributes:
        message: Human-readable error message
        error_code: Standardized error code (e.g., 'MON_001')
        category: Error category for automated handling
        severity: Error severity level
        details: Additional context data
        retryable: Whether this error can be retried
        suggested_action: Recommended resolution steps
        context: Additional contextual information
        timestamp: When the error occurred
        logger_name: Logger name for this error type
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        suggested_action: str | None = None,
        context: dict[str, Any] | None = None,
        logger_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.retryable = retryable
        self.suggested_action = suggested_action
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        self.logger_name = logger_name or self.__class__.__module__

        self.context.update(kwargs)

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with a level derived from its severity."""
        try:
            logger = logging.getLogger(self.logger_name)
            log_data = {
                "error_code": self.error_code,
                "category": self.category.value,
                "severity": self.severity.value,
                "details": self.details,
                "error_context": self.context,
            }

            if self.severity == ErrorSeverity.CRITICAL:
                logger.critical(self.message, extra=log_data)
            elif self.severity == ErrorSeverity.HIGH:
                logger.error(self.message, extra=log_data)
            elif self.severity == ErrorSeverity.MEDIUM:
                logger.warning(self.message, extra=log_data)
            else:
                logger.info(self.message, extra=log_data)
        except Exception:
            # Logging must never mask the original error
            pass

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "category": self.category.value,
            "severity": self.severity.value,
            "details": self.details,
            "retryable": self.retryable,
            "suggested_action": self.suggested_action,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "exception_type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"category={self.category}, "
            f"severity={self.severity}"
            f")"
        )


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationError(PipelineMonitorError):
    """Base class for input and configuration validation errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "VALID_000",
        field_name: str | None = None,
        field_value: Any | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        context.update({"field_name": field_name, "field_value": field_value})
        kwargs["context"] = context

        kwargs.setdefault("category", ErrorCategory.VALIDATION)
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        kwargs.setdefault("retryable", False)
        kwargs.setdefault("logger_name", "validation")

        super().__init__(message, error_code, **kwargs)


class ConfigurationError(ValidationError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, config_section: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "VALID_001")
        kwargs.setdefault("category", ErrorCategory.CONFIGURATION)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)

        context = kwargs.get("context", {})
        context.update({"config_section": config_section})
        kwargs["context"] = context

        super().__init__(message, **kwargs)


class InputValidationError(ValidationError):
    """API or function input parameter validation failures.

    Raised when an action name, query parameter or body field is missing,
    malformed or out of range. The caller must correct the request.
    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any | None = None,
        valid_values: list[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("error_code", "VALID_003")
        kwargs.setdefault("suggested_action", "Correct input parameters and retry")

        self.parameter_name = parameter_name
        context = kwargs.get("context", {})
        context.update(
            {
                "parameter_name": parameter_name,
                "parameter_value": parameter_value,
                "valid_values": valid_values,
            }
        )
        kwargs["context"] = context

        super().__init__(message, **kwargs)


# =============================================================================
# LOOKUP AND DATA SOURCES
# =============================================================================


class EntityNotFoundError(PipelineMonitorError):
    """A named resource (component, record) does not exist."""

    def __init__(
        self,
        message: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("error_code", "LOOKUP_001")
        kwargs.setdefault("category", ErrorCategory.NOT_FOUND)
        kwargs.setdefault("severity", ErrorSeverity.LOW)

        self.entity_type = entity_type
        self.entity_id = entity_id
        context = kwargs.get("context", {})
        context.update({"entity_type": entity_type, "entity_id": entity_id})
        kwargs["context"] = context

        super().__init__(message, **kwargs)


class DataSourceError(PipelineMonitorError):
    """Content datastore or metrics source is unreachable or failing."""

    def __init__(
        self,
        message: str,
        source_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("error_code", "DATA_002")
        kwargs.setdefault("category", ErrorCategory.NETWORK)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("suggested_action", "Check data source availability and connectivity")

        context = kwargs.get("context", {})
        context.update({"source_name": source_name})
        kwargs["context"] = context

        super().__init__(message, **kwargs)


# =============================================================================
# COMPONENTS AND SERVICES
# =============================================================================


class ComponentError(PipelineMonitorError):
    """Lifecycle and runtime errors raised by components."""

    def __init__(
        self,
        message: str,
        component: str | None = None,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("error_code", "COMP_000")
        kwargs.setdefault("category", ErrorCategory.SYSTEM)
        kwargs.setdefault("logger_name", "component")

        self.component = component
        self.operation = operation

        context = kwargs.get("context", {})
        context.update({"component": component, "operation": operation})
        kwargs["context"] = context

        super().__init__(message, **kwargs)


class ServiceError(ComponentError):
    """Service layer errors; a control action did not take effect."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "SERV_000")
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, **kwargs)
