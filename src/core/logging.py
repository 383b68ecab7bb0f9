"""
Structured logging for the pipeline monitoring service.

All modules log through structlog loggers obtained from ``get_logger``.
Development output is rendered for the console; production output is one
JSON object per line. Every event carries the correlation id of the request
that produced it.
"""

import contextvars
import functools
import logging
import logging.handlers
import sys
import time
import uuid
from collections.abc import Callable
from contextlib import contextmanager
from pathlib import Path
from typing import Any, cast

import structlog


class CorrelationContext:
    """Correlation id tracking for request tracing.

    Backed by a ``contextvars.ContextVar`` so concurrent requests handled on
    the same event loop each see their own id.
    """

    def __init__(self) -> None:
        self._context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
            "correlation_id", default=None
        )

    def get_correlation_id(self) -> str | None:
        """Get current correlation ID."""
        return self._context.get()

    def generate_correlation_id(self) -> str:
        return str(uuid.uuid4())

    @contextmanager
    def correlation_context(self, correlation_id: str | None = None):
        """Context manager for correlation ID tracking."""
        if correlation_id is None:
            correlation_id = self.generate_correlation_id()

        token = self._context.set(correlation_id)
        try:
            yield correlation_id
        finally:
            self._context.reset(token)


correlation_context = CorrelationContext()


def _add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add correlation ID to event dict."""
    correlation_id = correlation_context.get_correlation_id()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def _safe_unicode_decoder(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    if event_dict is not None:
        return cast(
            dict[str, Any],
            structlog.processors.UnicodeDecoder()(logger, method_name, event_dict),
        )
    return {}


def setup_logging(
    environment: str = "development",
    log_level: str = "INFO",
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        environment: Environment (development, staging, production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log file path (None for stdout only)
        max_bytes: Maximum bytes per log file before rotation
        backup_count: Number of rotated files to keep
    """
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_correlation_id,
        _safe_unicode_decoder,
    ]

    if environment == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def log_async_performance(func: Callable) -> Callable:
    """
    Decorator logging duration and outcome of an async function.

    Args:
        func: Async function to decorate

    Returns:
        Decorated async function with performance logging
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(
                "Async function execution failed",
                function_name=func.__name__,
                execution_time_ms=(time.perf_counter() - start_time) * 1000,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        logger.debug(
            "Async function execution completed",
            function_name=func.__name__,
            execution_time_ms=(time.perf_counter() - start_time) * 1000,
        )
        return result

    return wrapper


# Initialize default logging configuration
setup_logging()
