"""
FastAPI application factory for the pipeline monitoring service.

``create_app`` wires the content datastore, the pipeline monitor and the
monitoring service together, stores the service on ``app.state`` and
registers the routers and middleware. Tests pass a ready-made service to
skip the datastore entirely.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.core.config import Config, load_config
from src.core.exceptions import PipelineMonitorError
from src.core.logging import correlation_context, get_logger, setup_logging
from src.database import ContentRepository, DatabaseConnectionManager
from src.monitoring.pipeline_monitor import PipelineMonitor
from src.monitoring.service import MonitoringService
from src.utils.web_interface_utils import error_response, utc_timestamp
from src.web_interface.middleware import (
    CorrelationMiddleware,
    ErrorHandlerMiddleware,
    RequestTimingMiddleware,
)

logger = get_logger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Opens the datastore engine when the app owns it, starts the monitoring
    service, and tears both down in reverse order.
    """
    connection_manager: DatabaseConnectionManager | None = app.state.connection_manager
    service: MonitoringService = app.state.monitoring_service

    with correlation_context.correlation_context():
        logger.info("Starting pipeline monitoring service")
        if connection_manager is not None:
            await connection_manager.initialize()
        await service.start()

    try:
        yield
    finally:
        with correlation_context.correlation_context():
            logger.info("Shutting down pipeline monitoring service")
            try:
                await service.stop()
            finally:
                if connection_manager is not None:
                    await connection_manager.close()


def build_monitoring_service(config: Config) -> tuple[MonitoringService, DatabaseConnectionManager]:
    """Construct the default object graph: datastore, pipeline monitor, service."""
    connection_manager = DatabaseConnectionManager(config.database)
    repository = ContentRepository(connection_manager)
    monitor = PipelineMonitor(config.monitoring, content_store=repository)
    service = MonitoringService(monitor, repository, config.monitoring)
    return service, connection_manager


def create_app(
    config: Config | None = None,
    monitoring_service: MonitoringService | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration; loaded from the environment when None
        monitoring_service: Pre-built service; the default datastore-backed
            graph is constructed when None

    Returns:
        Configured FastAPI application
    """
    config = config or Config()

    connection_manager = None
    if monitoring_service is None:
        monitoring_service, connection_manager = build_monitoring_service(config)

    app = FastAPI(
        title=config.app_name,
        description="Monitoring and alerting for the content pipeline",
        version=API_VERSION,
        lifespan=lifespan,
        debug=config.debug,
    )
    app.state.config = config
    app.state.monitoring_service = monitoring_service
    app.state.connection_manager = connection_manager
    source = monitoring_service.source
    app.state.request_recorder = source if hasattr(source, "record_request") else None

    # Middleware order: last added runs first
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_routes(app)

    @app.exception_handler(PipelineMonitorError)
    async def pipeline_monitor_error_handler(request: Request, exc: PipelineMonitorError):
        return error_response(exc, f"{request.method} {request.url.path}")

    return app


def _register_routes(app: FastAPI) -> None:
    from src.web_interface.api import monitoring

    @app.get("/health")
    async def health_check():
        """Liveness check; touches no dependencies."""
        return {
            "status": "healthy",
            "service": app.title,
            "version": API_VERSION,
            "timestamp": utc_timestamp(),
        }

    app.include_router(monitoring.router, prefix="/api/monitoring", tags=["monitoring"])


def get_app() -> FastAPI:
    """Application factory for ``uvicorn --factory``."""
    config = load_config()
    setup_logging(
        environment=config.environment,
        log_level=config.log_level,
        log_file=config.log_file,
    )
    return create_app(config)
