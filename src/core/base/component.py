"""
Base component implementation providing common functionality.

Components share an async start/stop lifecycle and a logger bound with the
component name.
"""

from typing import Any

from src.core.exceptions import ComponentError
from src.core.logging import get_logger


class BaseComponent:
    """
    Base component with lifecycle management.

    Subclasses override ``_do_start`` and ``_do_stop``. A failure inside
    ``_do_start`` leaves the component stopped and surfaces as
    ``ComponentError``.

    Example:
        ```python
        class MyComponent(BaseComponent):
            async def _do_start(self):
                await self.open_connections()

            async def _do_stop(self):
                await self.close_connections()
        ```
    """

    def __init__(self, name: str | None = None):
        self._name = name or self.__class__.__name__
        self._logger = get_logger(self.__class__.__module__).bind(component=self._name)

        self._is_running = False
        self._is_starting = False
        self._is_stopping = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def logger(self) -> Any:
        return self._logger

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        """
        Start the component.

        Raises:
            ComponentError: If component fails to start
        """
        if self._is_running:
            self._logger.warning("Component already running")
            return

        if self._is_starting:
            self._logger.warning("Component already starting")
            return

        self._is_starting = True

        try:
            self._logger.info("Starting component")
            await self._do_start()
            self._is_running = True
            self._logger.info("Component started successfully")

        except Exception as e:
            self._logger.error(
                "Failed to start component", error=str(e), error_type=type(e).__name__
            )
            raise ComponentError(
                f"Failed to start {self._name}: {e}", component=self._name, operation="start"
            ) from e

        finally:
            self._is_starting = False

    async def stop(self) -> None:
        """
        Stop the component and release its resources.

        Raises:
            ComponentError: If component fails to stop gracefully
        """
        if not self._is_running:
            self._logger.warning("Component not running")
            return

        if self._is_stopping:
            self._logger.warning("Component already stopping")
            return

        self._is_stopping = True

        try:
            self._logger.info("Stopping component")
            await self._do_stop()
            self._logger.info("Component stopped successfully")

        except Exception as e:
            self._logger.error(
                "Error during component shutdown", error=str(e), error_type=type(e).__name__
            )
            raise ComponentError(
                f"Failed to stop {self._name}: {e}", component=self._name, operation="stop"
            ) from e

        finally:
            # A failed shutdown still leaves the component stopped
            self._is_running = False
            self._is_stopping = False

    async def _do_start(self) -> None:
        """Component-specific startup logic."""

    async def _do_stop(self) -> None:
        """Component-specific shutdown logic."""
