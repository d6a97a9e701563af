"""
Service container for the validation dashboard.

Centralizes construction of the Management API clients, orchestrator, store and
run controller from the configuration detected at startup.
"""
import logging
from typing import Optional

from src.core.app_config import AppConfig, detect_app_config
from src.core.config import settings
from src.services.kontent import AsyncValidationApi, KontentContentSource
from src.services.validation import ResultStore, ValidationOrchestrator, ValidationRunController

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Lazily creates and caches the services used by the API routes."""

    def __init__(self, app_config: Optional[AppConfig] = None):
        """Initialize the container.

        Args:
            app_config: Resolved configuration (default: detect_app_config())
        """
        self._app_config = app_config
        self._content_source = None
        self._validation_api = None
        self._orchestrator = None
        self._store = None
        self._controller = None

    @property
    def app_config(self) -> AppConfig:
        """Get or detect the runtime configuration."""
        if self._app_config is None:
            self._app_config = detect_app_config()
            kind = "custom app" if self._app_config.is_custom_app else "local development"
            logger.info(f"Running in {kind} mode")
        return self._app_config

    @property
    def content_source(self) -> KontentContentSource:
        """Get or create the content source."""
        if self._content_source is None:
            self._content_source = KontentContentSource(self.app_config)
        return self._content_source

    @property
    def validation_api(self) -> AsyncValidationApi:
        """Get or create the validate-async client."""
        if self._validation_api is None:
            self._validation_api = AsyncValidationApi(self.app_config)
        return self._validation_api

    @property
    def orchestrator(self) -> ValidationOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = ValidationOrchestrator(
                self.content_source, self.validation_api, self.app_config
            )
        return self._orchestrator

    @property
    def store(self) -> ResultStore:
        if self._store is None:
            self._store = ResultStore(page_size=settings.RESULTS_PAGE_SIZE)
        return self._store

    @property
    def controller(self) -> ValidationRunController:
        if self._controller is None:
            self._controller = ValidationRunController(
                self.orchestrator, self.content_source, self.store, self.app_config
            )
            logger.info("Validation run controller initialized")
        return self._controller

    async def close(self) -> None:
        """Stop any run and close the HTTP clients."""
        if self._controller is not None:
            await self._controller.shutdown()
        for client in (self._content_source, self._validation_api):
            if client is not None:
                await client.close()


# Global singleton instance
_service_container: Optional[ServiceContainer] = None


def get_service_container() -> ServiceContainer:
    """
    Get the global service container instance.

    Returns:
        Singleton ServiceContainer instance
    """
    global _service_container
    if _service_container is None:
        _service_container = ServiceContainer()
    return _service_container


def set_service_container(container: Optional[ServiceContainer]) -> None:
    """Replace the global container (used by tests and app shutdown)."""
    global _service_container
    _service_container = container
