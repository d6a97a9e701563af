"""
Unit tests for ServiceContainer.

Tests lazy construction, shared collaborators and singleton behavior.
"""
import unittest
from unittest.mock import patch

from src.core.app_config import LocalDevConfig
from src.services.client_factory import ServiceContainer, get_service_container, set_service_container
from src.services.kontent import AsyncValidationApi, KontentContentSource
from src.services.validation import ResultStore, ValidationOrchestrator, ValidationRunController

LOCAL_CONFIG = LocalDevConfig("env", "mapi", "dapi", "https://manage.kontent.ai/v2", "https://app.kontent.ai")


class TestServiceContainer(unittest.TestCase):
    """Test cases for ServiceContainer class."""

    def setUp(self):
        """Clear the global singleton before each test."""
        set_service_container(None)

    def tearDown(self):
        set_service_container(None)

    # ============================================================================
    # Initialization Tests
    # ============================================================================

    def test_container_initialization(self):
        """Test that nothing is constructed until first use."""
        container = ServiceContainer(app_config=LOCAL_CONFIG)

        self.assertIsNone(container._content_source)
        self.assertIsNone(container._validation_api)
        self.assertIsNone(container._orchestrator)
        self.assertIsNone(container._store)
        self.assertIsNone(container._controller)

    def test_singleton_pattern(self):
        """Test that get_service_container returns the same instance."""
        self.assertIs(get_service_container(), get_service_container())

    # ============================================================================
    # Lazy Loading Tests
    # ============================================================================

    def test_services_are_cached(self):
        container = ServiceContainer(app_config=LOCAL_CONFIG)

        self.assertIsInstance(container.content_source, KontentContentSource)
        self.assertIsInstance(container.validation_api, AsyncValidationApi)
        self.assertIsInstance(container.orchestrator, ValidationOrchestrator)
        self.assertIsInstance(container.store, ResultStore)
        self.assertIsInstance(container.controller, ValidationRunController)
        self.assertIs(container.store, container.store)

    def test_controller_shares_collaborators(self):
        container = ServiceContainer(app_config=LOCAL_CONFIG)
        controller = container.controller

        self.assertIs(controller.orchestrator, container.orchestrator)
        self.assertIs(controller.store, container.store)
        self.assertIs(controller.content_source, container.content_source)
        self.assertIs(container.orchestrator.validation_api, container.validation_api)

    @patch('src.services.client_factory.detect_app_config', return_value=LOCAL_CONFIG)
    def test_app_config_detected_once(self, mock_detect):
        container = ServiceContainer()

        self.assertIs(container.app_config, LOCAL_CONFIG)
        self.assertIs(container.app_config, LOCAL_CONFIG)
        mock_detect.assert_called_once()


if __name__ == '__main__':
    unittest.main()
