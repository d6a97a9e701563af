"""
Unit tests for ValidationRunController.

The orchestrator is replaced by a fake; the store is the real ResultStore.
"""
import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from src.core.app_config import CustomAppConfig, LocalDevConfig
from src.core.error_handling import (
    FilterNotEnabledError,
    ServiceNotInitialized,
    ValidationCancelled,
    ValidationRunConflict,
    ValidationStartFailed,
)
from src.models.kontent_models import ContentItem, ContentItemsPage, ContentType
from src.models.validation_models import ResultError, ValidationResult
from src.services.validation.result_store import ResultStore
from src.services.validation.run_controller import ValidationRunController


def make_item(item_id: str, collection_id: str = None) -> ContentItem:
    data = {"id": item_id, "name": f"Item {item_id}", "codename": f"item_{item_id}", "type": {"id": "t1"}}
    if collection_id:
        data["collection"] = {"id": collection_id}
    return ContentItem.model_validate(data)


def make_result(item_id: str, errors: int = 0) -> ValidationResult:
    return ValidationResult(
        item_id=item_id,
        item_name=f"Item {item_id}",
        content_type_id="t1",
        content_type_name="Article",
        collection_id=None,
        collection_name="No Collection",
        language_id="00000000-0000-0000-0000-000000000000",
        validation_date="2025-01-01T00:00:00+00:00",
        errors=tuple(ResultError(message="Required.") for _ in range(errors)),
    )


LOCAL_CONFIG = LocalDevConfig("env", "mapi", "dapi", "https://manage.kontent.ai/v2", "https://app.kontent.ai")


class FakeOrchestrator:
    """Orchestrator double that reports progress and returns canned results."""

    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.calls = []
        self.release = asyncio.Event()
        self.block = False
        self.ready = True

    def is_ready(self):
        return self.ready

    async def validate_all(self, items=None, language_id=None, on_progress=None,
                           on_detailed_progress=None, cancel_token=None):
        self.calls.append({"items": items, "language_id": language_id})
        total = len(self.results)
        on_progress(0, total)
        on_detailed_progress(None, None, "Initializing validation", 1, 3)
        if self.block:
            await self.release.wait()
            cancel_token.raise_if_cancelled()
            on_progress(total, total)
        if self.error:
            raise self.error
        on_progress(total, total)
        return list(self.results)


class PollingOrchestrator(FakeOrchestrator):
    """Keeps polling until its token is cancelled."""

    async def validate_all(self, items=None, language_id=None, on_progress=None,
                           on_detailed_progress=None, cancel_token=None):
        while True:
            await asyncio.sleep(0.01)
            cancel_token.raise_if_cancelled()


class TestValidationRunController(unittest.IsolatedAsyncioTestCase):
    """Test cases for start/stop/clear."""

    def setUp(self):
        self.items = [make_item("a", "c1"), make_item("b", "c2"), make_item("c")]
        self.content_source = MagicMock()
        self.content_source.list_content_types = AsyncMock(
            return_value=[ContentType(id="t1", name="Article", codename="article")]
        )
        self.content_source.list_content_items = AsyncMock(return_value=ContentItemsPage(items=self.items))
        self.store = ResultStore()
        self.orchestrator = FakeOrchestrator(results=[make_result("a"), make_result("b", errors=1)])

    def make_controller(self, app_config=LOCAL_CONFIG):
        return ValidationRunController(self.orchestrator, self.content_source, self.store, app_config)

    async def test_load_initial_data(self):
        controller = self.make_controller()

        await controller.load_initial_data()

        self.assertEqual(self.store.state.known_item_count, 3)
        self.assertEqual(self.store.state.total_items, 3)
        self.assertEqual(len(self.store.state.content_types), 1)

    async def test_successful_run_appends_results(self):
        controller = self.make_controller()

        run_id = await controller.start(language_id="lang-1")
        self.assertTrue(self.store.state.is_running)
        await controller.wait()

        state = self.store.state
        self.assertFalse(state.is_running)
        self.assertEqual([r.item_id for r in state.results], ["a", "b"])
        self.assertEqual(len(state.errors), 1)
        self.assertIsNone(state.last_error)
        self.assertEqual(controller.run_id, run_id)
        self.assertEqual(self.orchestrator.calls, [{"items": None, "language_id": "lang-1"}])

    async def test_failed_run_records_error_and_appends_nothing(self):
        """Test that a start failure stops the run with its message and no results."""
        self.orchestrator.error = ValidationStartFailed(500)
        controller = self.make_controller()

        await controller.start()
        await controller.wait()

        state = self.store.state
        self.assertFalse(state.is_running)
        self.assertEqual(state.results, ())
        self.assertIn("500", state.last_error)

    async def test_collection_filter_fetches_collection_items(self):
        self.content_source.list_content_items.return_value = ContentItemsPage(items=[self.items[1]])
        controller = self.make_controller()

        await controller.start(collection_ids=["c2"])
        await controller.wait()

        self.content_source.list_content_items.assert_awaited_with(["c2"])
        self.assertEqual([i.id for i in self.orchestrator.calls[0]["items"]], ["b"])

    async def test_collection_filter_disabled_by_custom_app(self):
        config = CustomAppConfig(
            "env", "mapi", "dapi", "https://manage.kontent.ai/v2", "https://app.kontent.ai",
            app_settings={"validateByCollection": "false"},
        )
        controller = self.make_controller(config)

        with self.assertRaises(FilterNotEnabledError):
            await controller.start(collection_ids=["c1"])

        self.assertFalse(self.store.state.is_running)

    async def test_start_requires_configured_service(self):
        self.orchestrator.ready = False

        with self.assertRaises(ServiceNotInitialized):
            await self.make_controller().start()

    async def test_stop_cancels_and_discards_late_results(self):
        self.orchestrator.block = True
        controller = self.make_controller()

        await controller.start()
        await asyncio.sleep(0)
        self.assertTrue(controller.stop())
        self.assertFalse(self.store.state.is_running)

        self.orchestrator.release.set()
        await controller.wait()

        self.assertEqual(self.store.state.results, ())
        self.assertIsNone(self.store.state.last_error)
        self.assertFalse(controller.is_running)

    async def test_new_run_cancels_previous(self):
        self.orchestrator.block = True
        controller = self.make_controller()

        await controller.start()
        await asyncio.sleep(0)
        first_task = controller._task
        first_token = controller._token

        self.orchestrator.block = False
        await controller.start()
        self.orchestrator.release.set()
        await asyncio.gather(first_task, controller._task)

        self.assertTrue(first_token.is_cancelled)
        self.assertEqual([r.item_id for r in self.store.state.results], ["a", "b"])

    async def test_stop_without_run(self):
        self.assertFalse(self.make_controller().stop())

    async def test_clear_while_running_is_rejected(self):
        self.orchestrator.block = True
        controller = self.make_controller()
        await controller.start()

        with self.assertRaises(ValidationRunConflict):
            controller.clear()

        self.orchestrator.release.set()
        await controller.shutdown()

    async def test_clear_after_run(self):
        controller = self.make_controller()
        await controller.load_initial_data()
        await controller.start()
        await controller.wait()

        controller.clear()

        self.assertEqual(self.store.state.results, ())
        self.assertEqual(self.store.state.total_items, 3)


class TestCancellationHandling(unittest.IsolatedAsyncioTestCase):

    async def test_cancelled_run_leaves_no_error(self):
        store = ResultStore()
        orchestrator = FakeOrchestrator(error=ValidationCancelled())
        controller = ValidationRunController(orchestrator, MagicMock(), store, LOCAL_CONFIG)

        await controller.start()
        await controller.wait()

        self.assertIsNone(store.state.last_error)

    async def test_shutdown_waits_for_superseded_runs(self):
        store = ResultStore()
        controller = ValidationRunController(PollingOrchestrator(), MagicMock(), store, LOCAL_CONFIG)

        await controller.start()
        await asyncio.sleep(0)
        first_task = controller._task
        await controller.start()
        await asyncio.sleep(0)
        second_task = controller._task

        await controller.shutdown()

        self.assertTrue(first_task.done())
        self.assertTrue(second_task.done())
        self.assertEqual(controller._tasks, set())


if __name__ == '__main__':
    unittest.main()
