"""
Unit tests for the validation result store.

Tests reducers, filters, pagination, summary and subscription.
"""
import unittest
from datetime import datetime, timezone
from unittest.mock import Mock

from src.core.constants import WARNING_CONTENT_QUALITY
from src.models.kontent_models import ContentElement, ContentItem
from src.models.validation_models import ResultError, ResultWarning, ValidationResult
from src.services.validation.result_store import ResultStore, ValidationState, start_run


def make_result(
    item_id: str,
    name: str = "Item",
    type_name: str = "Article",
    collection_id: str = "c1",
    errors: int = 0,
    warnings: int = 0
) -> ValidationResult:
    return ValidationResult(
        item_id=item_id,
        item_name=name,
        content_type_id="t1",
        content_type_name=type_name,
        collection_id=collection_id,
        collection_name=collection_id or "No Collection",
        language_id="00000000-0000-0000-0000-000000000000",
        validation_date="2025-01-01T00:00:00+00:00",
        errors=tuple(ResultError(message=f"error {n}") for n in range(errors)),
        warnings=tuple(ResultWarning(message=f"warning {n}", category=WARNING_CONTENT_QUALITY) for n in range(warnings)),
    )


def make_items(count: int):
    return [
        ContentItem.model_validate({"id": f"i{n}", "name": f"Item {n}", "codename": f"item_{n}", "type": {"id": "t1"}})
        for n in range(count)
    ]


class TestRunReducers(unittest.TestCase):
    """Test cases for run lifecycle operations."""

    def setUp(self):
        self.clock = lambda: datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.store = ResultStore(clock=self.clock)

    def test_initial_state(self):
        state = self.store.state
        self.assertFalse(state.is_running)
        self.assertEqual(state.results, ())
        self.assertEqual(state.status_filter, "all")
        self.assertEqual(state.current_page, 1)
        self.assertEqual(state.page_size, 20)

    def test_start_run_seeds_total_and_clears_results(self):
        self.store.set_content_items(make_items(7))
        self.store.append_result(make_result("old"))
        self.store.set_last_error("previous failure")

        state = self.store.start_run()

        self.assertTrue(state.is_running)
        self.assertEqual(state.total_items, 7)
        self.assertEqual(state.processed_items, 0)
        self.assertEqual(state.results, ())
        self.assertIsNone(state.last_error)
        self.assertEqual(state.validation_start_time, "2025-01-01T00:00:00+00:00")

    def test_start_run_reducer_is_pure(self):
        before = ValidationState(known_item_count=3)
        after = start_run(before, "now")

        self.assertFalse(before.is_running)
        self.assertTrue(after.is_running)
        self.assertEqual(after.total_items, 3)

    def test_update_progress_percentage(self):
        self.store.start_run()
        state = self.store.update_progress(1, 3)

        self.assertEqual(state.processed_items, 1)
        self.assertEqual(state.total_items, 3)
        self.assertEqual(state.progress, 33)

    def test_update_detailed_progress(self):
        item = make_items(1)[0]
        element = ContentElement(id="e1", name="Title", type="text")

        state = self.store.update_detailed_progress(item, element, "Polling validation task", 2, 3)

        self.assertEqual(state.current_item, item)
        self.assertEqual(state.current_element, element)
        self.assertEqual(state.current_step, "Polling validation task")
        self.assertEqual((state.step_progress, state.total_steps), (2, 3))

    def test_stop_run_keeps_results(self):
        self.store.start_run()
        self.store.update_progress(2, 4)
        self.store.append_results([make_result("a"), make_result("b", errors=1)])

        state = self.store.stop_run()

        self.assertFalse(state.is_running)
        self.assertEqual(state.progress, 0)
        self.assertIsNone(state.current_item)
        self.assertEqual(len(state.results), 2)

    def test_append_result_accumulates_errors_and_warnings(self):
        self.store.append_result(make_result("a", errors=2))
        state = self.store.append_result(make_result("b", warnings=1))

        self.assertEqual(len(state.errors), 2)
        self.assertEqual(len(state.warnings), 1)

    def test_clear_results_preserves_known_total(self):
        """Test that clearing keeps total_items at the known content item count."""
        self.store.set_content_items(make_items(12))
        self.store.start_run()
        self.store.update_progress(5, 12)
        self.store.append_results([make_result("a", errors=1), make_result("b", warnings=1)])
        self.store.stop_run()

        state = self.store.clear_results()

        self.assertEqual(state.results, ())
        self.assertEqual(state.errors, ())
        self.assertEqual(state.warnings, ())
        self.assertEqual(state.processed_items, 0)
        self.assertEqual(state.progress, 0)
        self.assertEqual(state.total_items, 12)

    def test_clear_results_without_known_count_keeps_total(self):
        """Test that clear and start fall back to the current total the same way."""
        self.store.update_progress(3, 9)

        cleared = self.store.clear_results()
        self.assertEqual(cleared.total_items, 9)
        self.assertEqual(cleared.processed_items, 0)
        self.assertEqual(self.store.start_run().total_items, 9)

    def test_set_content_items_during_run_keeps_total(self):
        self.store.set_content_items(make_items(4))
        self.store.start_run()
        self.store.update_progress(1, 4)

        state = self.store.set_content_items(make_items(10))

        self.assertEqual(state.total_items, 4)
        self.assertEqual(state.known_item_count, 10)

    def test_reset_keeps_page_size(self):
        store = ResultStore(page_size=5)
        store.append_result(make_result("a"))
        store.set_search_text("x")

        state = store.reset()

        self.assertEqual(state, ValidationState(page_size=5))


class TestFiltersAndPagination(unittest.TestCase):
    """Test cases for filtered and paginated results."""

    def setUp(self):
        self.store = ResultStore()
        self.store.append_results([
            make_result("1", name="Home page", type_name="Page", collection_id="c1"),
            make_result("2", name="Broken article", type_name="Article", collection_id="c1", errors=1),
            make_result("3", name="Short", type_name="Article", collection_id="c2", warnings=1),
            make_result("4", name="Mixed", type_name="Landing page", collection_id="c2", errors=1, warnings=1),
            make_result("5", name="Orphan", type_name="Page", collection_id=None),
        ])

    def ids(self, results):
        return [r.item_id for r in results]

    def test_no_filters_returns_all_in_order(self):
        self.assertEqual(self.ids(self.store.filtered_results()), ["1", "2", "3", "4", "5"])

    def test_search_matches_name_or_type_case_insensitive(self):
        self.store.set_search_text("PAGE")
        self.assertEqual(self.ids(self.store.filtered_results()), ["1", "4", "5"])

    def test_status_filters(self):
        expected = {
            "valid": ["1", "5"],
            "invalid": ["2", "4"],
            "warning": ["3"],
            "all": ["1", "2", "3", "4", "5"],
        }
        for status, ids in expected.items():
            with self.subTest(status=status):
                self.store.set_status_filter(status)
                self.assertEqual(self.ids(self.store.filtered_results()), ids)

    def test_unknown_status_filter_rejected(self):
        with self.assertRaises(ValueError):
            self.store.set_status_filter("broken")

    def test_collection_filter(self):
        self.store.set_collection_filter("c2")
        self.assertEqual(self.ids(self.store.filtered_results()), ["3", "4"])

        self.store.set_collection_filter("")
        self.assertIsNone(self.store.state.collection_filter)

    def test_filters_compose_as_intersection(self):
        """Test that a result is shown only when it passes every active filter."""
        self.store.set_search_text("article")
        self.store.set_status_filter("invalid")
        self.store.set_collection_filter("c1")

        self.assertEqual(self.ids(self.store.filtered_results()), ["2"])

    def test_pagination_45_results(self):
        """Test that 45 results with page size 20 give 3 pages, the last with 5."""
        store = ResultStore(page_size=20)
        store.append_results([make_result(str(n)) for n in range(45)])

        first = store.paginated_results()
        self.assertEqual(first.total_pages, 3)
        self.assertEqual(first.total_items, 45)
        self.assertEqual(len(first.results), 20)

        store.set_current_page(3)
        last = store.paginated_results()
        self.assertEqual(len(last.results), 5)
        self.assertEqual(last.results[0].item_id, "40")

    def test_page_must_be_positive(self):
        with self.assertRaises(ValueError):
            self.store.set_current_page(0)

    def test_empty_results_have_zero_pages(self):
        page = ResultStore().paginated_results()
        self.assertEqual(page.total_pages, 0)
        self.assertEqual(page.results, [])

    def test_summary(self):
        self.store.set_content_items(make_items(8))
        summary = self.store.summary()

        self.assertEqual(summary.total_items, 8)
        self.assertEqual(summary.valid_items, 3)
        self.assertEqual(summary.invalid_items, 2)
        self.assertEqual(summary.items_with_warnings, 2)
        self.assertEqual(summary.error_count, 2)
        self.assertEqual(summary.warning_count, 2)


class TestSubscription(unittest.TestCase):

    def test_listener_receives_new_state(self):
        store = ResultStore()
        listener = Mock()
        store.subscribe(listener)

        state = store.update_progress(1, 2)

        listener.assert_called_once_with(state)

    def test_unsubscribe(self):
        store = ResultStore()
        listener = Mock()
        unsubscribe = store.subscribe(listener)
        unsubscribe()

        store.update_progress(1, 2)

        listener.assert_not_called()

    def test_unchanged_state_not_published(self):
        store = ResultStore()
        listener = Mock()
        store.subscribe(listener)

        store.set_search_text("")

        listener.assert_not_called()

    def test_failing_listener_does_not_block_others(self):
        store = ResultStore()
        second = Mock()
        store.subscribe(Mock(side_effect=RuntimeError("boom")))
        store.subscribe(second)

        store.update_progress(1, 2)

        second.assert_called_once()


if __name__ == '__main__':
    unittest.main()
