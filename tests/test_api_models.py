"""
Unit tests for API and Kontent.ai payload models.
"""
import unittest
from pydantic import ValidationError

from src.models.api_models import StartValidationBody
from src.models.kontent_models import ContentItem, Issue, ValidationTask
from src.models.validation_models import ResultError, ValidationResult


class TestStartValidationBody(unittest.TestCase):
    """Test cases for StartValidationBody model."""

    def test_defaults(self):
        body = StartValidationBody()
        self.assertIsNone(body.language_id)
        self.assertIsNone(body.collection_ids)

    def test_blank_collection_ids_dropped(self):
        body = StartValidationBody(collection_ids=["c1", "", "  "])
        self.assertEqual(body.collection_ids, ["c1"])

    def test_empty_collection_list_means_all(self):
        self.assertIsNone(StartValidationBody(collection_ids=[]).collection_ids)

    def test_collection_ids_must_be_list(self):
        with self.assertRaises(ValidationError):
            StartValidationBody(collection_ids="c1")


class TestKontentModels(unittest.TestCase):

    def test_content_item_type_reference(self):
        item = ContentItem.model_validate({
            "id": "i1",
            "name": "Home",
            "codename": "home",
            "type": {"id": "t1"},
            "last_modified": "2025-01-01T00:00:00Z",
        })
        self.assertEqual(item.type_id, "t1")
        self.assertIsNone(item.collection)

    def test_content_item_without_type(self):
        item = ContentItem.model_validate({"id": "i1", "name": "Home", "codename": "home", "type": {"id": ""}})
        self.assertIsNone(item.type_id)

    def test_task_finished(self):
        self.assertTrue(ValidationTask(id="t", status="finished").is_finished)
        self.assertFalse(ValidationTask(id="t", status="queued").is_finished)

    def test_flat_issue_element_issues(self):
        issue = Issue.model_validate({"item": {"id": "i1"}, "messages": ["Required."]})
        element_issues = issue.element_issues()

        self.assertEqual(len(element_issues), 1)
        self.assertIsNone(element_issues[0].element)
        self.assertEqual(element_issues[0].messages, ["Required."])


class TestValidationResult(unittest.TestCase):

    def make_result(self, errors=()):
        return ValidationResult(
            item_id="i1",
            item_name="Home",
            content_type_id="t1",
            content_type_name="Page",
            collection_id=None,
            collection_name="No Collection",
            language_id="lang",
            validation_date="2025-01-01T00:00:00+00:00",
            errors=tuple(errors),
            raw_issue={"item": {"id": "i1"}},
        )

    def test_validity_follows_errors(self):
        self.assertTrue(self.make_result().is_valid)
        self.assertFalse(self.make_result([ResultError(message="Required.")]).is_valid)

    def test_to_dict(self):
        data = self.make_result().to_dict()
        self.assertTrue(data["is_valid"])
        self.assertEqual(data["errors"], ())

    def test_raw_issue_ignored_in_equality(self):
        first = self.make_result()
        second = ValidationResult(**{**first.__dict__, "raw_issue": None})
        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
