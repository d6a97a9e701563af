"""
Client for the Management API async validation endpoints.

Protocol:
- POST validate-async                      -> {id}
- GET  validate-async/tasks/{id}           -> {status}
- GET  validate-async/tasks/{id}/issues    -> {issues: [...]}
"""
import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from src.core.error_handling import ValidationStartFailed
from src.models.kontent_models import (
    Issue,
    IssuesPayload,
    StartValidationRequest,
    ValidationItemLanguage,
    ValidationItemRequest,
    ValidationTask,
)
from src.services.clients.base_client import BaseManagementClient

logger = logging.getLogger(__name__)


class AsyncValidationApi(BaseManagementClient):
    """Start, poll and read the results of server-side validation tasks."""

    async def start_validation(self, item_ids: Sequence[str], language_id: str) -> str:
        """
        Submit one batch validation request.

        Args:
            item_ids: Items to validate
            language_id: Language variant to validate

        Returns:
            Task id for polling

        Raises:
            ValidationStartFailed: If the API answers with a non-2xx status
            ValueError: If the response carries no task id
        """
        request = StartValidationRequest(
            items=[
                ValidationItemRequest(id=item_id, language=ValidationItemLanguage(id=language_id))
                for item_id in item_ids
            ]
        )

        response = await self._request(
            "POST",
            "/validate-async",
            operation="startValidation",
            json=request.model_dump(),
        )

        if not 200 <= response.status_code < 300:
            detail = response.text[:200] if response.text else ""
            logger.error(f"Failed to start validation ({response.status_code}): {detail}")
            raise ValidationStartFailed(response.status_code, detail)

        task_id = (response.json() or {}).get("id")
        if not task_id:
            raise ValueError("No task id in validate-async response")

        logger.info(f"Validation task {task_id} started for {len(item_ids)} items")
        return task_id

    async def get_task(self, task_id: str) -> ValidationTask:
        """Get the current status of a validation task."""
        data = await self._get_json(
            f"/validate-async/tasks/{task_id}",
            operation="getValidationTask",
        )
        data.setdefault("id", task_id)
        return ValidationTask.model_validate(data)

    async def get_issues(self, task_id: str) -> Optional[IssuesPayload]:
        """
        Get the issues of a finished task.

        Returns:
            IssuesPayload, or None when the body is not JSON or has no issues array
        """
        response = await self._request(
            "GET",
            f"/validate-async/tasks/{task_id}/issues",
            operation="getValidationIssues",
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Issues response for task {task_id} is not valid JSON: {e}")
            return None

        raw_issues = data.get("issues") if isinstance(data, dict) else None
        if not isinstance(raw_issues, list):
            logger.warning(f"Issues payload for task {task_id} has no issues array")
            return None

        payload = IssuesPayload()
        for raw in raw_issues:
            try:
                payload.issues.append(Issue.model_validate(raw))
                payload.raw.append(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed issue entry for task {task_id}: {e}")

        logger.info(f"Task {task_id} reported {len(payload.issues)} issue entries")
        return payload
