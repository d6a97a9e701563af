"""
Validation orchestration for Kontent.ai content items.

Drives one run of the async validation lifecycle:
start task -> poll until finished -> fetch issues -> reconcile with items,
merge in heuristic warnings, and report progress along the way.
"""
import asyncio
import logging
import time
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from src.core.app_config import AppConfig
from src.core.config import settings
from src.core.constants import (
    NO_COLLECTION_NAME,
    STEP_FETCHING_RESULTS,
    STEP_INITIALIZING,
    STEP_POLLING,
    TOTAL_VALIDATION_STEPS,
    UNKNOWN_CONTENT_TYPE_NAME,
)
from src.core.error_handling import (
    NoValidItemsError,
    RateLimitExceeded,
    ServiceNotInitialized,
    ValidationCancelled,
    ValidationFailed,
    ValidationStartFailed,
)
from src.models.kontent_models import ContentElement, ContentItem, ContentType, Issue, IssuesPayload
from src.models.validation_models import ResultError, ValidationResult
from src.services.kontent.content_source import ContentSource
from src.services.kontent.validation_api import AsyncValidationApi

from .progress import SimulatedPosition, estimate_processed, select_simulated_position
from .warning_heuristics import compute_warnings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
DetailedProgressCallback = Callable[
    [Optional[ContentItem], Optional[ContentElement], str, int, int], None
]

# Errors that already describe the failure and are not wrapped in ValidationFailed
PASSTHROUGH_ERRORS = (
    ServiceNotInitialized,
    NoValidItemsError,
    ValidationStartFailed,
    RateLimitExceeded,
    ValidationCancelled,
)


class CancellationToken:
    """Flag set by a stop request and checked by the orchestrator between steps."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ValidationCancelled()


class ValidationOrchestrator:
    """Runs validate-all over a set of content items.

    Collaborators are injected so tests can pass doubles:
    - content_source: items and content types
    - validation_api: validate-async start/poll/issues
    - app_config: decides whether view/edit URLs are produced
    """

    def __init__(
        self,
        content_source: ContentSource,
        validation_api: AsyncValidationApi,
        app_config: Optional[AppConfig] = None,
        poll_interval: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.content_source = content_source
        self.validation_api = validation_api
        self.app_config = app_config
        self.poll_interval = (
            settings.VALIDATION_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def is_ready(self) -> bool:
        return self.content_source.is_ready() and self.validation_api.is_ready()

    async def validate_all(
        self,
        items: Optional[Sequence[ContentItem]] = None,
        language_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_detailed_progress: Optional[DetailedProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[ValidationResult]:
        """
        Validate content items through the async validation API.

        Args:
            items: Items to validate (None = fetch all items)
            language_id: Language variant (default: the environment's default language)
            on_progress: Called with (processed, total)
            on_detailed_progress: Called with (item, element, step label, step, total steps)
            cancel_token: Stop flag checked before every network call and callback

        Returns:
            One ValidationResult per validated item, in input order

        Raises:
            ServiceNotInitialized: If the Management API clients are not configured
            NoValidItemsError: If no item has a content type
            ValidationStartFailed: If the task could not be started
            RateLimitExceeded: If the API keeps rate limiting a call
            ValidationCancelled: If the run was stopped
            ValidationFailed: For any other failure (wraps the original error)
        """
        if not self.is_ready():
            raise ServiceNotInitialized()

        language_id = language_id or settings.DEFAULT_LANGUAGE_ID
        token = cancel_token or CancellationToken()
        start_time = time.time()

        try:
            results = await self._run(items, language_id, on_progress, on_detailed_progress, token)
        except PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            logger.exception(
                f"Validation run failed after {time.time() - start_time:.2f}s "
                f"(language={language_id}, items={'all' if items is None else len(items)}): {e}"
            )
            raise ValidationFailed(e) from e

        invalid = sum(1 for r in results if not r.is_valid)
        logger.info(
            f"Validation completed in {time.time() - start_time:.2f}s: "
            f"{len(results)} items, {invalid} invalid, "
            f"{sum(len(r.warnings) for r in results)} warnings"
        )
        return results

    # ============================================================================
    # RUN PHASES
    # ============================================================================

    async def _run(
        self,
        items: Optional[Sequence[ContentItem]],
        language_id: str,
        on_progress: Optional[ProgressCallback],
        on_detailed_progress: Optional[DetailedProgressCallback],
        token: CancellationToken
    ) -> List[ValidationResult]:
        token.raise_if_cancelled()
        if items is None:
            items = (await self.content_source.list_content_items()).items
        token.raise_if_cancelled()
        content_types = await self.content_source.list_content_types()
        types_by_id = {ct.id: ct for ct in content_types}

        working = self._items_with_type(items)
        total = len(working)

        self._notify(token, on_progress, 0, total)
        self._notify(token, on_detailed_progress, None, None, STEP_INITIALIZING, 1, TOTAL_VALIDATION_STEPS)

        token.raise_if_cancelled()
        task_id = await self.validation_api.start_validation([i.id for i in working], language_id)

        self._notify(token, on_detailed_progress, None, None, STEP_POLLING, 2, TOTAL_VALIDATION_STEPS)
        last_position = await self._poll_until_finished(
            task_id, working, types_by_id, on_progress, on_detailed_progress, token
        )

        self._notify(
            token,
            on_detailed_progress,
            last_position.item if last_position else None,
            last_position.element if last_position else None,
            STEP_FETCHING_RESULTS,
            3,
            TOTAL_VALIDATION_STEPS,
        )

        token.raise_if_cancelled()
        payload = await self.validation_api.get_issues(task_id)
        if payload is None:
            logger.warning(f"Task {task_id}: malformed issues payload, reporting all items as valid")
            return [
                self._build_result(item, types_by_id, language_id, [], warnings=[])
                for item in working
            ]

        return self._reconcile(working, content_types, types_by_id, payload, language_id)

    @staticmethod
    def _items_with_type(items: Sequence[ContentItem]) -> List[ContentItem]:
        """Items that can be submitted; the rest are logged and left out."""
        working = [item for item in items if item.type_id]
        skipped = [item.id for item in items if not item.type_id]

        if skipped:
            logger.warning(
                f"Skipping {len(skipped)} item(s) without a content type reference: {', '.join(skipped)}"
            )
        if not working:
            raise NoValidItemsError()

        logger.info(f"Validating {len(working)} of {len(items)} content items")
        return working

    async def _poll_until_finished(
        self,
        task_id: str,
        items: List[ContentItem],
        types_by_id: Dict[str, ContentType],
        on_progress: Optional[ProgressCallback],
        on_detailed_progress: Optional[DetailedProgressCallback],
        token: CancellationToken
    ) -> Optional[SimulatedPosition]:
        """
        Poll the task until it is finished.

        No attempt ceiling: the loop ends when the task finishes or the run is
        cancelled. A failed status read is logged and retried after twice the
        poll interval.
        """
        attempts = 0
        processed = 0
        position: Optional[SimulatedPosition] = None
        total = len(items)

        while True:
            token.raise_if_cancelled()
            try:
                task = await self.validation_api.get_task(task_id)
            except Exception as e:
                logger.warning(f"Polling task {task_id} failed (after {attempts} polls): {e}; retrying")
                await asyncio.sleep(self.poll_interval * 2)
                continue

            attempts += 1
            processed = max(processed, estimate_processed(task.status, attempts, total))
            self._notify(token, on_progress, processed, total)

            # Simulated position, not reported by the server
            position = select_simulated_position(items, types_by_id, attempts - 1)
            if position is not None:
                self._notify(
                    token,
                    on_detailed_progress,
                    position.item,
                    position.element,
                    STEP_POLLING,
                    2,
                    TOTAL_VALIDATION_STEPS,
                )

            if task.is_finished:
                logger.info(f"Task {task_id} finished after {attempts} polls")
                return position

            logger.debug(f"Task {task_id} is {task.status} (poll {attempts})")
            await asyncio.sleep(self.poll_interval)

    # ============================================================================
    # RECONCILIATION
    # ============================================================================

    def _reconcile(
        self,
        items: List[ContentItem],
        content_types: Sequence[ContentType],
        types_by_id: Dict[str, ContentType],
        payload: IssuesPayload,
        language_id: str
    ) -> List[ValidationResult]:
        """Build one result per item from the server issues and local warnings."""
        issues_by_item: Dict[str, List[Tuple[Issue, dict]]] = defaultdict(list)
        for issue, raw in zip(payload.issues, payload.raw):
            issues_by_item[issue.item.id].append((issue, raw))

        known_ids = {item.id for item in items}
        unmatched = [item_id for item_id in issues_by_item if item_id not in known_ids]
        if unmatched:
            logger.warning(f"Ignoring issues for {len(unmatched)} item(s) not in this run: {', '.join(unmatched)}")

        results = []
        for item in items:
            matches = issues_by_item.get(item.id, [])
            errors = [
                ResultError(
                    message=" ".join(element_issue.messages) or "Validation error",
                    element_id=element_issue.element.id if element_issue.element else None,
                )
                for issue, _raw in matches
                for element_issue in issue.element_issues()
            ]
            results.append(
                self._build_result(
                    item,
                    types_by_id,
                    language_id,
                    errors,
                    warnings=compute_warnings(item, content_types),
                    raw_issue=matches[0][1] if matches else None,
                )
            )
        return results

    def _build_result(
        self,
        item: ContentItem,
        types_by_id: Dict[str, ContentType],
        language_id: str,
        errors: List[ResultError],
        warnings: list,
        raw_issue: Optional[dict] = None
    ) -> ValidationResult:
        content_type = types_by_id.get(item.type_id) if item.type_id else None
        collection = item.collection

        return ValidationResult(
            item_id=item.id,
            item_name=item.name,
            content_type_id=item.type_id,
            content_type_name=content_type.name if content_type else UNKNOWN_CONTENT_TYPE_NAME,
            collection_id=collection.id if collection else None,
            collection_name=(collection.name or collection.id) if collection else NO_COLLECTION_NAME,
            language_id=language_id,
            validation_date=self._clock().isoformat(),
            errors=tuple(errors),
            warnings=tuple(warnings),
            item_url=self.app_config.item_url(item.id) if self.app_config else None,
            edit_url=self.app_config.edit_url(item.id, language_id) if self.app_config else None,
            raw_issue=raw_issue,
        )

    @staticmethod
    def _notify(token: CancellationToken, callback: Optional[Callable], *args) -> None:
        """Invoke an observer unless the run has been cancelled."""
        token.raise_if_cancelled()
        if callback is not None:
            callback(*args)
