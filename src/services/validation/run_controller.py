"""
Run controller: ties one validation run to the result store.

Start/stop/clear handlers of the dashboard. A run executes as an asyncio task;
its progress callbacks write into the store only while the run is still the
current one and has not been stopped.
"""
import asyncio
import logging
import uuid
from typing import List, Optional, Sequence, Set

from src.core.app_config import AppConfig
from src.core.error_handling import (
    FilterNotEnabledError,
    ServiceNotInitialized,
    ValidationCancelled,
    ValidationRunConflict,
    describe_error,
    run_id_var,
)
from src.models.kontent_models import ContentElement, ContentItem, ContentItemsPage
from src.models.validation_models import ValidationResult
from src.services.kontent.content_source import ContentSource

from .result_store import ResultStore
from .validation_orchestrator import CancellationToken, ValidationOrchestrator

logger = logging.getLogger(__name__)

VALIDATE_BY_COLLECTION = "validateByCollection"


class ValidationRunController:
    """Owns the lifecycle of validation runs for the dashboard."""

    def __init__(
        self,
        orchestrator: ValidationOrchestrator,
        content_source: ContentSource,
        store: ResultStore,
        app_config: AppConfig
    ):
        self.orchestrator = orchestrator
        self.content_source = content_source
        self.store = store
        self.app_config = app_config

        self._run_id: Optional[str] = None
        self._token: Optional[CancellationToken] = None
        self._task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def load_initial_data(self) -> ContentItemsPage:
        """Load content types and items so the store knows the item total."""
        content_types = await self.content_source.list_content_types()
        page = await self.content_source.list_content_items()
        self.store.set_content_types(content_types)
        self.store.set_content_items(page.items)
        logger.info(f"Loaded {len(content_types)} content types and {len(page.items)} content items")
        return page

    async def start(
        self,
        language_id: Optional[str] = None,
        collection_ids: Optional[Sequence[str]] = None
    ) -> str:
        """
        Start a validation run in the background.

        Args:
            language_id: Language variant to validate (default language when None)
            collection_ids: Only validate items of these collections

        Returns:
            The id of the new run

        Raises:
            FilterNotEnabledError: If collection filtering is disabled by the app config
            ServiceNotInitialized: If the Management API is not configured
        """
        if collection_ids and not self.app_config.is_filter_enabled(VALIDATE_BY_COLLECTION):
            raise FilterNotEnabledError("Validation by collection is not enabled for this app")
        if not self.orchestrator.is_ready():
            raise ServiceNotInitialized()

        if self._token is not None and not self._token.is_cancelled:
            logger.info(f"Cancelling run {self._run_id} before starting a new one")
            self._token.cancel()

        run_id = str(uuid.uuid4())
        token = CancellationToken()
        self._run_id = run_id
        self._token = token

        self.store.start_run()
        self._task = asyncio.create_task(
            self._execute(run_id, token, language_id, list(collection_ids or []))
        )
        # Superseded runs may still be sleeping in their poll loop
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)
        logger.info(
            f"Started validation run {run_id} "
            f"(language={language_id or 'default'}, collections={list(collection_ids or []) or 'all'})"
        )
        return run_id

    def _is_current(self, run_id: str, token: CancellationToken) -> bool:
        return run_id == self._run_id and not token.is_cancelled

    async def _execute(
        self,
        run_id: str,
        token: CancellationToken,
        language_id: Optional[str],
        collection_ids: List[str]
    ) -> List[ValidationResult]:
        run_id_var.set(run_id)

        def on_progress(processed: int, total: int) -> None:
            if self._is_current(run_id, token):
                self.store.update_progress(processed, total)

        def on_detailed_progress(
            item: Optional[ContentItem],
            element: Optional[ContentElement],
            step_label: str,
            step_index: int,
            step_total: int
        ) -> None:
            if self._is_current(run_id, token):
                self.store.update_detailed_progress(item, element, step_label, step_index, step_total)

        try:
            items = None
            if collection_ids:
                items = (await self.content_source.list_content_items(collection_ids)).items

            results = await self.orchestrator.validate_all(
                items=items,
                language_id=language_id,
                on_progress=on_progress,
                on_detailed_progress=on_detailed_progress,
                cancel_token=token,
            )
        except ValidationCancelled:
            logger.info(f"Validation run {run_id} cancelled")
            return []
        except Exception as e:
            logger.error(f"Validation run {run_id} failed: {e}")
            if self._is_current(run_id, token):
                self.store.set_last_error(describe_error(e))
                self.store.stop_run()
            return []

        if not self._is_current(run_id, token):
            logger.info(f"Discarding {len(results)} results of superseded run {run_id}")
            return []

        self.store.append_results(results)
        self.store.stop_run()
        return results

    def stop(self) -> bool:
        """
        Stop the current run.

        The server-side task keeps running; its results are ignored.

        Returns:
            True if a run was stopped
        """
        stopped = False
        if self._token is not None and not self._token.is_cancelled:
            self._token.cancel()
            stopped = True
        if self.store.state.is_running:
            self.store.stop_run()
            stopped = True
        if stopped:
            logger.info(f"Validation run {self._run_id} stopped")
        return stopped

    def clear(self) -> None:
        """Clear results; not allowed while a run is in progress."""
        if self.store.state.is_running:
            raise ValidationRunConflict("Cannot clear results while validation is running")
        self.store.clear_results()

    async def wait(self) -> None:
        """Wait for the current run task to finish."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop any run and wait for every run task, superseded ones included, to settle."""
        self.stop()
        pending = list(self._tasks)
        if pending:
            logger.debug(f"Waiting for {len(pending)} validation run task(s)")
            await asyncio.gather(*pending, return_exceptions=True)
