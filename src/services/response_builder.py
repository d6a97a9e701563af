"""
Response builder for the validation dashboard endpoints.

Turns store snapshots and domain models into the API response models,
including the human-readable progress and elapsed-time texts.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from src.models.api_models import (
    CollectionCountResponse,
    CollectionResponse,
    ContentTypeResponse,
    ElementInfo,
    ItemInfo,
    PaginatedResultsResponse,
    ResultErrorResponse,
    ResultSummaryResponse,
    ResultWarningResponse,
    RunStateResponse,
    ValidationResultResponse,
)
from src.models.kontent_models import Collection, CollectionItemCount, ContentType
from src.models.validation_models import ValidationResult
from src.services.validation.progress import describe_progress, describe_step, format_duration
from src.services.validation.result_store import PaginatedResults, ResultSummary, ValidationState

logger = logging.getLogger(__name__)


class ResponseBuilder:
    """Builds responses for validation and content endpoints."""

    def build_run_state(
        self,
        state: ValidationState,
        summary: ResultSummary,
        run_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> RunStateResponse:
        """Build the /validation/state response from a store snapshot.

        Args:
            state: Current store snapshot
            summary: Summary counters of the snapshot
            run_id: Id of the current (or last) run
            now: Reference time for the elapsed text (default: now, UTC)

        Returns:
            RunStateResponse
        """
        item = state.current_item
        element = state.current_element

        return RunStateResponse(
            run_id=run_id,
            is_running=state.is_running,
            progress=state.progress,
            processed_items=state.processed_items,
            total_items=state.total_items,
            current_item=ItemInfo(id=item.id, name=item.name, codename=item.codename) if item else None,
            current_element=(
                ElementInfo(id=element.id, name=element.name, type=element.type) if element else None
            ),
            current_step=state.current_step,
            step_progress=state.step_progress,
            total_steps=state.total_steps,
            progress_text=describe_progress(item, element) if state.is_running else "",
            step_text=describe_step(item, state.step_progress, state.total_steps) if state.is_running else "",
            validation_start_time=state.validation_start_time,
            elapsed=format_duration(state.validation_start_time, now) if state.is_running else "",
            summary=self.build_summary(summary),
            last_error=state.last_error,
        )

    def build_summary(self, summary: ResultSummary) -> ResultSummaryResponse:
        return ResultSummaryResponse(
            total_items=summary.total_items,
            valid_items=summary.valid_items,
            invalid_items=summary.invalid_items,
            items_with_warnings=summary.items_with_warnings,
            error_count=summary.error_count,
            warning_count=summary.warning_count,
        )

    def build_result(self, result: ValidationResult) -> ValidationResultResponse:
        return ValidationResultResponse(
            item_id=result.item_id,
            item_name=result.item_name,
            content_type_id=result.content_type_id,
            content_type_name=result.content_type_name,
            collection_id=result.collection_id,
            collection_name=result.collection_name,
            language_id=result.language_id,
            is_valid=result.is_valid,
            errors=[
                ResultErrorResponse(message=e.message, element_id=e.element_id, code=e.code)
                for e in result.errors
            ],
            warnings=[
                ResultWarningResponse(message=w.message, element_id=w.element_id, category=w.category)
                for w in result.warnings
            ],
            validation_date=result.validation_date,
            item_url=result.item_url,
            edit_url=result.edit_url,
        )

    def build_results_page(self, page: PaginatedResults, state: ValidationState) -> PaginatedResultsResponse:
        """Build the /validation/results response, echoing the active filters."""
        return PaginatedResultsResponse(
            results=[self.build_result(r) for r in page.results],
            total_pages=page.total_pages,
            current_page=page.current_page,
            total_items=page.total_items,
            search=state.search_text,
            status=state.status_filter,
            collection_id=state.collection_filter,
        )

    def build_collections(self, collections: Sequence[Collection]) -> List[CollectionResponse]:
        return [CollectionResponse(id=c.id, name=c.name, codename=c.codename) for c in collections]

    def build_collection_counts(self, counts: Sequence[CollectionItemCount]) -> List[CollectionCountResponse]:
        return [CollectionCountResponse(id=c.id, name=c.name, count=c.count) for c in counts]

    def build_content_types(self, content_types: Sequence[ContentType]) -> List[ContentTypeResponse]:
        return [
            ContentTypeResponse(id=ct.id, name=ct.name, codename=ct.codename, element_count=len(ct.elements))
            for ct in content_types
        ]
