"""
Validation state store.

State is an immutable ValidationState snapshot. Every operation is a pure
reducer function (state, args) -> new state; ResultStore applies one reducer
per call, swaps the snapshot atomically and notifies subscribers. Run writes
come from the run controller, filter writes from the dashboard API.
"""
import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from src.core.constants import DEFAULT_PAGE_SIZE, STATUS_FILTERS
from src.models.kontent_models import ContentElement, ContentItem, ContentType
from src.models.validation_models import ResultError, ResultWarning, ValidationResult
from src.services.validation.progress import progress_percentage

logger = logging.getLogger(__name__)

Listener = Callable[["ValidationState"], None]


@dataclass(frozen=True)
class ValidationState:
    """Snapshot of run progress, results and the results view filters."""

    # Run state
    is_running: bool = False
    progress: int = 0
    processed_items: int = 0
    total_items: int = 0
    current_item: Optional[ContentItem] = None
    current_element: Optional[ContentElement] = None
    current_step: Optional[str] = None
    step_progress: int = 0
    total_steps: int = 0
    validation_start_time: Optional[str] = None

    # Content known to the dashboard
    known_item_count: Optional[int] = None
    content_types: Tuple[ContentType, ...] = ()

    # Results
    results: Tuple[ValidationResult, ...] = ()
    errors: Tuple[ResultError, ...] = ()
    warnings: Tuple[ResultWarning, ...] = ()
    last_error: Optional[str] = None

    # Filters and pagination
    search_text: str = ""
    status_filter: str = "all"
    collection_filter: Optional[str] = None
    current_page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class PaginatedResults:
    """One page of the filtered results."""
    results: List[ValidationResult] = field(default_factory=list)
    total_pages: int = 0
    current_page: int = 1
    total_items: int = 0


@dataclass(frozen=True)
class ResultSummary:
    """Counters for the dashboard summary cards."""
    total_items: int
    valid_items: int
    invalid_items: int
    items_with_warnings: int
    error_count: int
    warning_count: int


# ============================================================================
# Reducers
# ============================================================================

def _seeded_total(state: ValidationState) -> int:
    """Known content-item count, or the current total when none is known yet."""
    return state.known_item_count if state.known_item_count is not None else state.total_items


def start_run(state: ValidationState, now: str) -> ValidationState:
    return replace(
        state,
        is_running=True,
        progress=0,
        processed_items=0,
        total_items=_seeded_total(state),
        current_item=None,
        current_element=None,
        current_step=None,
        step_progress=0,
        total_steps=0,
        validation_start_time=now,
        results=(),
        errors=(),
        warnings=(),
        last_error=None,
    )


def stop_run(state: ValidationState) -> ValidationState:
    """Freeze the run; accumulated results are kept."""
    return replace(
        state,
        is_running=False,
        progress=0,
        current_item=None,
        current_element=None,
        current_step=None,
        step_progress=0,
        total_steps=0,
    )


def update_progress(state: ValidationState, processed: int, total: int) -> ValidationState:
    return replace(
        state,
        processed_items=processed,
        total_items=total,
        progress=progress_percentage(processed, total),
    )


def update_detailed_progress(
    state: ValidationState,
    item: Optional[ContentItem],
    element: Optional[ContentElement],
    step_label: Optional[str],
    step_index: int,
    step_total: int
) -> ValidationState:
    return replace(
        state,
        current_item=item,
        current_element=element,
        current_step=step_label,
        step_progress=step_index,
        total_steps=step_total,
    )


def append_result(state: ValidationState, result: ValidationResult) -> ValidationState:
    return replace(
        state,
        results=state.results + (result,),
        errors=state.errors + tuple(result.errors),
        warnings=state.warnings + tuple(result.warnings),
    )


def clear_results(state: ValidationState) -> ValidationState:
    """Empty results and counters; total_items falls back to the known item count."""
    return replace(
        state,
        results=(),
        errors=(),
        warnings=(),
        progress=0,
        processed_items=0,
        total_items=_seeded_total(state),
        last_error=None,
    )


def set_content_items(state: ValidationState, items: Sequence[ContentItem]) -> ValidationState:
    count = len(items)
    if state.is_running:
        return replace(state, known_item_count=count)
    return replace(state, known_item_count=count, total_items=count)


def set_content_types(state: ValidationState, content_types: Sequence[ContentType]) -> ValidationState:
    return replace(state, content_types=tuple(content_types))


def set_search_text(state: ValidationState, text: str) -> ValidationState:
    return replace(state, search_text=text or "")


def set_status_filter(state: ValidationState, status_filter: str) -> ValidationState:
    if status_filter not in STATUS_FILTERS:
        raise ValueError(
            f"Unknown status filter '{status_filter}'. Expected one of: {', '.join(STATUS_FILTERS)}"
        )
    return replace(state, status_filter=status_filter)


def set_collection_filter(state: ValidationState, collection_id: Optional[str]) -> ValidationState:
    return replace(state, collection_filter=collection_id or None)


def set_current_page(state: ValidationState, page: int) -> ValidationState:
    if page < 1:
        raise ValueError(f"Page must be 1 or greater, got {page}")
    return replace(state, current_page=page)


def set_last_error(state: ValidationState, message: Optional[str]) -> ValidationState:
    return replace(state, last_error=message)


def reset(state: ValidationState) -> ValidationState:
    return ValidationState(page_size=state.page_size)


# ============================================================================
# Selectors
# ============================================================================

def _matches_status(result: ValidationResult, status_filter: str) -> bool:
    if status_filter == "valid":
        return not result.errors and not result.warnings
    if status_filter == "invalid":
        return bool(result.errors)
    if status_filter == "warning":
        return bool(result.warnings) and not result.errors
    return True


def filtered_results(state: ValidationState) -> List[ValidationResult]:
    """
    Results passing every active filter, in arrival order.

    - search text: case-insensitive substring of item name or content type name
    - status filter: all / valid / invalid / warning
    - collection filter: exact collection id
    """
    search = state.search_text.lower()
    filtered = []
    for result in state.results:
        if search and not (
            search in (result.item_name or "").lower()
            or search in (result.content_type_name or "").lower()
        ):
            continue
        if not _matches_status(result, state.status_filter):
            continue
        if state.collection_filter is not None and result.collection_id != state.collection_filter:
            continue
        filtered.append(result)
    return filtered


def paginated_results(state: ValidationState) -> PaginatedResults:
    filtered = filtered_results(state)
    start = (state.current_page - 1) * state.page_size
    return PaginatedResults(
        results=filtered[start:start + state.page_size],
        total_pages=math.ceil(len(filtered) / state.page_size),
        current_page=state.current_page,
        total_items=len(filtered),
    )


def summary(state: ValidationState) -> ResultSummary:
    valid = sum(1 for r in state.results if r.is_valid)
    return ResultSummary(
        total_items=state.total_items,
        valid_items=valid,
        invalid_items=len(state.results) - valid,
        items_with_warnings=sum(1 for r in state.results if r.has_warnings),
        error_count=len(state.errors),
        warning_count=len(state.warnings),
    )


# ============================================================================
# Store
# ============================================================================

class ResultStore:
    """Holds the current ValidationState and notifies subscribers on change."""

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._state = ValidationState(page_size=page_size)
        self._listeners: List[Listener] = []
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def state(self) -> ValidationState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, reducer: Callable[..., ValidationState], *args) -> ValidationState:
        new_state = reducer(self._state, *args)
        if new_state == self._state:
            return self._state
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception(f"Store listener {listener!r} failed after {reducer.__name__}")
        return new_state

    # Run operations
    def start_run(self) -> ValidationState:
        return self._apply(start_run, self._clock().isoformat())

    def stop_run(self) -> ValidationState:
        return self._apply(stop_run)

    def update_progress(self, processed: int, total: int) -> ValidationState:
        return self._apply(update_progress, processed, total)

    def update_detailed_progress(
        self,
        item: Optional[ContentItem],
        element: Optional[ContentElement],
        step_label: Optional[str],
        step_index: int,
        step_total: int
    ) -> ValidationState:
        return self._apply(update_detailed_progress, item, element, step_label, step_index, step_total)

    def append_result(self, result: ValidationResult) -> ValidationState:
        return self._apply(append_result, result)

    def append_results(self, results: Sequence[ValidationResult]) -> ValidationState:
        for result in results:
            self.append_result(result)
        return self._state

    def clear_results(self) -> ValidationState:
        return self._apply(clear_results)

    def set_last_error(self, message: Optional[str]) -> ValidationState:
        return self._apply(set_last_error, message)

    def reset(self) -> ValidationState:
        return self._apply(reset)

    # Content
    def set_content_items(self, items: Sequence[ContentItem]) -> ValidationState:
        return self._apply(set_content_items, items)

    def set_content_types(self, content_types: Sequence[ContentType]) -> ValidationState:
        return self._apply(set_content_types, content_types)

    # Filters
    def set_search_text(self, text: str) -> ValidationState:
        return self._apply(set_search_text, text)

    def set_status_filter(self, status_filter: str) -> ValidationState:
        return self._apply(set_status_filter, status_filter)

    def set_collection_filter(self, collection_id: Optional[str]) -> ValidationState:
        return self._apply(set_collection_filter, collection_id)

    def set_current_page(self, page: int) -> ValidationState:
        return self._apply(set_current_page, page)

    # Derived views
    def filtered_results(self) -> List[ValidationResult]:
        return filtered_results(self._state)

    def paginated_results(self) -> PaginatedResults:
        return paginated_results(self._state)

    def summary(self) -> ResultSummary:
        return summary(self._state)
