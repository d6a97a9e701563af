"""
Validation run API endpoints.

Start/stop/clear validation runs and read run state and filtered results.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from src.core.security import verify_api_key
from src.core.error_handling import handle_validation_errors
from src.models.api_models import PaginatedResultsResponse, RunStateResponse, StartValidationBody
from src.services.client_factory import ServiceContainer, get_service_container
from src.services.response_builder import ResponseBuilder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/validation", tags=["validation"])

response_builder = ResponseBuilder()


def _run_state(container: ServiceContainer) -> RunStateResponse:
    store = container.store
    return response_builder.build_run_state(store.state, store.summary(), run_id=container.controller.run_id)


@router.post(
    "/start",
    status_code=202,
    response_model=RunStateResponse,
    dependencies=[Depends(verify_api_key)]
)
@handle_validation_errors("Failed to start validation")
async def start_validation(
    body: Optional[StartValidationBody] = None,
    container: ServiceContainer = Depends(get_service_container)
):
    """
    Start validating all content items (or the items of some collections).

    The run continues in the background; poll /validation/state for progress.
    Starting while a run is in progress cancels the previous run.

    Args:
        body: Optional language and collection filter

    Returns:
        Run state right after the run started
    """
    body = body or StartValidationBody()
    controller = container.controller

    if container.store.state.known_item_count is None:
        await controller.load_initial_data()

    await controller.start(language_id=body.language_id, collection_ids=body.collection_ids)
    return _run_state(container)


@router.post("/stop", response_model=RunStateResponse, dependencies=[Depends(verify_api_key)])
@handle_validation_errors("Failed to stop validation")
async def stop_validation(container: ServiceContainer = Depends(get_service_container)):
    """Stop the current run. Results already received are kept."""
    if not container.controller.stop():
        logger.info("Stop requested but no validation run is active")
    return _run_state(container)


@router.delete("/results", response_model=RunStateResponse, dependencies=[Depends(verify_api_key)])
@handle_validation_errors("Failed to clear validation results")
async def clear_results(container: ServiceContainer = Depends(get_service_container)):
    """Clear all results. Rejected with 409 while a run is in progress."""
    container.controller.clear()
    return _run_state(container)


@router.get("/state", response_model=RunStateResponse, dependencies=[Depends(verify_api_key)])
@handle_validation_errors("Failed to read validation state")
async def get_validation_state(container: ServiceContainer = Depends(get_service_container)):
    """Run progress, elapsed time, summary counters and the last run error."""
    return _run_state(container)


@router.get("/results", response_model=PaginatedResultsResponse, dependencies=[Depends(verify_api_key)])
@handle_validation_errors("Failed to read validation results")
async def get_validation_results(
    search: Optional[str] = Query(None, description="Case-insensitive match on item or content type name"),
    status: Optional[str] = Query(None, description="all, valid, invalid or warning"),
    collection_id: Optional[str] = Query(None, description="Collection id; empty string clears the filter"),
    page: Optional[int] = Query(None, ge=1, description="1-indexed page"),
    container: ServiceContainer = Depends(get_service_container)
):
    """
    Filtered and paginated results.

    Filters are remembered between calls. Changing any filter resets the page
    to 1; the requested page is only applied when the filters are unchanged.
    """
    store = container.store
    state = store.state
    filters_changed = False

    if search is not None and search != state.search_text:
        store.set_search_text(search)
        filters_changed = True
    if status is not None and status != state.status_filter:
        store.set_status_filter(status)
        filters_changed = True
    if collection_id is not None and (collection_id or None) != state.collection_filter:
        store.set_collection_filter(collection_id)
        filters_changed = True

    if filters_changed:
        store.set_current_page(1)
    elif page is not None:
        store.set_current_page(page)

    return response_builder.build_results_page(store.paginated_results(), store.state)
