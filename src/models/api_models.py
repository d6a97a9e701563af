"""
Pydantic models for API request and response structures.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from src.core.constants import STATUS_FILTERS


class StartValidationBody(BaseModel):
    """Request model for starting a validation run."""

    language_id: Optional[str] = Field(
        default=None,
        description="Language variant to validate. Default: the environment's default language"
    )
    collection_ids: Optional[List[str]] = Field(
        default=None,
        description="Only validate items of these collections. Requires the validateByCollection app setting."
    )

    @field_validator('collection_ids')
    @classmethod
    def drop_blank_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """Ignore empty collection ids; an empty list means all collections."""
        if v is None:
            return None
        return [cid for cid in v if cid and cid.strip()] or None

    model_config = {
        "json_schema_extra": {
            "example": {
                "language_id": "00000000-0000-0000-0000-000000000000",
                "collection_ids": ["2a7a3bd0-7a68-4a1a-b8e0-5a2f1c0fe2b1"]
            }
        }
    }


class ElementInfo(BaseModel):
    """Content element shown as the current position of a run."""

    id: str
    name: Optional[str] = None
    type: str


class ItemInfo(BaseModel):
    """Content item shown as the current position of a run."""

    id: str
    name: str
    codename: str


class ResultErrorResponse(BaseModel):
    message: str
    element_id: Optional[str] = None
    code: str


class ResultWarningResponse(BaseModel):
    message: str
    element_id: Optional[str] = None
    category: str


class ValidationResultResponse(BaseModel):
    """Validation outcome of one content item."""

    item_id: str
    item_name: str
    content_type_id: Optional[str] = None
    content_type_name: str
    collection_id: Optional[str] = None
    collection_name: str
    language_id: str
    is_valid: bool = Field(..., description="True when the item has no errors; warnings do not count")
    errors: List[ResultErrorResponse] = Field(default_factory=list)
    warnings: List[ResultWarningResponse] = Field(default_factory=list)
    validation_date: str
    item_url: Optional[str] = Field(None, description="Link to the item (custom app only)")
    edit_url: Optional[str] = Field(None, description="Link to the item editor (custom app only)")


class ResultSummaryResponse(BaseModel):
    """Counters for the dashboard summary cards."""

    total_items: int
    valid_items: int
    invalid_items: int
    items_with_warnings: int
    error_count: int
    warning_count: int


class RunStateResponse(BaseModel):
    """Current run progress, summary and last error."""

    run_id: Optional[str] = None
    is_running: bool
    progress: int = Field(..., description="Percentage of processed items (0-100)")
    processed_items: int
    total_items: int
    current_item: Optional[ItemInfo] = None
    current_element: Optional[ElementInfo] = None
    current_step: Optional[str] = None
    step_progress: int = 0
    total_steps: int = 0
    progress_text: str = ""
    step_text: str = ""
    position_is_approximate: bool = Field(
        default=True,
        description="current_item/current_element are simulated while polling, not reported by the server"
    )
    validation_start_time: Optional[str] = None
    elapsed: str = Field("", description="Elapsed time since the run started, e.g. '1m 5s'")
    summary: ResultSummaryResponse
    last_error: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "run_id": "4c1f7a1e-3a49-4d1b-9a51-0f8f3d0e0a11",
                "is_running": True,
                "progress": 40,
                "processed_items": 2,
                "total_items": 5,
                "current_item": {"id": "a1", "name": "Home page", "codename": "home_page"},
                "current_element": {"id": "e1", "name": "Title", "type": "text"},
                "current_step": "Polling validation task",
                "step_progress": 2,
                "total_steps": 3,
                "progress_text": "Validating Home page: Title (text)",
                "step_text": "Step 2 of 3",
                "position_is_approximate": True,
                "validation_start_time": "2025-11-06T14:30:30+00:00",
                "elapsed": "12s",
                "summary": {
                    "total_items": 5,
                    "valid_items": 0,
                    "invalid_items": 0,
                    "items_with_warnings": 0,
                    "error_count": 0,
                    "warning_count": 0
                },
                "last_error": None
            }
        }
    }


class PaginatedResultsResponse(BaseModel):
    """One page of filtered validation results."""

    results: List[ValidationResultResponse]
    total_pages: int
    current_page: int
    total_items: int = Field(..., description="Number of results matching the filters")
    search: str = ""
    status: str = Field("all", description=f"One of: {', '.join(STATUS_FILTERS)}")
    collection_id: Optional[str] = None


class CollectionResponse(BaseModel):
    id: str
    name: str
    codename: Optional[str] = None


class CollectionCountResponse(BaseModel):
    id: Optional[str] = None
    name: str
    count: int


class ContentTypeResponse(BaseModel):
    id: str
    name: str
    codename: str
    element_count: int
