"""Pydantic models for API validation and Kontent.ai payloads."""

from .api_models import (
    StartValidationBody,
    RunStateResponse,
    ResultSummaryResponse,
    ValidationResultResponse,
    PaginatedResultsResponse,
    CollectionResponse,
    CollectionCountResponse,
    ContentTypeResponse
)
from .kontent_models import (
    Reference,
    CollectionReference,
    ContentElement,
    ContentType,
    ContentItem,
    Collection,
    CollectionItemCount,
    ContentItemsPage,
    ValidationTask,
    Issue,
    IssuesPayload
)
from .validation_models import ResultError, ResultWarning, ValidationResult

__all__ = [
    "StartValidationBody",
    "RunStateResponse",
    "ResultSummaryResponse",
    "ValidationResultResponse",
    "PaginatedResultsResponse",
    "CollectionResponse",
    "CollectionCountResponse",
    "ContentTypeResponse",
    "Reference",
    "CollectionReference",
    "ContentElement",
    "ContentType",
    "ContentItem",
    "Collection",
    "CollectionItemCount",
    "ContentItemsPage",
    "ValidationTask",
    "Issue",
    "IssuesPayload",
    "ResultError",
    "ResultWarning",
    "ValidationResult"
]
