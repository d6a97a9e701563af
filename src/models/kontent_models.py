"""
Pydantic models for Kontent.ai Management API requests and responses.

Only the fields the validation dashboard reads are declared; everything else
in the payloads is ignored.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any


class Reference(BaseModel):
    """Reference to another Management API object."""
    id: str
    codename: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class CollectionReference(BaseModel):
    """Collection an item belongs to (name resolved from the collection list)."""
    id: str
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class ContentElement(BaseModel):
    """Element (field) descriptor of a content type."""
    id: str
    name: Optional[str] = None
    type: str
    codename: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class ContentType(BaseModel):
    """Content type schema."""
    id: str
    name: str
    codename: str
    elements: List[ContentElement] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore")


class ContentItem(BaseModel):
    """Content item snapshot as returned by the items listing."""
    id: str
    name: str
    codename: str
    content_type: Optional[Reference] = Field(default=None, alias="type")
    collection: Optional[CollectionReference] = None

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @property
    def type_id(self) -> Optional[str]:
        """Content type id, or None when the item has no usable type reference."""
        if self.content_type is None or not self.content_type.id:
            return None
        return self.content_type.id


class Collection(BaseModel):
    """Collection defined in the environment."""
    id: str
    name: str
    codename: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class CollectionItemCount(BaseModel):
    """Number of content items per collection."""
    id: Optional[str] = None
    name: str
    count: int


class ContentItemsPage(BaseModel):
    """Result of listing content items, with per-collection counts."""
    items: List[ContentItem] = Field(default_factory=list)
    counts: List[CollectionItemCount] = Field(default_factory=list)


class Pagination(BaseModel):
    """Pagination block of Management API listings."""
    continuation_token: Optional[str] = None
    next_page: Optional[str] = None


# ============================================================================
# Async validation
# ============================================================================

TASK_STATUS_QUEUED = "queued"
TASK_STATUS_IN_PROGRESS = "in_progress"
TASK_STATUS_FINISHED = "finished"


class ValidationItemLanguage(BaseModel):
    id: str


class ValidationItemRequest(BaseModel):
    """One {item, language} pair submitted for validation."""
    id: str
    language: ValidationItemLanguage


class StartValidationRequest(BaseModel):
    """Body of POST /validate-async."""
    items: List[ValidationItemRequest]


class ValidationTask(BaseModel):
    """Server-side async validation task handle."""
    id: str
    status: str = TASK_STATUS_QUEUED

    model_config = ConfigDict(extra="ignore")

    @property
    def is_finished(self) -> bool:
        return self.status == TASK_STATUS_FINISHED


class ElementIssue(BaseModel):
    """Problem reported for a single element."""
    element: Optional[Reference] = None
    messages: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class Issue(BaseModel):
    """
    Validation problem reported for an item.

    The flat form carries element/messages directly; the grouped form nests
    one ElementIssue per element under `issues`.
    """
    item: Reference
    element: Optional[Reference] = None
    messages: List[str] = Field(default_factory=list)
    issues: Optional[List[ElementIssue]] = None

    model_config = ConfigDict(extra="ignore")

    def element_issues(self) -> List[ElementIssue]:
        """Element-level problems of this issue, in server order."""
        if self.issues is not None:
            return list(self.issues)
        return [ElementIssue(element=self.element, messages=self.messages)]


class IssuesPayload(BaseModel):
    """Parsed issues response; raw entries kept for diagnostics."""
    issues: List[Issue] = Field(default_factory=list)
    raw: List[Dict[str, Any]] = Field(default_factory=list)
