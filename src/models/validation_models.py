"""
Validation result models.

This module provides the immutable per-item outcome of a validation run and
the error/warning records attached to it.
"""
from dataclasses import dataclass, field, asdict
from typing import Optional, Tuple, Any, Dict

from src.core.constants import VALIDATION_ERROR_CODE


@dataclass(frozen=True)
class ResultError:
    """Blocking problem reported by the server for an item."""

    message: str
    """Issue messages joined into one line."""

    element_id: Optional[str] = None
    """Element the problem belongs to (None for item-level problems)."""

    code: str = VALIDATION_ERROR_CODE


@dataclass(frozen=True)
class ResultWarning:
    """Non-blocking content-quality flag computed locally."""

    message: str
    category: str
    """Either content_quality or content_status."""

    element_id: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single content item.

    `is_valid` is derived from `errors`; warnings never affect validity.
    """

    item_id: str
    item_name: str
    content_type_id: Optional[str]
    content_type_name: str
    collection_id: Optional[str]
    collection_name: str
    language_id: str
    validation_date: str
    """UTC ISO-8601 timestamp of reconciliation."""

    errors: Tuple[ResultError, ...] = ()
    warnings: Tuple[ResultWarning, ...] = ()
    item_url: Optional[str] = None
    edit_url: Optional[str] = None
    raw_issue: Optional[Dict[str, Any]] = field(default=None, compare=False)
    """Server issue entry the errors came from, kept for diagnostics."""

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for JSON responses."""
        data = asdict(self)
        data["is_valid"] = self.is_valid
        return data
