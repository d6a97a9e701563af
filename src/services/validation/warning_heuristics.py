"""
Content-quality heuristics producing non-blocking warnings.

Rules, applied independently and reported in this order:
1. Short name (fewer than 5 characters)
2. Placeholder text in the name ("TODO", "placeholder", "test")
3. Suspicious codename ("broken", "invalid", "long")

Warnings are only computed for items whose content type can be resolved.
"""
import logging
from typing import Callable, List, Optional, Sequence

from src.core.constants import WARNING_CONTENT_QUALITY, WARNING_CONTENT_STATUS
from src.models.kontent_models import ContentItem, ContentType
from src.models.validation_models import ResultWarning

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 5
PLACEHOLDER_MARKERS = ("TODO", "placeholder", "test")
SUSPICIOUS_CODENAME_MARKERS = ("broken", "invalid", "long")


def _check_short_name(item: ContentItem) -> Optional[ResultWarning]:
    """Rule 1: names under MIN_NAME_LENGTH characters."""
    if len(item.name) < MIN_NAME_LENGTH:
        return ResultWarning(
            message=f"Item name is very short ({len(item.name)} characters)",
            category=WARNING_CONTENT_QUALITY,
        )
    return None


def _check_placeholder_name(item: ContentItem) -> Optional[ResultWarning]:
    """Rule 2: case-sensitive substring match on placeholder markers."""
    if any(marker in item.name for marker in PLACEHOLDER_MARKERS):
        return ResultWarning(
            message="Item name contains placeholder text (TODO, placeholder or test)",
            category=WARNING_CONTENT_QUALITY,
        )
    return None


def _check_codename(item: ContentItem) -> Optional[ResultWarning]:
    """Rule 3: codenames flagging demo or test content."""
    if any(marker in item.codename for marker in SUSPICIOUS_CODENAME_MARKERS):
        return ResultWarning(
            message=f"Item codename '{item.codename}' suggests demo or test content",
            category=WARNING_CONTENT_STATUS,
        )
    return None


WARNING_RULES: Sequence[Callable[[ContentItem], Optional[ResultWarning]]] = (
    _check_short_name,
    _check_placeholder_name,
    _check_codename,
)


def find_content_type(
    item: ContentItem,
    content_types: Sequence[ContentType]
) -> Optional[ContentType]:
    """Content type of an item, or None if it cannot be resolved."""
    type_id = item.type_id
    if type_id is None:
        return None
    return next((ct for ct in content_types if ct.id == type_id), None)


def compute_warnings(
    item: ContentItem,
    content_types: Sequence[ContentType]
) -> List[ResultWarning]:
    """
    Compute content-quality warnings for an item.

    Pure: the same item and content types always give the same warnings in
    the same order.

    Args:
        item: Content item to inspect
        content_types: Known content types

    Returns:
        Warnings in rule order (empty when the content type is unknown)
    """
    if find_content_type(item, content_types) is None:
        return []

    warnings = [w for w in (rule(item) for rule in WARNING_RULES) if w is not None]
    if warnings:
        logger.debug(f"Item {item.id} produced {len(warnings)} warning(s)")
    return warnings
