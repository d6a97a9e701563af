"""
Client-side progress simulation and display helpers.

The validate-async API only reports one status for the whole task, so the
per-item and per-element position shown while polling is an APPROXIMATION:
it cycles deterministically through the submitted items (and the elements of
their content types) by poll attempt. It does not reflect what the server is
actually validating.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from src.models.kontent_models import (
    ContentElement,
    ContentItem,
    ContentType,
    TASK_STATUS_FINISHED,
    TASK_STATUS_IN_PROGRESS,
)


@dataclass(frozen=True)
class SimulatedPosition:
    """Item/element shown as "currently validating" for one poll tick."""
    item: ContentItem
    element: Optional[ContentElement] = None


def estimate_processed(status: str, attempts: int, item_count: int) -> int:
    """
    Estimated number of processed items for a poll tick.

    queued      -> attempts
    in_progress -> attempts + half the items
    finished    -> all items
    Always clamped to [0, item_count].
    """
    if status == TASK_STATUS_FINISHED:
        estimate = item_count
    elif status == TASK_STATUS_IN_PROGRESS:
        estimate = attempts + item_count // 2
    else:  # queued or unrecognised
        estimate = attempts
    return max(0, min(estimate, item_count))


def select_simulated_position(
    items: Sequence[ContentItem],
    types_by_id: Dict[str, ContentType],
    attempts: int
) -> Optional[SimulatedPosition]:
    """
    Pick the item/element to display for a poll tick.

    Item: round robin by attempt (attempts mod item count).
    Element: floor(attempts / item count) mod element count of the item's type,
    or None when the type is unknown or has no elements.
    """
    if not items:
        return None

    item = items[attempts % len(items)]
    content_type = types_by_id.get(item.type_id) if item.type_id else None
    if content_type is None or not content_type.elements:
        return SimulatedPosition(item=item)

    element_index = (attempts // len(items)) % len(content_type.elements)
    return SimulatedPosition(item=item, element=content_type.elements[element_index])


def progress_percentage(processed: int, total: int) -> int:
    """Percentage rounded half up, 0 when there is nothing to process."""
    if total <= 0:
        return 0
    return int(math.floor(processed / total * 100 + 0.5))


def format_duration(start_time: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Elapsed time since an ISO-8601 timestamp as "42s", "3m 5s" or "1h 2m".

    Returns an empty string when there is no start time.
    """
    if not start_time:
        return ""

    started = datetime.fromisoformat(start_time.replace("Z", "+00:00"))
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    duration = max(0, int((now - started).total_seconds()))

    if duration < 60:
        return f"{duration}s"
    if duration < 3600:
        return f"{duration // 60}m {duration % 60}s"
    return f"{duration // 3600}h {(duration % 3600) // 60}m"


def describe_progress(
    current_item: Optional[ContentItem],
    current_element: Optional[ContentElement]
) -> str:
    """Headline shown above the progress bar."""
    if current_item is None:
        return "Initializing validation..."

    item_name = current_item.name or "Unknown item"
    if current_element is not None:
        return f"Validating {item_name}: {current_element.name or ''} ({current_element.type})"
    return f"Validating {item_name}"


def describe_step(current_item: Optional[ContentItem], step_progress: int, total_steps: int) -> str:
    """Subtext under the headline."""
    if current_item is None:
        return "Preparing validation process..."
    if total_steps > 1:
        return f"Step {step_progress} of {total_steps}"
    return "Processing..."
