"""
Content source backed by the Kontent.ai Management API.

Fetches content types, content items and collections, and derives the
per-collection item counts shown next to the collection filter.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Protocol, Sequence

from pydantic import ValidationError

from src.core.constants import NO_COLLECTION_NAME
from src.models.kontent_models import (
    Collection,
    CollectionItemCount,
    CollectionReference,
    ContentItem,
    ContentItemsPage,
    ContentType,
)
from src.services.clients.base_client import BaseManagementClient

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    """Read-only view of the CMS content consumed by the orchestrator."""

    def is_ready(self) -> bool: ...

    async def list_content_types(self) -> List[ContentType]: ...

    async def list_content_items(
        self, collection_ids: Optional[Sequence[str]] = None
    ) -> ContentItemsPage: ...

    async def list_collections(self) -> List[Collection]: ...

    async def collection_item_counts(self) -> List[CollectionItemCount]: ...


def count_items_by_collection(
    items: Sequence[ContentItem],
    collections: Sequence[Collection] = ()
) -> List[CollectionItemCount]:
    """
    Count items per collection.

    Every known collection is listed (possibly with 0), in collection order,
    followed by a "No Collection" bucket when some items carry no collection.
    """
    counts: "OrderedDict[Optional[str], CollectionItemCount]" = OrderedDict(
        (c.id, CollectionItemCount(id=c.id, name=c.name, count=0)) for c in collections
    )

    for item in items:
        key = item.collection.id if item.collection else None
        if key not in counts:
            name = (item.collection.name if item.collection else None) or NO_COLLECTION_NAME
            counts[key] = CollectionItemCount(id=key, name=name, count=0)
        counts[key].count += 1

    return list(counts.values())


class KontentContentSource(BaseManagementClient):
    """Management API implementation of ContentSource."""

    async def list_content_types(self) -> List[ContentType]:
        """Get all content types."""
        types: List[ContentType] = []
        async for page in self._iterate_pages("/types", "types", operation="listContentTypes"):
            types.extend(ContentType.model_validate(raw) for raw in page)
        logger.info(f"Fetched {len(types)} content types")
        return types

    async def list_collections(self) -> List[Collection]:
        """Get all collections of the environment."""
        data = await self._get_json("/collections", operation="listCollections")
        collections = [Collection.model_validate(raw) for raw in data.get("collections") or []]
        logger.info(f"Fetched {len(collections)} collections")
        return collections

    async def _fetch_all_items(self) -> List[ContentItem]:
        items: List[ContentItem] = []
        async for page in self._iterate_pages("/items", "items", operation="listContentItems"):
            for raw in page:
                try:
                    items.append(ContentItem.model_validate(raw))
                except ValidationError as e:
                    logger.warning(f"Skipping unparseable content item {raw.get('id')}: {e}")
        return items

    @staticmethod
    def _with_collection_names(
        items: List[ContentItem],
        collections: Sequence[Collection]
    ) -> List[ContentItem]:
        names: Dict[str, str] = {c.id: c.name for c in collections}
        resolved = []
        for item in items:
            if item.collection and item.collection.name is None and item.collection.id in names:
                item = item.model_copy(update={
                    "collection": CollectionReference(id=item.collection.id, name=names[item.collection.id])
                })
            resolved.append(item)
        return resolved

    async def list_content_items(
        self,
        collection_ids: Optional[Sequence[str]] = None
    ) -> ContentItemsPage:
        """
        Get all content items, optionally limited to some collections.

        Args:
            collection_ids: Only keep items of these collections (None or empty = all)

        Returns:
            ContentItemsPage with the items and the per-collection counts of those items
        """
        collections = await self.list_collections()
        items = self._with_collection_names(await self._fetch_all_items(), collections)

        if collection_ids:
            wanted = set(collection_ids)
            items = [i for i in items if i.collection and i.collection.id in wanted]
            collections = [c for c in collections if c.id in wanted]
            logger.info(f"Filtered content items to {len(wanted)} collection(s): {len(items)} items")
        else:
            logger.info(f"Fetched {len(items)} content items")

        return ContentItemsPage(items=items, counts=count_items_by_collection(items, collections))

    async def collection_item_counts(self) -> List[CollectionItemCount]:
        """Get the number of content items in every collection."""
        page = await self.list_content_items()
        return page.counts
