"""
Content reference data endpoints used by the dashboard filters.
"""
from fastapi import APIRouter, Depends
from typing import List
import logging

from src.core.security import verify_api_key
from src.core.error_handling import handle_validation_errors
from src.models.api_models import CollectionCountResponse, CollectionResponse, ContentTypeResponse
from src.services.client_factory import ServiceContainer, get_service_container
from src.services.response_builder import ResponseBuilder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/content", tags=["content"])

response_builder = ResponseBuilder()


@router.get("/collections", response_model=List[CollectionResponse], dependencies=[Depends(verify_api_key)])
@handle_validation_errors("Failed to list collections")
async def list_collections(container: ServiceContainer = Depends(get_service_container)):
    """Collections of the environment."""
    collections = await container.content_source.list_collections()
    return response_builder.build_collections(collections)


@router.get(
    "/collection-counts",
    response_model=List[CollectionCountResponse],
    dependencies=[Depends(verify_api_key)]
)
@handle_validation_errors("Failed to count content items per collection")
async def list_collection_counts(container: ServiceContainer = Depends(get_service_container)):
    """
    Number of content items in each collection.

    Every collection is listed, including empty ones, followed by a
    "No Collection" entry for items without a collection.
    """
    page = await container.content_source.list_content_items()
    container.store.set_content_items(page.items)
    return response_builder.build_collection_counts(page.counts)


@router.get("/types", response_model=List[ContentTypeResponse], dependencies=[Depends(verify_api_key)])
@handle_validation_errors("Failed to list content types")
async def list_content_types(container: ServiceContainer = Depends(get_service_container)):
    """Content types of the environment."""
    content_types = await container.content_source.list_content_types()
    container.store.set_content_types(content_types)
    return response_builder.build_content_types(content_types)
