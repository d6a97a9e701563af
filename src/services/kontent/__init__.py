"""
Kontent.ai Management API components.

- ContentSource / KontentContentSource: content types, items, collections
- AsyncValidationApi: validate-async start/poll/issues calls
"""
from .content_source import ContentSource, KontentContentSource, count_items_by_collection
from .validation_api import AsyncValidationApi

__all__ = [
    "ContentSource",
    "KontentContentSource",
    "count_items_by_collection",
    "AsyncValidationApi",
]
