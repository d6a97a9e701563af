"""Services package for Kontent.ai content access, async validation runs and result state."""

from src.services.kontent import AsyncValidationApi, KontentContentSource
from src.services.validation import ResultStore, ValidationOrchestrator, ValidationRunController

__all__ = [
    'AsyncValidationApi',
    'KontentContentSource',
    'ResultStore',
    'ValidationOrchestrator',
    'ValidationRunController',
]
