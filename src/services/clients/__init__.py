"""
Kontent.ai Management API clients.

This package provides the base class shared by the content source and the
async validation API client.
"""
from .base_client import BaseManagementClient

__all__ = ["BaseManagementClient"]
