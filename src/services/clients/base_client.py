"""
Base client for the Kontent.ai Management API.

This module provides the shared connection handling used by the content
source and the async validation API: bearer authentication, HTTP client
lifecycle, rate-limit retries and continuation-token pagination.
"""
from typing import Any, AsyncIterator, Dict, List, Optional
import httpx
import logging

from src.core.app_config import AppConfig, validate_app_config
from src.core.config import settings
from src.core.error_handling import ClientConfigurationError, ServiceNotInitialized
from src.core.http_client import get_async_client, get_managed_client, request_with_rate_limit_retry
from src.models.kontent_models import Pagination

logger = logging.getLogger(__name__)

CONTINUATION_HEADER = "x-continuation"


class BaseManagementClient:
    """Base class for Management API clients.

    Provides common functionality:
    - Configuration validation (a misconfigured client reports is_ready() False
      instead of failing at construction)
    - HTTP client management with connection pooling
    - Async context manager support
    - Rate-limit aware requests and paginated listings
    - Health check
    """

    def __init__(self, config: AppConfig, timeout: Optional[float] = None):
        """Initialize the Management API client.

        Args:
            config: Resolved runtime configuration (custom app or local dev)
            timeout: Request timeout in seconds (default: HTTP_CLIENT_TIMEOUT)
        """
        self.config = config
        self.environment_id = config.environment_id
        self.api_key = config.management_api_key
        self.base_url = config.management_api_url.rstrip("/")
        self.timeout = timeout or settings.HTTP_CLIENT_TIMEOUT
        self._client: Optional[httpx.AsyncClient] = None

        self.initialization_error: Optional[str] = None
        try:
            validate_app_config(config)
            self.is_initialized = True
            logger.info(f"Initialized {self.__class__.__name__} for environment {self.environment_id}")
        except ClientConfigurationError as e:
            logger.error(f"Failed to initialize {self.__class__.__name__}: {e}")
            self.initialization_error = str(e)
            self.is_initialized = False

        self.headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}"
        }

    def is_ready(self) -> bool:
        """Check if the client is configured and can talk to the API."""
        return self.is_initialized

    def _ensure_ready(self) -> None:
        if not self.is_initialized:
            raise ServiceNotInitialized()

    @property
    def project_url(self) -> str:
        """Base URL of the environment's Management API endpoints."""
        return f"{self.base_url}/projects/{self.environment_id}"

    async def __aenter__(self):
        """Async context manager entry - initialize shared client."""
        self._client = get_async_client(timeout=self.timeout)
        logger.debug(f"{self.__class__.__name__} context manager entered")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - cleanup shared client."""
        await self.close()

    async def close(self):
        """Close the shared HTTP client. Safe to call multiple times."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug(f"{self.__class__.__name__} HTTP client closed")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """Send a request relative to project_url with 429 backoff.

        Raises:
            ServiceNotInitialized: If the client is not configured
            RateLimitExceeded: If the API keeps rate limiting the call
        """
        self._ensure_ready()
        headers = dict(self.headers)
        if extra_headers:
            headers.update(extra_headers)

        async with get_managed_client(self._client, self.timeout) as client:
            return await request_with_rate_limit_retry(
                client,
                method,
                f"{self.project_url}{path}",
                operation=operation,
                headers=headers,
                json=json,
                params=params,
            )

    async def _get_json(self, path: str, *, operation: str, **kwargs) -> Dict[str, Any]:
        """GET a resource and return its JSON body, raising for non-2xx statuses."""
        response = await self._request("GET", path, operation=operation, **kwargs)
        response.raise_for_status()
        return response.json()

    async def _iterate_pages(self, path: str, key: str, *, operation: str) -> AsyncIterator[List[Dict[str, Any]]]:
        """Yield the `key` array of every page of a continuation-token listing."""
        continuation: Optional[str] = None
        page = 0
        while True:
            extra_headers = {CONTINUATION_HEADER: continuation} if continuation else None
            data = await self._get_json(path, operation=operation, extra_headers=extra_headers)
            page += 1
            yield data.get(key) or []

            continuation = Pagination.model_validate(data.get("pagination") or {}).continuation_token
            if not continuation:
                logger.debug(f"{operation}: fetched {page} page(s)")
                return

    async def get_project_info(self) -> Dict[str, Any]:
        """Get environment (project) information."""
        return await self._get_json("", operation="getProjectInfo")

    async def health_check(self) -> bool:
        """
        Check if the Management API is accessible with the configured key.

        Returns:
            True if API is accessible, False otherwise
        """
        if not self.is_initialized:
            return False
        try:
            await self.get_project_info()
            return True
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            return False

    def __repr__(self) -> str:
        """String representation of the client."""
        return (
            f"{self.__class__.__name__}("
            f"environment_id={self.environment_id}, "
            f"timeout={self.timeout}s"
            ")"
        )
