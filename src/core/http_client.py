"""
Shared HTTP client utilities: configured AsyncClient and rate-limit retry helper.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from src.core.config import settings
from src.core.error_handling import RateLimitExceeded, request_id_var

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


def get_async_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create a configured AsyncClient with shared limits/timeouts."""
    return httpx.AsyncClient(
        timeout=timeout or settings.HTTP_CLIENT_TIMEOUT,
        limits=httpx.Limits(
            max_keepalive_connections=settings.HTTP_MAX_KEEPALIVE_CONNECTIONS,
            max_connections=settings.HTTP_MAX_CONNECTIONS,
        ),
    )


def calculate_backoff_ms(
    attempt: int,
    base_delay_ms: Optional[int] = None,
    max_delay_ms: Optional[int] = None
) -> int:
    """
    Exponential backoff delay for a rate-limited call.

    delay = min(2 ** attempt * base, max)
    - Attempt 0: 1000ms
    - Attempt 1: 2000ms
    - Attempt 2: 4000ms
    """
    base = settings.RATE_LIMIT_BASE_DELAY_MS if base_delay_ms is None else base_delay_ms
    ceiling = settings.RATE_LIMIT_MAX_DELAY_MS if max_delay_ms is None else max_delay_ms
    return min((2 ** attempt) * base, ceiling)


def _is_rate_limited(error: BaseException) -> bool:
    return (
        isinstance(error, httpx.HTTPStatusError)
        and error.response is not None
        and error.response.status_code == RATE_LIMIT_STATUS
    )


async def call_with_rate_limit_retry(
    operation: str,
    func: Callable[[], Awaitable[httpx.Response]],
    *,
    max_retries: Optional[int] = None,
) -> httpx.Response:
    """
    Run a Management API call, retrying only when it is rate limited (HTTP 429).

    A 429 is recognised either as a returned response or as a raised
    httpx.HTTPStatusError. Every other status or error goes straight back to
    the caller without retrying.

    Args:
        operation: Human-readable name used in logs and in RateLimitExceeded
        func: Zero-argument coroutine factory performing the request
        max_retries: Retries after the first attempt (default RATE_LIMIT_MAX_RETRIES)

    Raises:
        RateLimitExceeded: If the call is still rate limited after all retries
    """
    retries = settings.RATE_LIMIT_MAX_RETRIES if max_retries is None else max_retries
    req_id = request_id_var.get()

    for attempt in range(retries + 1):
        try:
            response = await func()
        except httpx.HTTPStatusError as exc:
            if not _is_rate_limited(exc):
                raise
        else:
            if response.status_code != RATE_LIMIT_STATUS:
                return response

        if attempt == retries:
            break

        delay_ms = calculate_backoff_ms(attempt)
        logger.warning(
            f"[{req_id}] Rate limited on {operation}, "
            f"retry {attempt + 1}/{retries} in {delay_ms}ms"
        )
        await asyncio.sleep(delay_ms / 1000)

    logger.error(f"[{req_id}] Rate limit exceeded for {operation} after {retries} retries")
    raise RateLimitExceeded(operation, retries)


async def request_with_rate_limit_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    operation: str,
    headers: Optional[Dict[str, str]] = None,
    json: Any = None,
    params: Optional[Dict[str, Any]] = None,
    max_retries: Optional[int] = None,
) -> httpx.Response:
    """Perform a single HTTP request through call_with_rate_limit_retry."""

    async def _send() -> httpx.Response:
        return await client.request(method, url, headers=headers, json=json, params=params)

    return await call_with_rate_limit_retry(operation, _send, max_retries=max_retries)


@asynccontextmanager
async def get_managed_client(
    persistent_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None
):
    """
    Context manager for HTTP client lifecycle.

    Reuses persistent client if provided, creates temporary otherwise.

    Example:
        async with get_managed_client(self._client, self.timeout) as client:
            response = await client.get(url, ...)
    """
    should_close = persistent_client is None
    client = persistent_client or get_async_client(timeout=timeout)
    try:
        yield client
    finally:
        if should_close:
            await client.aclose()
