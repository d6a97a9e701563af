"""
HTTP middleware utilities.

Adds request ID propagation for structured logging and response headers,
and logs each dashboard API call with its duration.
"""
import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.error_handling import request_id_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach/propagate request IDs for each incoming request."""

    async def dispatch(self, request: Request, call_next: Callable):
        # Prefer incoming header if present, otherwise generate a new one
        incoming = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")
        request_id = incoming or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(f"{request.method} {request.url.path} handled in {elapsed_ms:.1f}ms")
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response
