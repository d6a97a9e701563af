"""
Error handling utilities for content validation operations.

This module provides custom exceptions and decorators for consistent error handling
across the application.
"""
import asyncio
import logging
import time
import uuid
from typing import Callable, Optional, TypeVar, ParamSpec
from functools import wraps
from contextvars import ContextVar

from fastapi import HTTPException

logger = logging.getLogger(__name__)

# Context variable for request ID tracking across async contexts
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

# Context variable carrying the id of the validation run a log line belongs to
run_id_var: ContextVar[str] = ContextVar('run_id', default='')

# Type variables for generic function signatures
P = ParamSpec('P')
T = TypeVar('T')


# ============================================================================
# Custom Exceptions
# ============================================================================

class ContentValidationError(Exception):
    """Base exception for content validation errors."""
    pass


class ClientConfigurationError(ContentValidationError):
    """Client not properly configured."""
    pass


class ServiceNotInitialized(ContentValidationError):
    """Kontent.ai service is not initialized (missing or invalid configuration)."""

    def __init__(self, message: str = "Kontent.ai service not initialized"):
        super().__init__(message)


class NoValidItemsError(ContentValidationError):
    """None of the items to validate carries a resolvable content type."""

    def __init__(self, message: str = "No valid content items found to validate"):
        super().__init__(message)


class ValidationStartFailed(ContentValidationError):
    """The async validation job could not be started."""

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        message = f"Failed to start validation: HTTP {status}"
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)


class RateLimitExceeded(ContentValidationError):
    """Management API kept answering 429 after all retries."""

    def __init__(self, operation: str, retries: int):
        self.operation = operation
        self.retries = retries
        super().__init__(
            f"Rate limit exceeded for {operation} after {retries} retries"
        )


class ValidationFailed(ContentValidationError):
    """Catch-all wrapper for unexpected failures during a validation run."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Validation failed: {cause}")


class ValidationCancelled(ContentValidationError):
    """The run was stopped by the user before it finished."""

    def __init__(self, message: str = "Validation cancelled"):
        super().__init__(message)


class FilterNotEnabledError(ContentValidationError):
    """A validation filter was requested that the app configuration disables."""
    pass


class ValidationRunConflict(ContentValidationError):
    """Operation not allowed in the current run state."""
    pass


# ============================================================================
# Error Handler Decorator
# ============================================================================

def _to_http_exception(
    error: Exception,
    error_message: str,
    func_name: str,
    request_id: str,
    elapsed: float
) -> HTTPException:
    """Map a raised exception to the HTTP error returned to the dashboard."""
    headers = {"X-Request-ID": request_id}

    if isinstance(error, (FilterNotEnabledError, NoValidItemsError)):
        logger.error(f"[{request_id}] {error_message} - Rejected after {elapsed:.2f}s: {error}")
        return HTTPException(status_code=400, detail=str(error), headers=headers)

    if isinstance(error, ValidationRunConflict):
        logger.warning(f"[{request_id}] {error_message} - Conflict after {elapsed:.2f}s: {error}")
        return HTTPException(status_code=409, detail=str(error), headers=headers)

    if isinstance(error, RateLimitExceeded):
        logger.error(f"[{request_id}] {error_message} - Rate limited after {elapsed:.2f}s: {error}")
        return HTTPException(status_code=429, detail=str(error), headers=headers)

    if isinstance(error, ValidationStartFailed):
        logger.error(f"[{request_id}] {error_message} - Upstream error after {elapsed:.2f}s: {error}")
        return HTTPException(status_code=502, detail=str(error), headers=headers)

    if isinstance(error, (ServiceNotInitialized, ClientConfigurationError)):
        logger.error(f"[{request_id}] {error_message} - Configuration error after {elapsed:.2f}s: {error}")
        return HTTPException(
            status_code=503,
            detail=f"Service configuration error: {str(error)}",
            headers=headers
        )

    if isinstance(error, ContentValidationError):
        logger.error(f"[{request_id}] {error_message} - Validation error after {elapsed:.2f}s: {error}")
        return HTTPException(status_code=500, detail=str(error), headers=headers)

    if isinstance(error, ValueError):
        logger.error(f"[{request_id}] {error_message} - Invalid value after {elapsed:.2f}s: {error}")
        return HTTPException(
            status_code=400,
            detail=f"Invalid input: {str(error)}",
            headers=headers
        )

    logger.exception(
        f"[{request_id}] {error_message} - Unexpected error in {func_name} after {elapsed:.2f}s: {error}"
    )
    return HTTPException(
        status_code=500,
        detail=f"{error_message}: {str(error)}",
        headers=headers
    )


def _log_completion(func_name: str, request_id: str, elapsed: float) -> None:
    """Log completion, with a warning if the response time exceeds the threshold."""
    from src.core.config import settings
    threshold_ms = settings.RESPONSE_TIME_WARNING_THRESHOLD_MS
    elapsed_ms = elapsed * 1000
    if elapsed_ms > threshold_ms:
        logger.warning(
            f"[{request_id}] SLOW RESPONSE: {func_name} took {elapsed:.2f}s "
            f"({elapsed_ms:.0f}ms > {threshold_ms}ms threshold)"
        )
    else:
        logger.info(f"[{request_id}] Completed {func_name} in {elapsed:.2f}s")


def _ensure_request_id() -> str:
    if not request_id_var.get():
        request_id_var.set(str(uuid.uuid4()))
    return request_id_var.get()


def handle_validation_errors(
    error_message: str = "Operation failed"
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to handle errors in dashboard API operations.

    Automatically converts validation errors to appropriate HTTP exceptions
    and logs them. Works with both sync and async functions.

    Args:
        error_message: Custom error message prefix

    Returns:
        Decorated function with error handling

    Example:
        @handle_validation_errors("Failed to start validation")
        async def start_validation(request: StartValidationRequest):
            ...
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            """Async wrapper for error handling with request tracking and timing."""
            request_id = _ensure_request_id()
            start_time = time.time()

            try:
                logger.info(f"[{request_id}] Starting {func.__name__}")
                result = await func(*args, **kwargs)
                _log_completion(func.__name__, request_id, time.time() - start_time)
                return result
            except HTTPException:
                raise
            except Exception as e:
                raise _to_http_exception(
                    e, error_message, func.__name__, request_id, time.time() - start_time
                ) from e

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            """Sync wrapper for error handling with request tracking and timing."""
            request_id = _ensure_request_id()
            start_time = time.time()

            try:
                logger.info(f"[{request_id}] Starting {func.__name__}")
                result = func(*args, **kwargs)
                _log_completion(func.__name__, request_id, time.time() - start_time)
                return result
            except HTTPException:
                raise
            except Exception as e:
                raise _to_http_exception(
                    e, error_message, func.__name__, request_id, time.time() - start_time
                ) from e

        # Return appropriate wrapper based on function type
        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        else:
            return sync_wrapper  # type: ignore

    return decorator


def describe_error(error: Optional[BaseException]) -> Optional[str]:
    """User-facing message for a failed run (None when there is no error)."""
    if error is None:
        return None
    return str(error) or error.__class__.__name__
