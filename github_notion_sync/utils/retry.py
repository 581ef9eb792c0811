"""Retry decorator for handling rate limits and transient API errors.

This module provides a decorator that implements bounded retry logic for
GitHub and Notion API calls, including respect for rate limit headers and
exponential backoff.

Only idempotent calls should opt into retrying ambiguous failures (server
errors and dropped connections). Repeating a page creation whose first attempt
may already have been applied would create a duplicate mirror record.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Callable, TypeVar

import httpx
import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded

from github_notion_sync.notion.exceptions import NotionAPIError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _header_wait_time(headers: Any) -> float | None:
    """Extract a wait time from retry-after or x-ratelimit-reset headers."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            reset_timestamp = int(rate_limit_reset)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
            return None
        current_timestamp = int(time.time())
        if reset_timestamp > current_timestamp:
            return float(reset_timestamp - current_timestamp + 1)
    return None


def classify_error(error: BaseException, idempotent: bool) -> tuple[bool, float | None]:
    """Decide whether an error may be retried and how long the server asked us to wait.

    Returns:
        A tuple of (retryable, wait time hint in seconds or None).
    """
    if isinstance(error, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        retry_after = getattr(error, "retry_after", None)
        return True, retry_after.total_seconds() if retry_after else None
    if isinstance(error, RequestFailed):
        status_code = error.response.status_code
        if status_code == 429 or (status_code == 403 and "rate limit" in str(error).lower()):
            return True, _header_wait_time(error.response.headers)
        return idempotent and status_code >= 500, None
    if isinstance(error, NotionAPIError):
        if error.is_rate_limited:
            return True, error.retry_after
        return idempotent and error.is_server_error, None
    if isinstance(error, httpx.TransportError):
        return idempotent, None
    return False, None


def is_authentication_error(error: BaseException) -> bool:
    """Check whether GitHub or Notion rejected the credentials used for a call.

    GitHub reports exhausted rate limits with a 403 as well; those are not
    authentication failures.
    """
    if isinstance(error, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return False
    if isinstance(error, RequestFailed):
        status_code = error.response.status_code
        return status_code == 401 or (status_code == 403 and "rate limit" not in str(error).lower())
    if isinstance(error, NotionAPIError):
        return error.is_unauthorized
    return False


def retry_on_transient_error(
    max_retries: int = 5,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    idempotent: bool = True,
) -> Callable[[F], F]:
    """Decorator for retrying async API calls on rate limits and transient errors.

    This decorator handles:
    - GitHub primary and secondary rate limits (403/429)
    - Notion rate limits (429), honouring Retry-After
    - Server errors and transport failures, when the call is idempotent

    Args:
        max_retries: Maximum number of retry attempts (default: 5)
        initial_delay: Initial delay in seconds between retries (default: 1.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        idempotent: Whether repeating the call is safe after an ambiguous failure

    Returns:
        Decorated function with retry logic

    Example:
        @retry_on_transient_error(idempotent=False)
        async def create_page(self, database_id: str, properties: dict[str, Any]) -> dict[str, Any]:
            ...
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_transient_error must be async.")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    retryable, wait_hint = classify_error(e, idempotent)
                    if not retryable:
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "Max retries reached for transient API error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error_type=type(e).__name__,
                            error=str(e),
                        )
                        raise

                    wait_time = min(wait_hint if wait_hint is not None else delay, max_delay)
                    logger.warning(
                        f"Transient API error, retrying in {wait_time} seconds",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                        error_type=type(e).__name__,
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)
                    attempt += 1

        return async_wrapper  # type: ignore

    return decorator
