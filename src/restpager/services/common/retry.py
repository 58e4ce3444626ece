"""Generic retry utility with exponential backoff."""

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import TypeVar

import httpx

from restpager.utils.errors import RateLimitError

T = TypeVar("T")

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RateLimitError, httpx.TransportError)


async def async_retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 2.0,
    description: str = "Operation",
) -> T:
    """
    Execute an async function with retry and exponential backoff.

    Only rate-limit responses and transport failures are retried. A
    ``Retry-After`` hint from the server takes precedence over the
    computed delay.

    Args:
        func: Async function to execute
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds (doubled each retry)
        description: Description for logging

    Returns:
        Result from func

    Raises:
        Last exception if all retries fail
    """
    for attempt in range(max_retries):
        try:
            return await func()
        except RETRYABLE_ERRORS as e:
            if attempt == max_retries - 1:
                raise

            delay = base_delay * (2**attempt)
            if isinstance(e, RateLimitError) and e.retry_after is not None:
                delay = e.retry_after

            logger.warning(
                f"{description} failed (attempt {attempt + 1}/{max_retries}): "
                f"{e}. Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"{description} failed after {max_retries} retries")
