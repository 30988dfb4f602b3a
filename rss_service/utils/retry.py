"""
Retry helper for managed-store round trips.

Transient HTTP failures (timeouts, refused connections, 5xx and 429 answers)
are retried with capped exponential backoff and jitter; anything else is
raised immediately.

Responsibility: Bounded retries of idempotent network calls
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryError(Exception):
    """Raised when every attempt failed with a transient error"""

    def __init__(self, message: str, last_exception: Optional[Exception] = None):
        super().__init__(message)
        self.last_exception = last_exception


def _is_transient(exception: Exception) -> bool:
    if isinstance(exception, (httpx.TimeoutException, httpx.ConnectError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
        return status_code >= 500 or status_code == 429
    return False


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 3.0,
    logger_instance: Optional[logging.Logger] = None
) -> T:
    """
    Await func, retrying transient failures.

    The delay before retry n (0-indexed) is base_delay * 2**n capped at
    max_delay, scaled by a random factor in [0.5, 1.0).

    Args:
        func: Zero-argument coroutine function
        max_attempts: Total attempts (1 disables retries)
        base_delay: First backoff in seconds
        max_delay: Backoff cap in seconds
        logger_instance: Logger for retry messages (defaults to module logger)

    Raises:
        RetryError: Every attempt failed transiently
        Exception: The first non-transient error, unchanged
    """
    log = logger_instance or logger

    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            if not _is_transient(e):
                raise
            if attempt + 1 >= max_attempts:
                log.error(f"Giving up after {max_attempts} attempts: {e}")
                raise RetryError(f"Failed after {max_attempts} attempts", last_exception=e) from e

            delay = min(max_delay, base_delay * 2 ** attempt) * (0.5 + random.random() * 0.5)
            log.warning(f"Attempt {attempt + 1}/{max_attempts} failed: {e}. Retrying in {delay:.2f}s")
            await asyncio.sleep(delay)

    raise RetryError(f"Failed after {max_attempts} attempts")
