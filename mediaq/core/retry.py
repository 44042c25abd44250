"""
Retry policy for external calls made while processing media.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 3
DEFAULT_DELAY = 1.0


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait before retry ``attempt`` (1-based): base, 2x base, 4x base..."""
    return max(base_delay, 0.0) * (2 ** (max(attempt, 1) - 1))


async def fetch_with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
) -> T:
    """
    Await ``operation()`` and retry it on any exception.

    The operation runs at most ``retries + 1`` times. Before retry n
    (1-based) the helper sleeps ``delay * 2 ** (n - 1)`` seconds, so the
    defaults wait 1s, 2s and 4s. Once the bound is exhausted the last
    exception is re-raised unchanged.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= retries:
                raise
            attempt += 1
            wait = backoff_delay(attempt, delay)
            logger.debug(
                f"Attempt {attempt} of {retries + 1} failed ({e!r}); retrying in {wait:.2f}s"
            )
            await asyncio.sleep(wait)
