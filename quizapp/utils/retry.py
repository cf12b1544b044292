"""
Retry helpers for remote store calls
"""
import asyncio
import logging

from quizapp.core.errors import TransientStoreError

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_BACKOFF = 0.5  # seconds


async def retry_with_backoff(
    coro_func,
    max_retries: int = MAX_RETRIES,
    initial_backoff: float = INITIAL_BACKOFF,
    retry_on=(TransientStoreError,)
):
    """
    Execute coroutine with exponential backoff retry

    Args:
        coro_func: Async function to call (no arguments)
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff delay in seconds
        retry_on: Exception types worth retrying; anything else propagates at once

    Returns:
        Result from successful coroutine execution

    Raises:
        Last exception if all retries exhausted
    """
    last_exception = None
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        try:
            return await coro_func()
        except retry_on as e:
            last_exception = e

            if attempt == max_retries:
                break

            logger.warning(
                f"⚠️ Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {backoff:.1f}s..."
            )

            await asyncio.sleep(backoff)
            backoff *= 2  # Exponential backoff

    raise last_exception
