"""
Retry with exponential backoff.

Wraps an async operation so that transient browser failures (slow pages,
crashed sessions) are retried a bounded number of times before giving up.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")


async def with_retry(
    operation: Callable[[], Awaitable[R]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> R:
    """
    Run ``operation`` until it succeeds or ``max_attempts`` are used up.

    Args:
        operation: Zero-argument callable returning an awaitable (a coroutine
            function or a lambda wrapping a coroutine call)
        max_attempts: Total number of attempts (at least 1)
        base_delay: Seconds to wait after the first failure
        sleep: Coroutine used for waiting; tests pass a recorder

    Returns:
        Whatever ``operation`` returns on its first successful attempt

    Raises:
        The exception from the final attempt, unchanged

    Retry Strategy:
        - After failed attempt i (zero based) wait base_delay * 2**i
        - No jitter, no cap
        - Retries on any Exception
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
