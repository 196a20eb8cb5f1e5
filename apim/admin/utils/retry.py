"""Retry helper for callers of the request executor.

The executor and the paging engines never retry. Callers that want retries
wrap individual calls with ``retry_async``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS = frozenset({408, 429})


def is_retryable(error: BaseException) -> bool:
    """Whether a failure is worth retrying.

    Network failures (no status), 408, 429 and 5xx are; other HTTP errors
    are not.
    """
    if not isinstance(error, TransportError):
        return False
    status = error.status_code
    return status is None or status in RETRYABLE_STATUS or status >= 500


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 5.0,
    should_retry: Callable[[BaseException], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await ``func()``, retrying up to ``attempts`` times on retryable errors.

    Args:
        func: Zero-argument coroutine factory, called once per try
        attempts: Maximum number of retries after the first try
        delay: Seconds to wait before each retry
        should_retry: Decides whether a failure is retried
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The first successful result

    Raises:
        The last error once retries are exhausted, or any non-retryable error
    """
    if attempts < 0:
        raise ValueError("attempts cannot be negative")

    retry = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if retry >= attempts or not should_retry(e):
                raise
            retry += 1
            logger.warning(
                "retrying_request",
                extra={
                    "attempt": retry,
                    "max_attempts": attempts,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            if delay > 0:
                await sleep(delay)
