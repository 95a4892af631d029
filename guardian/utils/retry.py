from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from ..errors import UpstreamTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_backoff(attempt: int, base: float = 0.1, jitter: float = 0.05) -> float:
    """Compute exponential backoff with jitter."""
    delay = base * (2 ** attempt)
    return delay + random.uniform(0, jitter)


async def schedule_retry(attempt: int, base: float = 0.1) -> None:
    """Sleep for computed backoff delay before retrying."""
    delay = compute_backoff(attempt, base=base, jitter=base / 2)
    await asyncio.sleep(delay)


async def call_upstream(
    collaborator: str,
    operation: str,
    call: Callable[[], Awaitable[T]],
    timeout: float,
    retry_on_timeout: bool = False,
    backoff: float = 0.1,
) -> T:
    """Await ``call()`` with a deadline, surfacing expiry as ``UpstreamTimeout``.

    ``call`` is a factory so that a retry starts a fresh coroutine. Only
    read-only calls should pass ``retry_on_timeout``; they get exactly one
    more attempt.
    """
    attempts = 2 if retry_on_timeout else 1
    for attempt in range(attempts):
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except asyncio.TimeoutError:
            if attempt + 1 < attempts:
                logger.warning(
                    f"{collaborator}.{operation} timed out after {timeout:g}s, retrying once"
                )
                await schedule_retry(attempt, base=backoff)
                continue
            logger.error(f"{collaborator}.{operation} timed out after {timeout:g}s")
            raise UpstreamTimeout(collaborator, operation, timeout) from None
    raise AssertionError("unreachable")  # pragma: no cover
