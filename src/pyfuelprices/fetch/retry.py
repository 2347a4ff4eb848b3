"""Retry with exponential backoff for transient upstream failures."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pyfuelprices.exceptions import FuelTransientFetchError

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a unit of work is retried.

    Parameters
    ----------
    max_retries : int
        Retries after the first attempt. ``0`` disables retrying.
    base_delay : float
        Seconds before the first retry; retry ``n`` (0-based) waits
        ``base_delay * 2**n``.
    max_delay : float
        Upper bound for a single delay.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2**attempt), self.max_delay)


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str = "",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await ``fn()``, retrying on :class:`FuelTransientFetchError`.

    Permanent failures propagate immediately. When retries are exhausted
    the last transient error propagates.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except FuelTransientFetchError as exc:
            if attempt >= policy.max_retries:
                raise
            delay = policy.delay_for(attempt)
            _logger.info(
                "%s failed (%s), retry %d/%d in %.1fs",
                label or "request",
                exc,
                attempt + 1,
                policy.max_retries,
                delay,
            )
            await sleep(delay)
            attempt += 1
