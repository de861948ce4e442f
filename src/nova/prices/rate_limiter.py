"""Minimum-spacing gate for outbound price-source requests."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Guarantees call starts are at least ``min_interval`` seconds apart.

    Each caller reserves the next free slot while holding the lock, then
    sleeps outside the lock until its slot arrives. The lock therefore only
    covers the timestamp check-and-update, so a slow request never blocks
    other callers from queueing.

    ``clock`` and ``sleep`` are injectable so tests can use a fake clock.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    @property
    def last_request(self) -> float | None:
        return self._last_request

    async def acquire(self) -> float:
        """Wait for the next permitted slot. Returns the slot's start instant."""
        async with self._lock:
            now = self._clock()
            slot = now
            if self._last_request is not None:
                slot = max(now, self._last_request + self.min_interval)
            self._last_request = slot

        delay = slot - now
        if delay > 0:
            logger.debug("Price rate limit: waiting %.3fs", delay)
            await self._sleep(delay)
        return slot
