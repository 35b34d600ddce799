# pricescout/scrapers/rate_governor.py

"""Per-source request pacing shared by both extraction paths."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from pricescout.config.settings import Settings

logger = logging.getLogger("pricescout.rate")


class RateGovernor:
    """Grant request slots no closer than a per-key minimum interval.

    Holds the process-wide rate state: the last granted timestamp and a
    request counter per key.  Each key has its own lock, so callers for
    the same key are served one at a time in arrival order while
    callers for different keys never wait on each other.

    The clock and sleep functions are injectable so tests can drive
    time without sleeping.
    """

    def __init__(
        self,
        default_interval_ms: int = Settings.DEFAULT_RATE_LIMIT_MS,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.default_interval_ms = default_interval_ms
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_granted: dict[str, float] = {}
        self._request_counts: dict[str, int] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def await_slot(
        self,
        key: str,
        min_interval_ms: int | None = None,
    ) -> float:
        """Block until *key* may issue its next request.

        Returns the clock reading at which the slot was granted.
        """
        interval_ms = (
            self.default_interval_ms
            if min_interval_ms is None
            else min_interval_ms
        )
        interval = interval_ms / 1000

        # Read-compute-write of the timestamp happens under the key lock
        async with self._lock_for(key):
            last = self._last_granted.get(key)
            if last is not None:
                wait = interval - (self._clock() - last)
                if wait > 0:
                    logger.debug(
                        "[%s] Rate limit: waiting %.2fs", key, wait
                    )
                    await self._sleep(wait)
            granted = self._clock()
            self._last_granted[key] = granted
            self._request_counts[key] = (
                self._request_counts.get(key, 0) + 1
            )
            return granted

    def request_counts(self) -> dict[str, int]:
        """Snapshot of granted slots per key."""
        return dict(self._request_counts)
