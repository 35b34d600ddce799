# tests/test_rate_governor.py

"""Tests for RateGovernor pacing under a controllable clock."""

import asyncio
import unittest

from pricescout.scrapers.rate_governor import RateGovernor


class _FakeClock:
    """Monotonic clock that only moves when the governor sleeps."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestAwaitSlot(unittest.IsolatedAsyncioTestCase):
    """RateGovernor.await_slot behaviour."""

    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.governor = RateGovernor(
            default_interval_ms=1000,
            clock=self.clock,
            sleep=self.clock.sleep,
        )

    async def test_first_call_is_granted_immediately(self) -> None:
        """No previous slot means no wait."""
        granted = await self.governor.await_slot("ebay", 1000)
        self.assertEqual(granted, 100.0)
        self.assertEqual(self.clock.sleeps, [])

    async def test_sequential_calls_respect_interval(self) -> None:
        """Back-to-back calls for one key are at least 1000 ms apart."""
        first = await self.governor.await_slot("ebay", 1000)
        second = await self.governor.await_slot("ebay", 1000)
        self.assertGreaterEqual(second - first, 1.0)

    async def test_elapsed_time_reduces_wait(self) -> None:
        """Only the remainder of the interval is slept."""
        await self.governor.await_slot("ebay", 1000)
        self.clock.now += 0.4
        await self.governor.await_slot("ebay", 1000)
        self.assertEqual(len(self.clock.sleeps), 1)
        self.assertAlmostEqual(self.clock.sleeps[0], 0.6)

    async def test_no_wait_after_interval_has_passed(self) -> None:
        """A key idle longer than its interval is granted at once."""
        await self.governor.await_slot("ebay", 1000)
        self.clock.now += 5
        await self.governor.await_slot("ebay", 1000)
        self.assertEqual(self.clock.sleeps, [])

    async def test_default_interval_when_unset(self) -> None:
        """``None`` falls back to the governor's default interval."""
        first = await self.governor.await_slot("walmart")
        second = await self.governor.await_slot("walmart", None)
        self.assertAlmostEqual(second - first, 1.0)

    async def test_keys_are_independent(self) -> None:
        """Different keys never wait on each other."""
        await self.governor.await_slot("ebay", 1000)
        await self.governor.await_slot("google", 2000)
        self.assertEqual(self.clock.sleeps, [])

    async def test_concurrent_callers_for_same_key_are_serialised(
        self,
    ) -> None:
        """Concurrent callers never compute from the same stale stamp."""
        grants = await asyncio.gather(
            self.governor.await_slot("ebay", 1000),
            self.governor.await_slot("ebay", 1000),
            self.governor.await_slot("ebay", 1000),
        )
        ordered = sorted(grants)
        self.assertGreaterEqual(ordered[1] - ordered[0], 1.0)
        self.assertGreaterEqual(ordered[2] - ordered[1], 1.0)

    async def test_request_counts(self) -> None:
        """Every granted slot is counted per key."""
        await self.governor.await_slot("ebay")
        await self.governor.await_slot("ebay")
        await self.governor.await_slot("google")
        self.assertEqual(
            self.governor.request_counts(), {"ebay": 2, "google": 1}
        )


if __name__ == "__main__":
    unittest.main()
