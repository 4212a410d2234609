"""
Clocks used to time trials.

MonotonicClock wraps time.perf_counter_ns, the highest resolution monotonic
clock available, and is the clock used for real measurements. VirtualClock
moves only when slept on or advanced, which makes simulated runs instant and
their timings exact.
"""

import asyncio
import time

NS_PER_SECOND = 1000000000
NS_PER_MS = 1000000


def seconds_to_ns(seconds: float) -> int:
    return int(round(seconds * NS_PER_SECOND))


def ns_to_ms(ns: int) -> float:
    return ns / NS_PER_MS


class MonotonicClock:
    """Monotonic nanosecond clock with a sleep that lands close to its deadline."""

    # asyncio.sleep() may overshoot by a scheduler tick; the last stretch
    # before a deadline is covered by yielding to the loop instead.
    spin_threshold_ns = 2 * NS_PER_MS

    def now_ns(self) -> int:
        return time.perf_counter_ns()

    async def sleep(self, seconds: float):
        deadline = self.now_ns() + seconds_to_ns(seconds)
        remaining = deadline - self.now_ns()
        if remaining > self.spin_threshold_ns:
            await asyncio.sleep((remaining - self.spin_threshold_ns) / NS_PER_SECOND)
        while self.now_ns() < deadline:
            await asyncio.sleep(0)


class VirtualClock:
    """Clock for simulated runs. Time only moves forward when told to."""

    def __init__(self, start_ns: int = 0):
        self._now_ns = start_ns

    def now_ns(self) -> int:
        return self._now_ns

    def advance_to(self, timestamp_ns: int):
        if timestamp_ns > self._now_ns:
            self._now_ns = timestamp_ns

    def advance(self, seconds: float):
        self._now_ns += seconds_to_ns(seconds)

    async def sleep(self, seconds: float):
        deadline = self._now_ns + seconds_to_ns(seconds)
        # Let tasks started alongside this one run first, as they would
        # during a real wait.
        await asyncio.sleep(0)
        self.advance_to(deadline)
