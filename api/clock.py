"""
Time sources for the request pipeline.

The queue, rate limiter and cache never touch the event loop clock directly.
They receive a clock object so that tests can drive virtual time instead of
sleeping. LoopClock is the production implementation; ManualClock keeps a
virtual timeline that only moves when something sleeps or calls advance().
"""
import asyncio
import heapq
import itertools
import time
from typing import Callable, List, Protocol, Tuple


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    """Minimal scheduler interface consumed by the pipeline (times in seconds)."""

    def now(self) -> float: ...

    async def sleep(self, delay: float) -> None: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class LoopClock:
    """Clock backed by time.monotonic() and the running asyncio loop."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(max(0.0, delay), callback)


class ManualTimer:
    """Handle returned by ManualClock.call_later."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self._callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def _run(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._callback()


class ManualClock:
    """
    Virtual clock for deterministic tests.

    sleep() advances virtual time by the requested delay, fires any timers
    that fall due, then yields once to the event loop. With a single dispatch
    loop per client this reproduces real ordering without real waiting.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._timers: List[Tuple[float, int, ManualTimer]] = []
        self._sequence = itertools.count()
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self._now + max(0.0, delay), callback)
        heapq.heappush(self._timers, (timer.when, next(self._sequence), timer))
        return timer

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due timers in chronological order."""
        target = self._now + max(0.0, seconds)
        while self._timers and self._timers[0][0] <= target:
            when, _, timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = max(self._now, when)
            timer._run()
        self._now = target

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.advance(delay)
        await asyncio.sleep(0)

    @property
    def pending_timers(self) -> int:
        """Number of scheduled, not yet cancelled timers."""
        return sum(1 for _, _, timer in self._timers if not timer.cancelled)
