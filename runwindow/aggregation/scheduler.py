"""
aggregation/scheduler.py

Cancellable delayed-callback abstraction used by the Aggregator's timer.

Design:
  - The Aggregator never touches loop timers directly; it calls
    scheduler.call_later(delay_seconds, callback) and keeps the returned
    handle so it can cancel() it before re-arming
  - LoopScheduler   - production implementation on the asyncio event loop
  - ManualScheduler - virtual clock; time only moves when advance() is called,
                      so debounce behaviour is testable without real waiting

Thread safety: NOT thread-safe. Called exclusively from the event-loop thread.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# asyncio implementation
# ---------------------------------------------------------------------------

class LoopScheduler:
    """
    Schedules callbacks with loop.call_later().

    Args:
        loop: Event loop to schedule on. When None, the loop running at the
              time of each call_later() is used, so the scheduler can be
              created before the loop starts.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise RuntimeError(
                    "LoopScheduler needs a running asyncio event loop; "
                    "pass LoopScheduler(loop=...) or use ManualScheduler "
                    "when enqueueing from synchronous code"
                ) from exc
        return loop.call_later(delay, callback)


# ---------------------------------------------------------------------------
# Virtual clock
# ---------------------------------------------------------------------------

class ManualTimer:
    """Handle returned by ManualScheduler.call_later()."""

    __slots__ = ("when", "callback", "cancelled")

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        return f"<ManualTimer when={self.when:.3f} cancelled={self.cancelled}>"


class ManualScheduler:
    """
    Deterministic scheduler driven by an explicit virtual clock.

    Timers due at the same instant fire in the order they were scheduled.
    A callback may schedule further timers; those fire within the same
    advance() call if they fall due before its target time.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._heap: list[tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._heap, (timer.when, next(self._seq), timer))
        return timer

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every live timer that falls due. Returns the fire count."""
        target = self._now + seconds
        fired = 0
        while self._heap and self._heap[0][0] <= target:
            when, _, timer = heapq.heappop(self._heap)
            self._now = when
            if timer.cancelled:
                continue
            timer.callback()
            fired += 1
        self._now = target
        if fired:
            logger.debug("ManualScheduler fired %d timer(s), now=%.3f", fired, self._now)
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if not t.cancelled)
