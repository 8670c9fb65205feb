"""
Cancellable delayed callbacks driven by an injectable clock.

The game never sleeps or spawns threads. It schedules its timed
transitions here, and whoever owns the scheduler decides when time passes:
- the terminal client uses time.monotonic and calls run_due() in its loop
- tests use VirtualScheduler and advance() virtual time instantly
"""

import heapq
import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field

Clock = Callable[[], float]


@dataclass(order=True)
class TimerHandle:
    """A scheduled callback. Ordered by deadline, then scheduling order."""

    deadline: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    fired: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        """Prevent the callback from running. No effect once it has fired."""
        self.cancelled = True

    @property
    def done(self) -> bool:
        return self.cancelled or self.fired


class Scheduler:
    """Single-threaded timer queue."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.clock = clock
        self._queue: list[TimerHandle] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule callback to run once delay seconds have passed."""
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        handle = TimerHandle(self.clock() + delay, next(self._counter), callback)
        heapq.heappush(self._queue, handle)
        return handle

    def cancel_all(self) -> None:
        for handle in self._queue:
            handle.cancel()
        self._queue.clear()

    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for handle in self._queue if not handle.done)

    def next_deadline(self) -> float | None:
        """Deadline of the earliest live callback, or None if nothing is pending."""
        self._drop_cancelled()
        return self._queue[0].deadline if self._queue else None

    def run_due(self) -> int:
        """
        Run every callback whose deadline has passed, earliest first.

        Callbacks scheduled by a running callback run in the same call if
        they are already due. Returns the number of callbacks run.
        """
        ran = 0
        now = self.clock()
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0].deadline > now:
                return ran
            handle = heapq.heappop(self._queue)
            handle.fired = True
            handle.callback()
            ran += 1

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)


class VirtualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        """Move time forward without running anything."""
        self.now += seconds


class VirtualScheduler(Scheduler):
    """Scheduler on a virtual clock, for deterministic tests and simulations."""

    def __init__(self, start: float = 0.0) -> None:
        self.virtual_clock = VirtualClock(start)
        super().__init__(clock=self.virtual_clock)

    def advance(self, seconds: float) -> int:
        """
        Move virtual time forward, firing callbacks at their own deadlines.

        Returns the number of callbacks run.
        """
        target = self.virtual_clock.now + seconds
        ran = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self.virtual_clock.now = max(self.virtual_clock.now, deadline)
            ran += self.run_due()
        self.virtual_clock.now = target
        return ran

    def run_all(self) -> int:
        """Advance until nothing is pending."""
        ran = 0
        while (deadline := self.next_deadline()) is not None:
            ran += self.advance(deadline - self.virtual_clock.now)
        return ran
