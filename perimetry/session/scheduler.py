"""
Deadline Scheduling
===================

The session arms one response deadline per probe through a scheduler:
- DeadlineScheduler: Protocol the session depends on
- ManualScheduler: Virtual clock advanced explicitly (tests, simulation)
- AsyncioScheduler: Adapter over a running asyncio event loop
"""

from __future__ import annotations

import asyncio
import heapq
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


class DeadlineHandle(Protocol):
    """Handle returned by call_later(); cancelling it prevents the callback."""

    def cancel(self) -> None: ...


class DeadlineScheduler(Protocol):
    """Clock plus one-shot delayed callbacks, times in seconds."""

    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> DeadlineHandle: ...


@dataclass(order=True)
class ScheduledCall:
    """A pending callback in a ManualScheduler.

    Ordering: by due time, then by scheduling order, so callbacks due at the
    same instant fire first-in first-out.
    """

    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by advance().

    Time only moves when advance() is called. Callbacks fire in due order
    with the clock set to their due time, and may schedule further
    callbacks that fire within the same advance() if they fall due.

    Args:
        start: Initial clock reading in seconds
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._queue: list[ScheduledCall] = []
        self._sequence = 0

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        call = ScheduledCall(due=self._now + delay, sequence=self._sequence, callback=callback)
        self._sequence += 1
        heapq.heappush(self._queue, call)
        return call

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to fire."""
        return sum(1 for call in self._queue if not call.cancelled)

    def next_due(self) -> float | None:
        """Due time of the earliest live callback, or None."""
        self._drop_cancelled()
        return self._queue[0].due if self._queue else None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that falls due.

        Args:
            seconds: Non-negative amount of time to advance

        Returns:
            Number of callbacks fired
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance by a negative amount, got {seconds}")

        target = self._now + seconds
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0].due > target:
                break
            call = heapq.heappop(self._queue)
            self._now = call.due
            call.callback()
            fired += 1

        self._now = target
        return fired

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Args:
        loop: Event loop to schedule on; defaults to the running loop, so
            construct it from inside a coroutine when omitted
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(delay, callback)
