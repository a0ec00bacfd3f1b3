"""
Schedulers for delayed assignments.

The expression manager hands every assignment that carries a timeout to a
Scheduler and never waits for it. Two implementations ship:

- AsyncioScheduler: real time, on an asyncio event loop (default).
- ManualScheduler:  virtual time, advanced explicitly by the host.

    scheduler = ManualScheduler()
    manager = create_expression_manager({}, scheduler=scheduler)
    ...
    scheduler.advance(500)   # runs everything due within the next 500 ms
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Single-shot deferred callbacks, measured in milliseconds."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> Any:
        """Run ``callback()`` once after ``delay_ms``. Returns a cancellable handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a callback that has not run yet. Unknown handles are ignored."""


class AsyncioScheduler(Scheduler):
    """
    Schedules on an asyncio event loop.

    Uses ``loop`` if given, else the running loop, else a new loop that is
    installed as the current one. Callbacks only run while the loop runs.
    """

    def __init__(self, loop=None):
        self._loop = loop

    def _get_loop(self):
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is None or loop.is_closed():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
        self._loop = loop
        return loop

    def call_later(self, delay_ms, callback):
        return self._get_loop().call_later(delay_ms / 1000.0, callback)

    def cancel(self, handle):
        if handle is not None:
            handle.cancel()


class _ManualTask:
    __slots__ = ("due", "seq", "callback", "cancelled")

    def __init__(self, due, seq, callback):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def __lt__(self, other):
        return (self.due, self.seq) < (other.due, other.seq)


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler.

    Nothing runs until advance() or run_all() is called. Tasks run in order
    of due time, ties in submission order. Tasks scheduled by a running task
    run in the same advance() call if they fall due within it.
    """

    def __init__(self):
        self._now = 0.0
        self._queue = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        """Virtual time in milliseconds."""
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for t in self._queue if not t.cancelled)

    def call_later(self, delay_ms, callback):
        task = _ManualTask(self._now + max(delay_ms, 0), next(self._seq), callback)
        heapq.heappush(self._queue, task)
        return task

    def cancel(self, handle):
        if isinstance(handle, _ManualTask):
            handle.cancelled = True

    def advance(self, ms: float) -> int:
        """Move the clock forward by ``ms`` and run what falls due. Returns tasks run."""
        deadline = self._now + ms
        ran = 0
        while self._queue and self._queue[0].due <= deadline:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = task.due
            logger.debug("Running deferred task due at %sms", task.due)
            task.callback()
            ran += 1
        self._now = deadline
        return ran

    def run_all(self) -> int:
        """Run every pending task, advancing the clock as far as needed."""
        ran = 0
        while self._queue:
            task = self._queue[0]
            ran += self.advance(max(task.due - self._now, 0))
        return ran
