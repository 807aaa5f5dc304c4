"""Cooperative scheduling of long decode jobs.

Decoding never loops over a whole resource at once. A :class:`BatchTask`
runs one bounded batch of work, then re-queues itself on a host
:class:`TaskQueue` while its step function reports more work. The host
decides when queued continuations run (``run_pending`` / ``drain``).
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class TaskQueue:
    """FIFO queue of zero-delay deferred callbacks."""

    def __init__(self) -> None:
        self._pending: deque[Callable[[], None]] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def run_pending(self) -> int:
        """Run the callbacks queued so far (not the ones they queue). Returns the count."""
        count = len(self._pending)
        for _ in range(count):
            self._pending.popleft()()
        return count

    def drain(self, max_callbacks: int | None = None) -> int:
        """Run callbacks until the queue is empty or ``max_callbacks`` ran."""
        ran = 0
        while self._pending and (max_callbacks is None or ran < max_callbacks):
            self._pending.popleft()()
            ran += 1
        return ran


class BatchTask:
    """Resumable job made of bounded steps.

    ``step`` performs at most one batch of work and returns True while more
    work is immediately available. Cancelled tasks never step again, even
    if a continuation was already queued.
    """

    def __init__(self, step: Callable[[], bool], queue: TaskQueue, token: CancellationToken) -> None:
        self._step = step
        self._queue = queue
        self._token = token
        self._scheduled = False

    @property
    def scheduled(self) -> bool:
        return self._scheduled and not self._token.cancelled

    def run(self) -> None:
        """Run one batch now and schedule a continuation if needed."""
        if self._token.cancelled:
            return
        if self._step() and not self._token.cancelled:
            self._schedule()

    def run_until(self, done: Callable[[], bool]) -> None:
        """Step synchronously until ``done()`` holds or no continuation is pending."""
        while self.scheduled and not done():
            self._scheduled = False
            if not self._step():
                return
            self._scheduled = True

    def _schedule(self) -> None:
        if self._scheduled:
            return
        self._scheduled = True
        logger.debug("Scheduling decode continuation")
        self._queue.call_soon(self._resume)

    def _resume(self) -> None:
        if not self._scheduled:
            # already stepped synchronously by run_until()
            return
        self._scheduled = False
        self.run()
