"""Scheduling back-ends the controller can be bound to.

The controller never sleeps or starts threads.  Every delayed effect is handed
to a :class:`Scheduler`, which returns a :class:`Handle` the controller keeps
in its single timer slot and cancels when superseded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Handle(Protocol):
    """A cancellable scheduled callback."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Clock plus delayed and idle callback queues, all in milliseconds."""

    supports_idle: bool

    def now(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Handle: ...

    def call_when_idle(self, callback: Callable[[], None], timeout_ms: float) -> Handle: ...


# ---------------------------------------------------------------------------
# Deterministic scheduler
# ---------------------------------------------------------------------------


class ManualHandle:
    """Handle returned by :class:`ManualScheduler`."""

    def __init__(
        self,
        scheduler: ManualScheduler,
        callback: Callable[[], None],
        due: float,
        seq: int,
        idle: bool,
    ) -> None:
        self._scheduler = scheduler
        self.callback = callback
        self.due = due
        self.seq = seq
        self.idle = idle
        self.done = False

    def cancel(self) -> None:
        """Drop the callback.  No-op once it has fired or been cancelled."""
        if self.done:
            return
        self.done = True
        self._scheduler._forget(self)

    def _fire(self) -> None:
        self.done = True
        self.callback()


class ManualScheduler:
    """Virtual-clock scheduler driven explicitly by the caller.

    Nothing runs until :meth:`advance` moves the clock or :meth:`run_idle`
    grants an idle slot.  Idle callbacks still fire at their timeout ceiling
    when the clock passes it.
    """

    def __init__(self, start: float = 0.0, *, supports_idle: bool = True) -> None:
        self.supports_idle = supports_idle
        self._now = float(start)
        self._seq = 0
        self._timers: list[ManualHandle] = []
        self._idle: list[ManualHandle] = []

    # -- Scheduler interface -------------------------------------------------

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ManualHandle:
        handle = self._make(callback, self._now + max(delay_ms, 0), idle=False)
        self._timers.append(handle)
        return handle

    def call_when_idle(self, callback: Callable[[], None], timeout_ms: float) -> ManualHandle:
        if not self.supports_idle:
            raise RuntimeError("idle scheduling is disabled on this scheduler")
        handle = self._make(callback, self._now + max(timeout_ms, 0), idle=True)
        self._idle.append(handle)
        return handle

    # -- driving the clock ---------------------------------------------------

    def advance(self, ms: float) -> None:
        """Move the clock forward by *ms*, firing everything that falls due.

        Callbacks run in (due time, scheduling order); while one runs,
        :meth:`now` reports its due time.
        """
        if ms < 0:
            raise ValueError(f"cannot advance the clock backwards ({ms})")
        target = self._now + ms
        while True:
            handle = self._next_due(target)
            if handle is None:
                break
            self._forget(handle)
            self._now = handle.due
            handle._fire()
        self._now = target

    def run_idle(self) -> int:
        """Fire every idle callback queued so far.  Returns how many ran."""
        ready = list(self._idle)
        self._idle.clear()
        fired = 0
        for handle in ready:
            # An earlier callback in this batch may have cancelled it.
            if handle.done:
                continue
            handle._fire()
            fired += 1
        return fired

    def next_due(self) -> Optional[float]:
        """Return the earliest pending due time, or ``None`` if nothing is queued."""
        dues = [h.due for h in self._timers + self._idle]
        return min(dues) if dues else None

    def pending(self) -> int:
        """Return the number of live (not fired, not cancelled) handles."""
        return len(self._timers) + len(self._idle)

    # -- private helpers -----------------------------------------------------

    def _make(self, callback: Callable[[], None], due: float, *, idle: bool) -> ManualHandle:
        self._seq += 1
        return ManualHandle(self, callback, due, self._seq, idle)

    def _next_due(self, target: float) -> Optional[ManualHandle]:
        candidates = [h for h in self._timers + self._idle if h.due <= target]
        if not candidates:
            return None
        return min(candidates, key=lambda h: (h.due, h.seq))

    def _forget(self, handle: ManualHandle) -> None:
        queue = self._idle if handle.idle else self._timers
        if handle in queue:
            queue.remove(handle)


# ---------------------------------------------------------------------------
# asyncio binding
# ---------------------------------------------------------------------------


class AsyncioScheduler:
    """Run controller callbacks on an :mod:`asyncio` event loop.

    asyncio has no idle queue, so controllers bound here take the
    ``idle_fallback_delay`` timer path for :data:`~delayrender.DEFER`.
    """

    supports_idle = False

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(delay_ms, 0) / 1000.0, callback)

    def call_when_idle(self, callback: Callable[[], None], timeout_ms: float) -> asyncio.Handle:
        """Run *callback* on the next loop iteration.

        *timeout_ms* is unused: asyncio has no idle queue, so the next
        iteration is the earliest and the latest the callback can run.
        """
        logger.debug("asyncio has no idle queue; running callback on next iteration")
        return self._loop.call_soon(callback)
