"""
Cooperative timers for the frame loop.

Nothing runs in the background: callbacks fire only from Scheduler.poll(),
which the frame loop calls once per frame with the current monotonic time.
Every scheduled callback is represented by a TimerHandle that can be cancelled
at any point before it fires.
"""
from __future__ import annotations

import heapq
import itertools
from typing import Callable

Callback = Callable[[float], None]


class TimerHandle:
    """A scheduled callback. Cancelling is idempotent."""

    def __init__(self, due_ms: float, callback: Callback, interval_ms: float | None, label: str) -> None:
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self.label = label
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def active(self) -> bool:
        """True while the callback may still fire."""
        return not self._cancelled and not self._fired

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else ("fired" if self._fired else "pending")
        return f"TimerHandle({self.label!r}, due={self.due_ms}, {state})"


class Scheduler:
    """Min-heap of TimerHandles ordered by due time, then scheduling order."""

    def __init__(self) -> None:
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def call_at(self, due_ms: float, callback: Callback, label: str = "") -> TimerHandle:
        """Fire callback(now_ms) on the first poll at or after due_ms."""
        handle = TimerHandle(due_ms, callback, None, label)
        heapq.heappush(self._heap, (due_ms, next(self._seq), handle))
        return handle

    def call_later(self, now_ms: float, delay_ms: float, callback: Callback, label: str = "") -> TimerHandle:
        return self.call_at(now_ms + max(0.0, delay_ms), callback, label)

    def call_every(self, now_ms: float, interval_ms: float, callback: Callback, label: str = "") -> TimerHandle:
        """Fire callback every interval_ms until the handle is cancelled."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        handle = TimerHandle(now_ms + interval_ms, callback, interval_ms, label)
        heapq.heappush(self._heap, (handle.due_ms, next(self._seq), handle))
        return handle

    def poll(self, now_ms: float) -> int:
        """Fire every live handle due at or before now_ms. Returns the number fired.

        Callbacks may schedule or cancel other handles; a handle scheduled
        during poll with a due time <= now_ms fires within the same poll.
        A repeating handle fires at most once per poll.
        """
        fired = 0
        rearm: list[TimerHandle] = []
        while self._heap and self._heap[0][0] <= now_ms:
            _, _, handle = heapq.heappop(self._heap)
            if not handle.active:
                continue
            if handle.interval_ms is None:
                handle._fired = True
            else:
                rearm.append(handle)
            handle._callback(now_ms)
            fired += 1
        for handle in rearm:
            if handle.active:
                handle.due_ms = max(handle.due_ms + handle.interval_ms, now_ms + 1e-9)
                heapq.heappush(self._heap, (handle.due_ms, next(self._seq), handle))
        return fired

    def pending(self) -> list[TimerHandle]:
        """Live handles in due order."""
        return [h for _, _, h in sorted(self._heap) if h.active]

    def cancel_all(self) -> None:
        for _, _, handle in self._heap:
            handle.cancel()
        self._heap.clear()
