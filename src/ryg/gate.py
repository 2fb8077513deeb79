"""
Gate controller: the reveal key must be held continuously for
HOLD_THRESHOLD_MS before the next light is shown.
"""
from __future__ import annotations

from typing import Callable

from ryg import config
from ryg.scheduler import Scheduler, TimerHandle


class GateController:
    """
    Tracks the gate key and owns at most one pending reveal timer.

    The controller only schedules while armed (the sequencer is waiting for a
    hold). Releasing before the threshold cancels the pending reveal; the
    participant has to press and hold again.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_satisfied: Callable[[float], None],
        hold_threshold_ms: float = config.HOLD_THRESHOLD_MS,
    ) -> None:
        self._scheduler = scheduler
        self._on_satisfied = on_satisfied
        self.hold_threshold_ms = hold_threshold_ms
        self.is_down: bool = False
        self.down_at_ms: float | None = None
        self.armed: bool = False
        self._pending: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.active

    def press(self, now_ms: float) -> None:
        if self.is_down:
            # auto-repeat, not a new down-transition
            return
        self.is_down = True
        self.down_at_ms = now_ms
        if self.armed:
            self._schedule(now_ms, self.hold_threshold_ms)

    def release(self, now_ms: float) -> None:
        self.is_down = False
        self.down_at_ms = None
        self._cancel()

    def arm(self, now_ms: float) -> None:
        """Start accepting holds. A key already down counts from its press time."""
        self.armed = True
        if self.is_down and self.down_at_ms is not None:
            held = now_ms - self.down_at_ms
            self._schedule(now_ms, self.hold_threshold_ms - held)

    def disarm(self) -> None:
        self.armed = False
        self._cancel()

    def _schedule(self, now_ms: float, delay_ms: float) -> None:
        self._cancel()
        self._pending = self._scheduler.call_later(now_ms, delay_ms, self._fire, label="gate-reveal")

    def _cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, now_ms: float) -> None:
        self._pending = None
        if not (self.armed and self.is_down):
            return
        self._on_satisfied(now_ms)
