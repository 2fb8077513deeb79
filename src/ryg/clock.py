"""
Clock source abstraction.

ClockSource – protocol implemented by:
  PsychopyClock  – PsychoPy monotonic clock, used by the task window
  ManualClock    – externally advanced clock for headless runs and tests

Both report monotonic time in milliseconds since construction and a wall-clock
timestamp for record-keeping.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol


class ClockSource(Protocol):
    """Monotonic milliseconds plus wall-clock time."""

    def now_ms(self) -> float:
        """Return monotonic time in milliseconds."""
        ...

    def wall_time(self) -> datetime:
        """Return the current wall-clock time."""
        ...


class PsychopyClock:
    """PsychoPy core.Clock backend (seconds internally, reported in ms)."""

    def __init__(self) -> None:
        from psychopy import core
        self._clock = core.Clock()

    @property
    def core_clock(self):
        """Underlying psychopy core.Clock, for timeStamped event queries."""
        return self._clock

    def now_ms(self) -> float:
        return self._clock.getTime() * 1000.0

    def wall_time(self) -> datetime:
        return datetime.now()

    def reset(self) -> None:
        self._clock.reset()


class ManualClock:
    """Clock that only moves when advance() or set() is called.

    wall_time() is the construction wall time offset by the monotonic reading,
    so record timestamps stay consistent with the simulated timeline.
    """

    def __init__(self, start_ms: float = 0.0, wall_origin: datetime | None = None) -> None:
        self._now = float(start_ms)
        self._origin = wall_origin or datetime.now()

    def now_ms(self) -> float:
        return self._now

    def wall_time(self) -> datetime:
        return self._origin + timedelta(milliseconds=self._now)

    def advance(self, ms: float) -> float:
        if ms < 0:
            raise ValueError(f"Clock cannot move backwards (advance by {ms} ms)")
        self._now += ms
        return self._now

    def set(self, now_ms: float) -> float:
        if now_ms < self._now:
            raise ValueError(f"Clock cannot move backwards ({now_ms} < {self._now})")
        self._now = float(now_ms)
        return self._now

