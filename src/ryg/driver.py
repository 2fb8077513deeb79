"""
Session driver: periodic countdown tick, deadline detection, and the single
hand-off of the finished trial log to the stats engine.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from psychopy import logging

from ryg import config
from ryg.clock import ClockSource
from ryg.scheduler import Scheduler, TimerHandle
from ryg.sequencer import Phase, TrialSequencer
from ryg.stats import Stats, compute_stats
from ryg.trial import Trial


@dataclass(frozen=True)
class Session:
    started_at: datetime
    ended_at: datetime
    trials: tuple[Trial, ...]
    stats: Stats


@dataclass(frozen=True)
class Snapshot:
    """What the presentation layer needs for one frame."""
    phase: Phase
    remaining_ms: float
    active_category: str | None
    trials: tuple[Trial, ...]
    session: Session | None


class SessionDriver:
    def __init__(
        self,
        sequencer: TrialSequencer,
        scheduler: Scheduler,
        clock: ClockSource,
        tick_interval_ms: float = config.TICK_INTERVAL_MS,
        on_finished: Callable[[Session], None] | None = None,
    ) -> None:
        self.sequencer = sequencer
        self.scheduler = scheduler
        self.clock = clock
        self.tick_interval_ms = tick_interval_ms
        self.on_finished = on_finished
        self.remaining_ms: float = float(sequencer.session_duration_ms)
        self.session: Session | None = None
        self._started_at: datetime | None = None
        self._tick: TimerHandle | None = None
        sequencer.on_finished = self._finalise

    def start(self, now_ms: float | None = None) -> None:
        now_ms = self.clock.now_ms() if now_ms is None else now_ms
        self._started_at = self.clock.wall_time()
        self.sequencer.start(now_ms)
        self.remaining_ms = self.sequencer.remaining_ms(now_ms)
        self._tick = self.scheduler.call_every(now_ms, self.tick_interval_ms, self.tick, label="countdown")

    def tick(self, now_ms: float) -> None:
        if self.sequencer.is_finished:
            return
        self.remaining_ms = self.sequencer.remaining_ms(now_ms)
        if self.remaining_ms <= 0:
            self.sequencer.end(now_ms)

    def pump(self, now_ms: float | None = None) -> int:
        """Fire every timer due by now. Called once per frame."""
        now_ms = self.clock.now_ms() if now_ms is None else now_ms
        return self.scheduler.poll(now_ms)

    def stop(self, now_ms: float | None = None) -> None:
        """Operator quit."""
        now_ms = self.clock.now_ms() if now_ms is None else now_ms
        self.sequencer.abort(now_ms)

    @property
    def finished(self) -> bool:
        return self.session is not None

    def snapshot(self, now_ms: float | None = None) -> Snapshot:
        now_ms = self.clock.now_ms() if now_ms is None else now_ms
        return Snapshot(
            phase=self.sequencer.phase,
            remaining_ms=self.sequencer.remaining_ms(now_ms),
            active_category=self.sequencer.active_category,
            trials=self.sequencer.trials,
            session=self.session,
        )

    def _finalise(self, now_ms: float) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None
        self.remaining_ms = 0.0
        trials = self.sequencer.trials
        stats = compute_stats(trials)
        self.session = Session(
            started_at=self._started_at or self.clock.wall_time(),
            ended_at=self.clock.wall_time(),
            trials=trials,
            stats=stats,
        )
        logging.exp(
            f"Session summary: {stats.correct_count}/{stats.total_trials} correct "
            f"({stats.accuracy}%)  mean RT={stats.mean_rt_ms} ms  median RT={stats.median_rt_ms} ms"
        )
        if self.on_finished is not None:
            self.on_finished(self.session)
