"""
Trial sequencer: the session phase state machine.

    idle -> armed -> gated_wait <-> stimulus_on
                         \\             /
                          +-> finished <-+

The sequencer owns the active trial, the trial log and every timer it
schedules (gate reveal via the GateController, response deadline, session
end). Every timer callback re-checks phase and trial identity before acting,
so a callback that outlived its trial is a silent no-op.
"""
from __future__ import annotations

import random
from dataclasses import replace
from enum import Enum
from typing import Callable

from psychopy import logging

from ryg import config
from ryg.gate import GateController
from ryg.scheduler import Scheduler, TimerHandle
from ryg.trial import Trial, choose_category, resolve_miss, resolve_response


class Phase(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    GATED_WAIT = "gated_wait"
    STIMULUS_ON = "stimulus_on"
    FINISHED = "finished"


class TrialSequencer:
    def __init__(
        self,
        scheduler: Scheduler,
        rng: random.Random | None = None,
        session_duration_ms: float = config.SESSION_DURATION_MS,
        max_response_ms: float = config.MAX_RESPONSE_MS,
        hold_threshold_ms: float = config.HOLD_THRESHOLD_MS,
        end_grace_ms: float = config.END_GRACE_MS,
        on_trial: Callable[[Trial], None] | None = None,
        on_finished: Callable[[float], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._rng = rng or random.Random()
        self.session_duration_ms = session_duration_ms
        self.max_response_ms = max_response_ms
        self.end_grace_ms = end_grace_ms
        self.on_trial = on_trial
        self.on_finished = on_finished

        self.gate = GateController(scheduler, self.reveal, hold_threshold_ms)

        self.phase: Phase = Phase.IDLE
        self.started_ms: float | None = None
        self.deadline_ms: float | None = None
        self.finished_ms: float | None = None
        self.pending_premature: bool = False

        self._trials: list[Trial] = []
        self._active: Trial | None = None
        self._previous_category: str | None = None
        self._end_requested: bool = False

        self._response_timer: TimerHandle | None = None
        self._session_timer: TimerHandle | None = None
        self._deferred_end_timer: TimerHandle | None = None

    # ── read-only views ───────────────────────────────────────────────────────

    @property
    def trials(self) -> tuple[Trial, ...]:
        return tuple(self._trials)

    @property
    def active_trial(self) -> Trial | None:
        return self._active

    @property
    def active_category(self) -> str | None:
        return self._active.category if self._active is not None else None

    @property
    def is_finished(self) -> bool:
        return self.phase is Phase.FINISHED

    def remaining_ms(self, now_ms: float) -> float:
        if self.deadline_ms is None:
            return float(self.session_duration_ms)
        if self.phase is Phase.FINISHED:
            return 0.0
        return max(0.0, self.deadline_ms - now_ms)

    # ── transitions ───────────────────────────────────────────────────────────

    def start(self, now_ms: float) -> None:
        """idle -> armed -> gated_wait; schedules the session end."""
        if self.phase is not Phase.IDLE:
            raise RuntimeError(f"Session already started (phase={self.phase.value})")
        self.phase = Phase.ARMED
        self._trials = []
        self._active = None
        self._previous_category = None
        self.pending_premature = False
        self.started_ms = now_ms
        self.deadline_ms = now_ms + self.session_duration_ms
        self._session_timer = self._scheduler.call_at(self.deadline_ms, self.end, label="session-end")
        logging.exp(f"Session started: duration={int(self.session_duration_ms)} ms")
        self._enter_gated_wait(now_ms)

    def reveal(self, now_ms: float) -> Trial | None:
        """Gate satisfied: show the next light unless the session deadline passed."""
        if self.phase is not Phase.GATED_WAIT:
            return None
        if self.deadline_ms is not None and now_ms >= self.deadline_ms:
            return None
        self.gate.disarm()
        category = choose_category(self._previous_category, self._rng)
        trial = Trial(
            index=len(self._trials) + 1,
            category=category,
            onset_ms=now_ms,
            premature=self.pending_premature,
        )
        self.pending_premature = False
        self._previous_category = category
        self._active = trial
        self.phase = Phase.STIMULUS_ON
        self._arm_response_deadline(trial)
        logging.exp(f"Trial {trial.index}: reveal {category}  premature={trial.premature}")
        return trial

    def flag_premature(self, t_ms: float | None = None) -> bool:
        """Mark the next trial as preceded by an early press. Returns True if newly set.

        A key stamped before the active light's onset was pressed during the
        wait that preceded it, even if it is delivered after the reveal; it
        flags the light now showing.
        """
        active = self._active
        if self.phase is Phase.STIMULUS_ON and active is not None:
            if t_ms is None or t_ms >= active.onset_ms or active.premature:
                return False
            self._active = replace(active, premature=True)
            self._arm_response_deadline(self._active)
            logging.exp(f"Trial {active.index}: premature press before onset")
            return True
        if self.phase is not Phase.GATED_WAIT or self.pending_premature:
            return False
        self.pending_premature = True
        logging.exp("Premature press during gated wait")
        return True

    def respond(self, key: str, now_ms: float) -> Trial | None:
        """First accepted key inside the response window finalises the active trial.

        Returns None for a key stamped before onset. A key stamped at or after
        the window closes resolves the trial as missed and also returns None.
        """
        active = self._active
        if self.phase is not Phase.STIMULUS_ON or active is None:
            return None
        if now_ms < active.onset_ms:
            return None
        closes_ms = active.onset_ms + self.max_response_ms
        if now_ms >= closes_ms:
            self._on_response_deadline(active, closes_ms)
            return None
        trial = resolve_response(active, key, now_ms)
        logging.exp(
            f"Trial {trial.index}: key={key.upper()}  target={trial.category}  "
            f"{'correct' if trial.correct else 'wrong'}  RT={trial.reaction_time_ms:.0f} ms"
        )
        self._finalise(trial, now_ms)
        return trial

    def end(self, now_ms: float) -> None:
        """Session deadline reached. An in-flight trial is allowed to resolve first."""
        if self.phase is Phase.FINISHED or self._end_requested:
            return
        self._end_requested = True
        if self.phase is Phase.STIMULUS_ON:
            self._deferred_end_timer = self._scheduler.call_later(
                now_ms, self.max_response_ms + self.end_grace_ms, self._finish, label="deferred-end"
            )
            logging.exp("Session deadline reached with a light on; waiting for the trial to resolve")
            return
        self._finish(now_ms)

    def abort(self, now_ms: float) -> None:
        """Operator quit: finish now, closing an in-flight trial as missed."""
        if self.phase is Phase.FINISHED:
            return
        logging.exp("Session aborted")
        self._finish(now_ms)

    # ── internals ─────────────────────────────────────────────────────────────

    def _enter_gated_wait(self, now_ms: float) -> None:
        self.phase = Phase.GATED_WAIT
        self.gate.arm(now_ms)

    def _arm_response_deadline(self, trial: Trial) -> None:
        if self._response_timer is not None:
            self._response_timer.cancel()
        self._response_timer = self._scheduler.call_at(
            trial.onset_ms + self.max_response_ms,
            lambda t: self._on_response_deadline(trial, t),
            label="response-deadline",
        )

    def _on_response_deadline(self, trial: Trial, now_ms: float) -> None:
        if self.phase is not Phase.STIMULUS_ON or self._active is not trial:
            return
        missed = resolve_miss(trial)
        logging.exp(f"Trial {missed.index}: no response to {missed.category} (miss)")
        self._finalise(missed, now_ms)

    def _finalise(self, trial: Trial, now_ms: float) -> None:
        if self._response_timer is not None:
            self._response_timer.cancel()
            self._response_timer = None
        self._active = None
        self._trials.append(trial)
        if self.on_trial is not None:
            self.on_trial(trial)
        if self._end_requested or (self.deadline_ms is not None and now_ms >= self.deadline_ms):
            self._finish(now_ms)
        else:
            self._enter_gated_wait(now_ms)

    def _finish(self, now_ms: float) -> None:
        if self.phase is Phase.FINISHED:
            return
        self.phase = Phase.FINISHED
        self.finished_ms = now_ms
        self.gate.disarm()
        for handle in (self._response_timer, self._session_timer, self._deferred_end_timer):
            if handle is not None:
                handle.cancel()
        self._response_timer = self._session_timer = self._deferred_end_timer = None
        if self._active is not None:
            # superseded: the light was shown but never answered
            superseded = resolve_miss(self._active)
            self._active = None
            self._trials.append(superseded)
            if self.on_trial is not None:
                self.on_trial(superseded)
        logging.exp(f"Session finished: {len(self._trials)} trials")
        if self.on_finished is not None:
            self.on_finished(now_ms)
