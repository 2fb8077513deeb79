"""
Response classifier.

Raw key events are normalised at the boundary into GateDown / GateUp /
CandidateKey, so nothing downstream inspects key names. Candidate keys are
debounced globally and then scored according to the sequencer's phase.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from psychopy import logging

from ryg import config
from ryg.sequencer import Phase, TrialSequencer

# classification labels
GATE = "gate"
IGNORED = "ignored"
DEBOUNCED = "debounced"
PREMATURE = "premature"
RESPONSE = "response"


@dataclass(frozen=True)
class GateDown:
    t_ms: float


@dataclass(frozen=True)
class GateUp:
    t_ms: float


@dataclass(frozen=True)
class CandidateKey:
    letter: str   # single character, upper-cased when alphabetic
    t_ms: float


InputEvent = Union[GateDown, GateUp, CandidateKey]


def normalize_key(
    key_name: str, is_down: bool, t_ms: float, gate_key: str = config.GATE_KEY
) -> InputEvent | None:
    """Map a raw (key name, down/up, time) triple to an InputEvent, or None."""
    if key_name == gate_key:
        return GateDown(t_ms) if is_down else GateUp(t_ms)
    if not is_down or len(key_name) != 1:
        return None
    return CandidateKey(key_name.upper(), t_ms)


class ResponseClassifier:
    def __init__(
        self,
        sequencer: TrialSequencer,
        debounce_ms: float = config.DEBOUNCE_MS,
        alphabet: tuple[str, ...] = config.CATEGORIES,
    ) -> None:
        self._sequencer = sequencer
        self.debounce_ms = debounce_ms
        self.alphabet = alphabet
        self.focused: bool = True
        self.last_accepted_ms: float | None = None

    def set_focus(self, focused: bool, now_ms: float) -> None:
        """Input is dropped while unfocused; the gate is released on blur."""
        if self.focused and not focused:
            self._sequencer.gate.release(now_ms)
        self.focused = focused

    def feed(self, key_name: str, is_down: bool, t_ms: float) -> str:
        event = normalize_key(key_name, is_down, t_ms)
        if event is None:
            return IGNORED
        return self.handle(event)

    def handle(self, event: InputEvent) -> str:
        if not self.focused:
            return IGNORED
        if isinstance(event, GateDown):
            self._sequencer.gate.press(event.t_ms)
            return GATE
        if isinstance(event, GateUp):
            self._sequencer.gate.release(event.t_ms)
            return GATE
        return self._classify(event)

    def _classify(self, event: CandidateKey) -> str:
        if self.last_accepted_ms is not None and event.t_ms - self.last_accepted_ms < self.debounce_ms:
            return DEBOUNCED
        self.last_accepted_ms = event.t_ms

        phase = self._sequencer.phase
        if phase is Phase.STIMULUS_ON and event.letter.isalpha():
            active = self._sequencer.active_trial
            if active is not None and event.t_ms < active.onset_ms:
                if event.letter in self.alphabet and self._sequencer.flag_premature(event.t_ms):
                    return PREMATURE
                return IGNORED
            if self._sequencer.respond(event.letter, event.t_ms) is not None:
                return RESPONSE
            # stamped after the response window: the trial closed as a miss
            phase = self._sequencer.phase
        if phase is Phase.GATED_WAIT:
            if event.letter in self.alphabet and self._sequencer.flag_premature():
                return PREMATURE
            return IGNORED
        logging.debug(f"Key {event.letter!r} ignored in phase {phase.value}")
        return IGNORED
