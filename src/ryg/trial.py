"""
Trial record and stimulus selection.
No timers and no input handling here; the sequencer owns those.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Sequence

from ryg import config

OUTCOME_CORRECT = "correct"
OUTCOME_WRONG = "wrong"
OUTCOME_MISS = "miss"


@dataclass(frozen=True)
class Trial:
    index: int
    category: str
    onset_ms: float
    premature: bool = False
    responded_at_ms: float | None = None
    reaction_time_ms: float | None = None
    correct: bool = False
    wrong_key: str | None = None
    missed: bool = False

    @property
    def resolved(self) -> bool:
        return self.missed or self.responded_at_ms is not None

    @property
    def outcome(self) -> str | None:
        """"correct", "wrong" or "miss"; None while the trial is unresolved."""
        if self.correct:
            return OUTCOME_CORRECT
        if self.wrong_key is not None:
            return OUTCOME_WRONG
        if self.missed:
            return OUTCOME_MISS
        return None


def resolve_response(trial: Trial, key: str, t_ms: float) -> Trial:
    """Return the finalised copy of trial answered with key at t_ms."""
    key = key.upper()
    correct = key == trial.category
    return replace(
        trial,
        responded_at_ms=t_ms,
        reaction_time_ms=t_ms - trial.onset_ms,
        correct=correct,
        wrong_key=None if correct else key,
        missed=False,
    )


def resolve_miss(trial: Trial) -> Trial:
    """Return the finalised copy of trial with no accepted response."""
    return replace(
        trial,
        responded_at_ms=None,
        reaction_time_ms=None,
        correct=False,
        wrong_key=None,
        missed=True,
    )


def choose_category(
    previous: str | None,
    rng: random.Random | None = None,
    categories: Sequence[str] = config.CATEGORIES,
) -> str:
    """Uniform choice over categories, never repeating previous."""
    pool = [c for c in categories if c != previous]
    if not pool:
        raise ValueError(f"No category left to choose from {list(categories)} excluding {previous!r}")
    return (rng or random).choice(pool)
