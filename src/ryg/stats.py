"""
Stats engine: pure reduction of a trial log into summary metrics.

compute_stats() never mutates its input and keeps no state between calls, so
calling it twice on the same log yields equal results. Means and medians are
taken over correct responses only and rounded to one decimal; they are None
(never 0 or NaN) when there is no correct response to average.
"""
from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from ryg import config
from ryg.trial import Trial


@dataclass(frozen=True)
class Histogram:
    edges_ms: tuple[float, ...]   # n_bins + 1 edges
    counts: tuple[int, ...]
    max_count: int                # >= 1, for normalising bar heights


@dataclass(frozen=True)
class CategoryStats:
    attempts: int = 0
    correct: int = 0
    accuracy: float = 0.0
    mean_rt_ms: float | None = None
    median_rt_ms: float | None = None
    min_rt_ms: float | None = None
    max_rt_ms: float | None = None
    samples_ms: tuple[float, ...] = ()


@dataclass(frozen=True)
class Stats:
    total_trials: int
    completed_trials: int
    correct_count: int
    accuracy: float
    premature_count: int
    wrong_key_count: int
    miss_count: int
    mean_rt_ms: float | None
    median_rt_ms: float | None
    samples_ms: tuple[float, ...]
    per_category: dict[str, CategoryStats] = field(default_factory=dict)
    histogram: Histogram | None = None


def percent(part: int, whole: int) -> float:
    """100 * part / whole rounded to one decimal; 0.0 when whole is 0."""
    if whole == 0:
        return 0.0
    return round(100 * part / whole, 1)


def mean_ms(samples: Sequence[float]) -> float | None:
    if not samples:
        return None
    total = 0.0
    for s in samples:
        total += s
    return round(total / len(samples), 1)


def median_ms(samples: Sequence[float]) -> float | None:
    if not samples:
        return None
    return round(float(statistics.median(samples)), 1)


def histogram(
    samples: Sequence[float],
    n_bins: int = config.HISTOGRAM_BINS,
    upper_ms: float = config.MAX_RESPONSE_MS,
) -> Histogram:
    """Fixed equal-width bins over [0, upper_ms]; out-of-range samples clamp to the end bins."""
    if n_bins < 1:
        raise ValueError(f"n_bins must be >= 1, got {n_bins}")
    edges = np.linspace(0.0, float(upper_ms), n_bins + 1)
    width = float(upper_ms) / n_bins
    if samples:
        idx = np.floor(np.asarray(samples, dtype=float) / width).astype(int)
        idx = np.clip(idx, 0, n_bins - 1)
        counts = np.bincount(idx, minlength=n_bins)
    else:
        counts = np.zeros(n_bins, dtype=int)
    return Histogram(
        edges_ms=tuple(float(e) for e in edges),
        counts=tuple(int(c) for c in counts),
        max_count=max(1, int(counts.max())),
    )


def _category_stats(attempts: int, correct: int, samples: list[float]) -> CategoryStats:
    return CategoryStats(
        attempts=attempts,
        correct=correct,
        accuracy=percent(correct, attempts),
        mean_rt_ms=mean_ms(samples),
        median_rt_ms=median_ms(samples),
        min_rt_ms=round(min(samples), 1) if samples else None,
        max_rt_ms=round(max(samples), 1) if samples else None,
        samples_ms=tuple(samples),
    )


def compute_stats(
    trials: Iterable[Trial],
    categories: Sequence[str] = config.CATEGORIES,
    n_bins: int = config.HISTOGRAM_BINS,
) -> Stats:
    """Reduce a finalised trial log to a Stats snapshot."""
    attempts: dict[str, int] = {c: 0 for c in categories}
    correct: dict[str, int] = {c: 0 for c in categories}
    by_category: dict[str, list[float]] = {c: [] for c in categories}
    samples: list[float] = []
    total = premature = wrong = missed = 0

    for trial in trials:
        total += 1
        cat = trial.category
        attempts[cat] = attempts.get(cat, 0) + 1
        correct.setdefault(cat, 0)
        by_category.setdefault(cat, [])
        if trial.premature:
            premature += 1
        if trial.missed:
            missed += 1
            continue
        if trial.responded_at_ms is not None:
            if trial.correct:
                correct[cat] += 1
                by_category[cat].append(trial.reaction_time_ms)
                samples.append(trial.reaction_time_ms)
            else:
                wrong += 1
        else:
            missed += 1

    total_correct = sum(correct.values())
    return Stats(
        total_trials=total,
        completed_trials=total,
        correct_count=total_correct,
        accuracy=percent(total_correct, total),
        premature_count=premature,
        wrong_key_count=wrong,
        miss_count=missed,
        mean_rt_ms=mean_ms(samples),
        median_rt_ms=median_ms(samples),
        samples_ms=tuple(samples),
        per_category={c: _category_stats(attempts[c], correct[c], by_category[c]) for c in attempts},
        histogram=histogram(samples, n_bins),
    )
