"""Tests for the stats engine: reference values, edge cases and invariants."""
from __future__ import annotations

import copy
import random

import pytest

from ryg import config
from ryg.stats import compute_stats, histogram, mean_ms, median_ms, percent
from ryg.trial import Trial


def _correct(category: str, rt: float, index: int = 1, premature: bool = False) -> Trial:
    return Trial(
        index=index, category=category, onset_ms=0.0, premature=premature,
        responded_at_ms=rt, reaction_time_ms=rt, correct=True,
    )


def _wrong(category: str, key: str, rt: float = 400.0, index: int = 1, premature: bool = False) -> Trial:
    return Trial(
        index=index, category=category, onset_ms=0.0, premature=premature,
        responded_at_ms=rt, reaction_time_ms=rt, wrong_key=key,
    )


def _miss(category: str, index: int = 1, premature: bool = False) -> Trial:
    return Trial(index=index, category=category, onset_ms=0.0, premature=premature, missed=True)


def _random_log(rng: random.Random, n: int) -> list[Trial]:
    trials = []
    for i in range(1, n + 1):
        category = rng.choice(config.CATEGORIES)
        premature = rng.random() < 0.2
        kind = rng.choice(["correct", "correct", "wrong", "miss"])
        if kind == "correct":
            trials.append(_correct(category, rng.randint(120, config.MAX_RESPONSE_MS), i, premature))
        elif kind == "wrong":
            key = rng.choice([c for c in config.CATEGORIES if c != category])
            trials.append(_wrong(category, key, rng.randint(120, 3000), i, premature))
        else:
            trials.append(_miss(category, i, premature))
    return trials


# ─────────────────────────────────────────────────────────────────────────────
# Reference values
# ─────────────────────────────────────────────────────────────────────────────


class TestComputeStats:
    def _log(self) -> list[Trial]:
        return [
            _correct("Y", 310, 1),
            _correct("R", 250, 2),
            _wrong("G", "R", 380, 3),
            _miss("R", 4),
            _correct("Y", 400, 5, premature=True),
            _correct("G", 200, 6),
        ]

    def test_counts(self) -> None:
        stats = compute_stats(self._log())
        assert stats.total_trials == 6
        assert stats.completed_trials == 6
        assert stats.correct_count == 4
        assert stats.wrong_key_count == 1
        assert stats.miss_count == 1
        assert stats.premature_count == 1
        assert stats.accuracy == 66.7

    def test_overall_latency(self) -> None:
        stats = compute_stats(self._log())
        assert stats.samples_ms == (310, 250, 400, 200)
        assert stats.mean_rt_ms == 290.0
        assert stats.median_rt_ms == 280.0

    def test_per_category(self) -> None:
        per = compute_stats(self._log()).per_category
        assert list(per) == list(config.CATEGORIES)

        assert per["R"].attempts == 2
        assert per["R"].correct == 1
        assert per["R"].accuracy == 50.0
        assert per["R"].mean_rt_ms == 250.0

        assert per["Y"].attempts == 2
        assert per["Y"].accuracy == 100.0
        assert per["Y"].mean_rt_ms == 355.0
        assert per["Y"].median_rt_ms == 355.0
        assert per["Y"].min_rt_ms == 310
        assert per["Y"].max_rt_ms == 400
        assert per["Y"].samples_ms == (310, 400)

        assert per["G"].correct == 1
        assert per["G"].samples_ms == (200,)

    def test_empty_log(self) -> None:
        stats = compute_stats([])
        assert stats.total_trials == 0
        assert stats.accuracy == 0.0
        assert stats.mean_rt_ms is None
        assert stats.median_rt_ms is None
        assert stats.samples_ms == ()
        assert stats.histogram.counts == (0,) * config.HISTOGRAM_BINS
        assert stats.histogram.max_count == 1
        for cs in stats.per_category.values():
            assert cs.attempts == 0
            assert cs.accuracy == 0.0
            assert cs.mean_rt_ms is None
            assert cs.min_rt_ms is None

    def test_no_correct_responses_gives_none_not_zero(self) -> None:
        stats = compute_stats([_miss("R"), _wrong("Y", "G")])
        assert stats.mean_rt_ms is None
        assert stats.median_rt_ms is None
        assert stats.accuracy == 0.0
        assert stats.per_category["Y"].mean_rt_ms is None

    def test_premature_counted_independently(self) -> None:
        stats = compute_stats([
            _miss("R", premature=True),
            _wrong("Y", "R", premature=True),
            _correct("G", 300, premature=True),
        ])
        assert stats.premature_count == 3
        assert stats.miss_count == 1
        assert stats.wrong_key_count == 1
        assert stats.correct_count == 1

    def test_unresolved_trial_counts_as_miss(self) -> None:
        stats = compute_stats([Trial(index=1, category="R", onset_ms=0.0)])
        assert stats.miss_count == 1
        assert stats.total_trials == 1
        assert stats.correct_count == 0

    def test_wrong_latency_not_collected(self) -> None:
        stats = compute_stats([_wrong("R", "G", 150), _correct("R", 350)])
        assert stats.samples_ms == (350,)
        assert stats.per_category["R"].min_rt_ms == 350

    def test_input_not_mutated(self) -> None:
        log = self._log()
        before = copy.deepcopy(log)
        compute_stats(log)
        assert log == before

    def test_idempotent(self) -> None:
        log = self._log()
        assert compute_stats(log) == compute_stats(log)

    def test_accepts_a_generator(self) -> None:
        stats = compute_stats(t for t in self._log())
        assert stats.total_trials == 6


# ─────────────────────────────────────────────────────────────────────────────
# Mean / median / percent rounding
# ─────────────────────────────────────────────────────────────────────────────


class TestRounding:
    def test_mean_rounds_to_one_decimal(self) -> None:
        assert mean_ms([100, 101, 101]) == 100.7

    def test_median_odd(self) -> None:
        assert median_ms([300, 100, 200]) == 200.0

    def test_median_even_averages_middle_values(self) -> None:
        assert median_ms([4, 1, 3, 2]) == 2.5
        assert median_ms([250, 311]) == 280.5

    def test_empty_samples(self) -> None:
        assert mean_ms([]) is None
        assert median_ms([]) is None

    @pytest.mark.parametrize(
        "part,whole,expected",
        [(0, 0, 0.0), (1, 3, 33.3), (2, 3, 66.7), (3, 3, 100.0), (1, 8, 12.5)],
    )
    def test_percent(self, part: int, whole: int, expected: float) -> None:
        assert percent(part, whole) == expected


# ─────────────────────────────────────────────────────────────────────────────
# Histogram
# ─────────────────────────────────────────────────────────────────────────────


class TestHistogram:
    def test_edges_span_response_window(self) -> None:
        hist = histogram([])
        assert len(hist.edges_ms) == config.HISTOGRAM_BINS + 1
        assert hist.edges_ms[0] == 0.0
        assert hist.edges_ms[-1] == float(config.MAX_RESPONSE_MS)
        assert hist.edges_ms[1] == config.MAX_RESPONSE_MS / config.HISTOGRAM_BINS

    @pytest.mark.parametrize(
        "rt,expected_bin",
        [(0, 0), (499.9, 0), (500, 1), (2750, 5), (4999.99, 9), (5000, 9)],
    )
    def test_bin_assignment(self, rt: float, expected_bin: int) -> None:
        counts = histogram([rt]).counts
        assert counts[expected_bin] == 1
        assert sum(counts) == 1

    def test_out_of_range_clamped(self) -> None:
        counts = histogram([-5, 7000]).counts
        assert counts[0] == 1
        assert counts[-1] == 1

    def test_max_count(self) -> None:
        hist = histogram([100, 200, 300, 800])
        assert hist.counts[0] == 3
        assert hist.max_count == 3

    def test_custom_bin_count(self) -> None:
        hist = histogram([100, 4900], n_bins=2)
        assert hist.counts == (1, 1)
        assert hist.edges_ms == (0.0, 2500.0, 5000.0)

    def test_invalid_bin_count(self) -> None:
        with pytest.raises(ValueError):
            histogram([100], n_bins=0)


# ─────────────────────────────────────────────────────────────────────────────
# Invariants over random trial logs
# ─────────────────────────────────────────────────────────────────────────────


class TestInvariants:
    @pytest.mark.parametrize("seed", range(25))
    def test_outcomes_are_mutually_exclusive(self, seed: int) -> None:
        log = _random_log(random.Random(seed), 40)
        stats = compute_stats(log)
        assert stats.correct_count + stats.wrong_key_count + stats.miss_count == stats.total_trials
        assert stats.total_trials == stats.completed_trials == len(log)
        assert sum(cs.attempts for cs in stats.per_category.values()) == stats.total_trials

    @pytest.mark.parametrize("seed", range(25))
    def test_central_values_within_range(self, seed: int) -> None:
        stats = compute_stats(_random_log(random.Random(seed), 40))
        for cs in stats.per_category.values():
            if not cs.samples_ms:
                continue
            assert cs.min_rt_ms <= cs.median_rt_ms <= cs.max_rt_ms
            assert cs.min_rt_ms <= cs.mean_rt_ms <= cs.max_rt_ms
        if stats.samples_ms:
            lo, hi = min(stats.samples_ms), max(stats.samples_ms)
            assert lo <= stats.median_rt_ms <= hi
            assert lo <= stats.mean_rt_ms <= hi

    @pytest.mark.parametrize("seed", range(25))
    def test_histogram_accounts_for_every_sample(self, seed: int) -> None:
        stats = compute_stats(_random_log(random.Random(seed), 40))
        hist = stats.histogram
        assert len(hist.counts) == config.HISTOGRAM_BINS
        assert sum(hist.counts) == len(stats.samples_ms)
        assert hist.max_count == max(1, max(hist.counts))
