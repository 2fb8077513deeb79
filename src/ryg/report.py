"""
Terminal reporting with rich: live per-trial table, session summary, history.
"""
from __future__ import annotations

from typing import Any

import rich.box
from rich.table import Table

from ryg import config
from ryg.stats import Stats
from ryg.trial import OUTCOME_CORRECT, OUTCOME_MISS, Trial


def _ms(value: float | None) -> str:
    return "—" if value is None else f"{value:.0f} ms"


def trial_table() -> Table:
    table = Table(box=rich.box.SIMPLE_HEAD)
    table.add_column("#", justify="right")
    table.add_column("Light")
    table.add_column("Key")
    table.add_column("Result")
    table.add_column("RT", justify="right")
    table.add_column("Early")
    return table


def add_trial_row(table: Table, trial: Trial) -> None:
    if trial.outcome == OUTCOME_CORRECT:
        result_cell = "[green]correct[/green]"
        key_cell = trial.category
    elif trial.outcome == OUTCOME_MISS:
        result_cell = "[red]miss[/red]"
        key_cell = "—"
    else:
        result_cell = "[yellow]wrong[/yellow]"
        key_cell = trial.wrong_key or "—"
    table.add_row(
        str(trial.index),
        config.CATEGORY_NAMES.get(trial.category, trial.category),
        key_cell,
        result_cell,
        _ms(trial.reaction_time_ms),
        "yes" if trial.premature else "",
    )


def summary_table(stats: Stats) -> Table:
    table = Table(title="Session summary", box=rich.box.SIMPLE_HEAD)
    table.add_column("Light")
    table.add_column("Trials", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Acc", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("Median", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    for category, cs in stats.per_category.items():
        table.add_row(
            config.CATEGORY_NAMES.get(category, category),
            str(cs.attempts),
            str(cs.correct),
            f"{cs.accuracy}%",
            _ms(cs.mean_rt_ms),
            _ms(cs.median_rt_ms),
            _ms(cs.min_rt_ms),
            _ms(cs.max_rt_ms),
        )
    table.add_row(
        "[bold]all[/bold]",
        str(stats.total_trials),
        str(stats.correct_count),
        f"{stats.accuracy}%",
        _ms(stats.mean_rt_ms),
        _ms(stats.median_rt_ms),
        "",
        "",
    )
    table.caption = (
        f"premature={stats.premature_count}  wrong key={stats.wrong_key_count}  "
        f"missed={stats.miss_count}"
    )
    return table


def histogram_lines(stats: Stats, width: int = 30) -> list[str]:
    """Text bars for the correct-response latency histogram."""
    hist = stats.histogram
    if hist is None:
        return []
    lines = []
    for i, count in enumerate(hist.counts):
        lo, hi = hist.edges_ms[i], hist.edges_ms[i + 1]
        bar = "█" * round(width * count / hist.max_count)
        lines.append(f"{lo:>5.0f}–{hi:<5.0f} ms {bar} {count}")
    return lines


def history_table(history: list[dict[str, Any]]) -> Table:
    table = Table(title="Recent sessions", box=rich.box.SIMPLE_HEAD)
    table.add_column("When")
    table.add_column("Trials", justify="right")
    table.add_column("Acc", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("Median", justify="right")
    for entry in history:
        table.add_row(
            str(entry.get("timestamp", "?")),
            str(entry.get("total_trials", "?")),
            f"{entry.get('accuracy', 0)}%",
            _ms(entry.get("mean_rt_ms")),
            _ms(entry.get("median_rt_ms")),
        )
    return table
