"""
Rolling history of the last HISTORY_DEPTH session summaries (most recent first).
An absent, unreadable or malformed store reads as an empty history.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TYPE_CHECKING

from ryg import config

if TYPE_CHECKING:
    from ryg.driver import Session


def session_summary(session: "Session") -> dict[str, Any]:
    stats = session.stats
    return {
        "timestamp": session.started_at.isoformat(timespec="seconds"),
        "total_trials": stats.total_trials,
        "correct": stats.correct_count,
        "accuracy": stats.accuracy,
        "premature": stats.premature_count,
        "wrong_key": stats.wrong_key_count,
        "missed": stats.miss_count,
        "mean_rt_ms": stats.mean_rt_ms,
        "median_rt_ms": stats.median_rt_ms,
    }


_NUMERIC_FIELDS = (
    "total_trials", "correct", "accuracy", "premature", "wrong_key", "missed",
    "mean_rt_ms", "median_rt_ms",
)


def _is_valid_entry(entry: object) -> bool:
    if not isinstance(entry, dict):
        return False
    if not isinstance(entry.get("timestamp", ""), str):
        return False
    for key in _NUMERIC_FIELDS:
        value = entry.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
    return True


def load_history(path: Path) -> list[dict[str, Any]]:
    """Stored summaries, most recent first. Malformed entries are dropped."""
    if not path.exists():
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return []
    if not isinstance(payload, list):
        return []
    return [entry for entry in payload if _is_valid_entry(entry)][: config.HISTORY_DEPTH]


def save_history(path: Path, history: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(history[: config.HISTORY_DEPTH], indent=2),
        encoding="utf-8",
    )


def record_session(path: Path, summary: dict[str, Any]) -> list[dict[str, Any]]:
    """Prepend summary to the stored history, persist, and return the new list."""
    history = [summary] + load_history(path)
    history = history[: config.HISTORY_DEPTH]
    save_history(path, history)
    return history
