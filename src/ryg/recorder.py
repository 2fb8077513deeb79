"""
Data recording: TrialCsvWriter, write_manifest, load_trials.
"""
from __future__ import annotations

import csv
import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from ryg.trial import Trial

if TYPE_CHECKING:
    from ryg.driver import Session
    from ryg.session import SessionInfo


TRIAL_COLUMNS: list[str] = [
    "index", "category", "onset_ms", "premature", "responded_at_ms",
    "reaction_time_ms", "correct", "wrong_key", "missed",
]


class TrialCsvWriter:
    """Trial log CSV. The header is written on open and every row is flushed on append."""

    def __init__(self, path: Path, columns: list[str] = TRIAL_COLUMNS) -> None:
        self.path = path
        self.columns = list(columns)
        self.rows_written = 0
        self._file = path.open("w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        self._writer.writerow(self.columns)

    def append(self, trial: Trial) -> None:
        self._writer.writerow([_cell(getattr(trial, name)) for name in self.columns])
        self._file.flush()
        self.rows_written += 1

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "TrialCsvWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _cell(value: object) -> object:
    """Blank for absent values, 0/1 for flags."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return round(value, 3)
    return value


def write_manifest(
    run_dir: Path,
    session_info: "SessionInfo",
    session_time: datetime,
    frame_rate: float,
    session: "Session | None" = None,
) -> None:
    from ryg import __version__
    from ryg.config import (
        CATEGORIES,
        DEBOUNCE_MS,
        HISTOGRAM_BINS,
        HOLD_THRESHOLD_MS,
        MAX_RESPONSE_MS,
        SESSION_DURATION_MS,
    )

    manifest = {
        "ryg_task_version": __version__,
        "participant_id": session_info.participant_id,
        "session_time": session_time.isoformat(timespec="seconds"),
        "frame_rate_hz": round(frame_rate, 3),
        "task_params": {
            "session_duration_ms": SESSION_DURATION_MS,
            "hold_threshold_ms": HOLD_THRESHOLD_MS,
            "max_response_ms": MAX_RESPONSE_MS,
            "debounce_ms": DEBOUNCE_MS,
            "histogram_bins": HISTOGRAM_BINS,
            "categories": list(CATEGORIES),
        },
    }
    if session is not None:
        stats = asdict(session.stats)
        manifest["n_trials"] = len(session.trials)
        manifest["ended_at"] = session.ended_at.isoformat(timespec="seconds")
        manifest["stats"] = stats
    with open(run_dir / "manifest.json", "w") as f:
        json.dump(manifest, f, indent=2)


def _optional(value: object) -> float | None:
    return None if pd.isna(value) else float(value)


def load_trials(path: Path) -> list[Trial]:
    """Read a trial CSV written by TrialCsvWriter back into Trial records."""
    if not path.exists():
        raise FileNotFoundError(f"Trial file not found: {path}")
    df = pd.read_csv(path, dtype={"category": str, "wrong_key": str})
    missing = set(TRIAL_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Trial file must have columns {TRIAL_COLUMNS}; missing {sorted(missing)}")
    trials: list[Trial] = []
    for _, row in df.iterrows():
        trials.append(Trial(
            index=int(row["index"]),
            category=str(row["category"]),
            onset_ms=float(row["onset_ms"]),
            premature=bool(int(row["premature"])),
            responded_at_ms=_optional(row["responded_at_ms"]),
            reaction_time_ms=_optional(row["reaction_time_ms"]),
            correct=bool(int(row["correct"])),
            wrong_key=None if pd.isna(row["wrong_key"]) else str(row["wrong_key"]),
            missed=bool(int(row["missed"])),
        ))
    return trials
