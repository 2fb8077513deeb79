"""
Entry point: `python -m ryg` or `ryg-task` script.
Wires all modules together. `ryg-summary <trials.csv>` re-scores a saved run.
"""
from __future__ import annotations

import sys


def run() -> None:
    # Disable pyglet event checking in background threads (prevents macOS crash)
    from psychopy import core
    core.checkPygletDuringWait = False

    from datetime import datetime
    from pathlib import Path

    from psychopy import event as psy_event, logging
    from rich.console import Console
    from rich.live import Live

    from ryg import config, display, history, recorder, report, session
    from ryg.classifier import ResponseClassifier
    from ryg.clock import PsychopyClock
    from ryg.driver import SessionDriver
    from ryg.keyboard import KeyboardSource
    from ryg.scheduler import Scheduler
    from ryg.sequencer import TrialSequencer

    # ── INITIALISE SESSION ───────────────────────────────────────────────────
    session_info = session.show_dialog()
    session_time = datetime.now()

    win = session.setup_screen(session_info.fullscreen)

    # Measure frame rate
    measured_fps = win.getActualFrameRate()
    frame_rate = measured_fps if (measured_fps is not None and measured_fps < 200) else 60.0

    # ── LOGGING ──────────────────────────────────────────────────────────────
    data_dir = Path("data")
    run_dir = session.make_run_dir(data_dir, session_info, session_time)
    logging.LogFile(str(run_dir / "experiment.log"), level=logging.EXP)
    logging.console.setLevel(logging.WARNING)  # rich handles terminal output

    # ── RICH CONSOLE ─────────────────────────────────────────────────────────
    rcon = Console(stderr=True)
    rcon.print(f"[bold]Session:[/bold] participant=[cyan]{session_info.participant_id}[/cyan]")
    rcon.print(f"[bold]Frame rate:[/bold] {frame_rate:.1f} Hz")
    rcon.print(
        f"[bold]Timing:[/bold] duration=[cyan]{config.SESSION_DURATION_MS} ms[/cyan]  "
        f"hold=[cyan]{config.HOLD_THRESHOLD_MS} ms[/cyan]  "
        f"deadline=[cyan]{config.MAX_RESPONSE_MS} ms[/cyan]  "
        f"debounce=[cyan]{config.DEBOUNCE_MS} ms[/cyan]"
    )
    logging.exp(f"Session: participant={session_info.participant_id}")
    logging.exp(f"Frame rate: {frame_rate:.1f} Hz")

    # ── BUILD STIMULI ────────────────────────────────────────────────────────
    stimuli_obj = display.build_stimuli(win)

    # ── SETUP OUTPUT FILES ───────────────────────────────────────────────────
    trial_writer = recorder.TrialCsvWriter(run_dir / f"trials_{session_info.participant_id}.csv")
    recorder.write_manifest(run_dir, session_info, session_time, frame_rate)
    history_path = data_dir / "history.json"

    # ── INSTRUCTIONS ─────────────────────────────────────────────────────────
    win.mouseVisible = False
    if session_info.show_instructions:
        session.display_instructions(win, stimuli_obj)

    # ── WIRE CORE ────────────────────────────────────────────────────────────
    clock = PsychopyClock()
    scheduler = Scheduler()
    sequencer = TrialSequencer(scheduler)
    driver = SessionDriver(sequencer, scheduler, clock)
    classifier = ResponseClassifier(sequencer)
    keys = KeyboardSource(win, clock, classifier)

    table = report.trial_table()

    def on_trial(trial) -> None:
        trial_writer.append(trial)
        report.add_trial_row(table, trial)
        live.refresh()

    sequencer.on_trial = on_trial

    # ── TRIAL LOOP ───────────────────────────────────────────────────────────
    psy_event.clearEvents()
    clock.reset()
    # auto_refresh=False prevents a background timer thread during trials
    with Live(table, console=rcon, auto_refresh=False) as live:
        driver.start()
        while not driver.finished:
            if keys.poll():
                driver.stop()
                break
            driver.pump()
            snap = driver.snapshot()
            display.draw_frame(stimuli_obj, snap.phase, snap.active_category, snap.remaining_ms)
            win.flip()

    finished = driver.session
    trial_writer.close()

    # ── SUMMARY ──────────────────────────────────────────────────────────────
    stats = finished.stats
    rcon.print(report.summary_table(stats))
    for line in report.histogram_lines(stats):
        rcon.print(line)
    recorder.write_manifest(run_dir, session_info, session_time, frame_rate, finished)
    past = history.record_session(history_path, history.session_summary(finished))
    rcon.print(report.history_table(past))

    # ── END SCREEN ───────────────────────────────────────────────────────────
    psy_event.clearEvents()
    while not psy_event.getKeys(keyList=[config.START_KEY, *config.QUIT_KEYS]):
        display.draw_summary(stimuli_obj, stats, report.histogram_lines(stats, width=20))
        win.flip()

    # ── CLEANUP ──────────────────────────────────────────────────────────────
    logging.flush()
    win.close()
    core.quit()


def summarize(argv: list[str] | None = None) -> None:
    """Print the stats of a saved trials CSV."""
    from pathlib import Path

    from rich.console import Console

    from ryg import report
    from ryg.recorder import load_trials
    from ryg.stats import compute_stats

    args = sys.argv[1:] if argv is None else argv
    rcon = Console()
    if len(args) != 1:
        rcon.print("usage: ryg-summary TRIALS_CSV")
        raise SystemExit(2)
    stats = compute_stats(load_trials(Path(args[0])))
    rcon.print(report.summary_table(stats))
    for line in report.histogram_lines(stats):
        rcon.print(line)


if __name__ == "__main__":
    run()
