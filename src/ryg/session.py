"""
Session initialisation: dialog, screen setup, output directory and
instruction display.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pyglet
from psychopy import core, event as psy_event, gui, monitors, visual

from ryg import config
from ryg.display import Stimuli, draw_instructions


@dataclass
class SessionInfo:
    participant_id: str
    show_instructions: bool
    fullscreen: bool = config.FULLSCREEN


def _yes(answer: object) -> bool:
    return str(answer).strip().lower() in ("yes", "y")


def show_dialog() -> SessionInfo:
    """Present the startup dialog and return a SessionInfo."""
    fields = {
        "Participant ID": "XXX000",
        "Show instructions? (yes/no)": "yes",
        "Fullscreen? (yes/no)": "yes" if config.FULLSCREEN else "no",
    }
    dlg = gui.DlgFromDict(dictionary=fields, title="RYG Reaction Task")
    if not dlg.OK:
        core.quit()

    return SessionInfo(
        participant_id=str(fields["Participant ID"]).strip() or "anonymous",
        show_instructions=_yes(fields["Show instructions? (yes/no)"]),
        fullscreen=_yes(fields["Fullscreen? (yes/no)"]),
    )


def setup_screen(fullscreen: bool = config.FULLSCREEN) -> visual.Window:
    """Open the task window on the last attached screen.

    Fullscreen takes that screen's native resolution; otherwise a centred
    WINDOW_SIZE_PX window is opened, which keeps the terminal report visible.
    """
    screens = pyglet.canvas.get_display().get_screens()
    screen = screens[-1]
    if fullscreen:
        size = [screen.width, screen.height]
    else:
        size = [min(d, s) for d, s in zip(config.WINDOW_SIZE_PX, (screen.width, screen.height))]
    mon = monitors.Monitor("ryg_mon")
    mon.setSizePix([screen.width, screen.height])
    return visual.Window(
        size=size,
        screen=len(screens) - 1,
        fullscr=fullscreen,
        allowGUI=not fullscreen,
        monitor=mon,
        units="height",
        color=(-0.8, -0.8, -0.8),
        winType="pyglet",
    )


def make_run_dir(data_dir: Path, session_info: SessionInfo, session_time: datetime) -> Path:
    """Create and return data/{participant_id}_{YYYYMMDDTHHMMSS}/."""
    ts = session_time.strftime("%Y%m%dT%H%M%S")
    run_dir = data_dir / f"{session_info.participant_id}_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def display_instructions(win: visual.Window, stimuli: Stimuli) -> None:
    """Show the instruction screen until START_KEY is pressed (QUIT_KEYS quit)."""
    psy_event.clearEvents()
    while True:
        draw_instructions(stimuli)
        win.flip()
        pressed = psy_event.getKeys(keyList=[config.START_KEY, *config.QUIT_KEYS])
        if not pressed:
            continue
        if pressed[0] in config.QUIT_KEYS:
            core.quit()
        break
