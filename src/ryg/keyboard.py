"""
Keyboard and focus adapter for a PsychoPy window.

The gate key needs both press and release, so it is read from pyglet's key
state each frame; letter keys come from psychopy.event with timestamps.
Everything is forwarded to the ResponseClassifier as raw (name, down, t_ms).
"""
from __future__ import annotations

from psychopy import event as psy_event, visual
from pyglet.window import key as pyglet_key

from ryg import config
from ryg.classifier import ResponseClassifier
from ryg.clock import PsychopyClock


class KeyboardSource:
    def __init__(self, win: visual.Window, clock: PsychopyClock, classifier: ResponseClassifier) -> None:
        self._clock = clock
        self._classifier = classifier
        self._key_state = pyglet_key.KeyStateHandler()
        self._gate_symbol = getattr(pyglet_key, config.GATE_KEY.upper())
        self._gate_down = False
        self._focus_changes: list[bool] = []
        handle = win.winHandle
        handle.push_handlers(self._key_state)
        handle.push_handlers(
            on_activate=lambda: self._focus_changes.append(True),
            on_deactivate=lambda: self._focus_changes.append(False),
        )

    def poll(self) -> bool:
        """Forward this frame's input. Returns True if a quit key was pressed."""
        now_ms = self._clock.now_ms()
        for focused in self._focus_changes:
            self._classifier.set_focus(focused, now_ms)
            if not focused:
                self._gate_down = False
        self._focus_changes.clear()

        quit_requested = False
        for name, t_s in psy_event.getKeys(timeStamped=self._clock.core_clock):
            if name in config.QUIT_KEYS:
                quit_requested = True
                continue
            if name == config.GATE_KEY:
                continue
            self._classifier.feed(name, True, t_s * 1000.0)

        gate_down = bool(self._key_state[self._gate_symbol])
        if gate_down != self._gate_down:
            self._gate_down = gate_down
            self._classifier.feed(config.GATE_KEY, gate_down, now_ms)
        return quit_requested
