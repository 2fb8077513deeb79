"""
PsychoPy visual component construction and draw helpers.
No clocks, no response logic, no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass

from psychopy import visual

from ryg import config
from ryg.sequencer import Phase
from ryg.stats import Stats


@dataclass
class Stimuli:
    win: visual.Window
    light: visual.Circle
    prompt: visual.TextStim
    countdown: visual.TextStim
    instr_prompt: visual.TextStim
    instr_finish: visual.TextStim
    summary: visual.TextStim
    end: visual.TextStim


def build_stimuli(win: visual.Window) -> Stimuli:
    """Construct all visual stimuli and return a Stimuli dataclass."""
    y_scr = 1.0
    win_res = win.size
    x_scr = float(win_res[0]) / float(win_res[1])
    font_h = y_scr / 25
    wrap_w = x_scr / 1.5
    text_col = "white"

    light = visual.Circle(
        win, name="light", radius=0.15, pos=(0, 0.05), fillColor=config.LIGHT_OFF_COLOR,
        lineColor="black", lineWidth=4, autoLog=False,
    )

    prompt = visual.TextStim(
        win, name="prompt", font="Arial", pos=(0, -y_scr / 4), height=font_h,
        wrapWidth=wrap_w, color=text_col, autoLog=False,
    )

    countdown = visual.TextStim(
        win, name="countdown", font="Arial", pos=(x_scr / 2 - 0.12, y_scr / 2 - 0.05),
        height=font_h, color=text_col, autoLog=False,
    )

    instr_prompt = visual.TextStim(
        win, name="instr_prompt", font="Arial", pos=(0, y_scr / 10),
        height=font_h, wrapWidth=wrap_w, color=text_col,
        text=(
            "Hold SPACE until a light appears, then press the key for its colour: "
            "R for red, Y for yellow, G for green. Be quick, and do not press "
            "a colour key before the light is on."
        ),
        autoLog=False,
    )
    instr_finish = visual.TextStim(
        win, name="instr_finish", font="Arial", pos=(0, -y_scr / 4),
        height=font_h, wrapWidth=wrap_w, color=text_col,
        text="Press ENTER to begin.", autoLog=False,
    )

    summary = visual.TextStim(
        win, name="summary", font="Arial", pos=(0, 0), height=font_h * 0.8,
        wrapWidth=wrap_w, color=text_col, autoLog=False,
    )

    end = visual.TextStim(
        win, name="end", pos=(0, -y_scr / 2.5), text="Press ENTER to exit.",
        height=font_h, color=text_col, wrapWidth=wrap_w, autoLog=False,
    )

    return Stimuli(
        win=win,
        light=light,
        prompt=prompt,
        countdown=countdown,
        instr_prompt=instr_prompt,
        instr_finish=instr_finish,
        summary=summary,
        end=end,
    )


def draw_frame(stimuli: Stimuli, phase: Phase, category: str | None, remaining_ms: float) -> None:
    """Draw the light, the phase prompt and the countdown for one frame."""
    if phase is Phase.STIMULUS_ON and category is not None:
        stimuli.light.fillColor = config.LIGHT_COLORS[category]
        stimuli.prompt.text = ""
    else:
        stimuli.light.fillColor = config.LIGHT_OFF_COLOR
        stimuli.prompt.text = "Hold SPACE to reveal the next light"
    stimuli.countdown.text = f"{remaining_ms / 1000:4.1f} s"
    stimuli.light.draw()
    stimuli.prompt.draw()
    stimuli.countdown.draw()


def draw_instructions(stimuli: Stimuli) -> None:
    stimuli.instr_prompt.draw()
    stimuli.instr_finish.draw()


def draw_summary(stimuli: Stimuli, stats: Stats, histogram_lines: list[str]) -> None:
    mean = "—" if stats.mean_rt_ms is None else f"{stats.mean_rt_ms:.0f} ms"
    median = "—" if stats.median_rt_ms is None else f"{stats.median_rt_ms:.0f} ms"
    lines = [
        f"Correct: {stats.correct_count}/{stats.total_trials} ({stats.accuracy}%)",
        f"Mean RT: {mean}   Median RT: {median}",
        f"Premature: {stats.premature_count}   Wrong key: {stats.wrong_key_count}   "
        f"Missed: {stats.miss_count}",
        "",
        *histogram_lines,
    ]
    stimuli.summary.text = "\n".join(lines)
    stimuli.summary.draw()
    stimuli.end.draw()
