"""
All task constants. No imports from other ryg modules.
All time values are in milliseconds; names carry a _MS suffix.
"""

# Session structure
SESSION_DURATION_MS: int = 60_000
HOLD_THRESHOLD_MS: int = 200     # continuous gate hold before a light is revealed
MAX_RESPONSE_MS: int = 5_000     # per-trial response deadline
DEBOUNCE_MS: int = 100           # minimum spacing between accepted letter keys
END_GRACE_MS: int = 50           # slack after the last deadline before closing
TICK_INTERVAL_MS: int = 16       # countdown refresh (~60 Hz)

# Stimulus alphabet: light colour codes, each answered by the same letter key
CATEGORIES: tuple[str, ...] = ("R", "Y", "G")
CATEGORY_NAMES: dict[str, str] = {"R": "red", "Y": "yellow", "G": "green"}
LIGHT_COLORS: dict[str, str] = {"R": "#e53935", "Y": "#fdd835", "G": "#43a047"}
LIGHT_OFF_COLOR: str = "#424242"

# Summary
HISTORY_DEPTH: int = 5
HISTOGRAM_BINS: int = 10

# Display
FULLSCREEN: bool = True
WINDOW_SIZE_PX: tuple[int, int] = (1024, 768)   # used when not fullscreen

# Keyboard layout
GATE_KEY: str = "space"
QUIT_KEYS: list[str] = ["escape"]
START_KEY: str = "return"
