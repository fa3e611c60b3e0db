from .signal import (
    ACTIVE_PHASES,
    HoldColor,
    LightColor,
    Phase,
    TimerConfig,
    TimerState,
    format_remaining,
    progress_fraction,
)
from .hotkeys import (
    DEFAULT_HOTKEYS,
    Action,
    Combo,
    KeyEvent,
    combo_from_key_event,
)
from .settings import AppSettings

__all__ = [
    "ACTIVE_PHASES",
    "HoldColor",
    "LightColor",
    "Phase",
    "TimerConfig",
    "TimerState",
    "format_remaining",
    "progress_fraction",
    "DEFAULT_HOTKEYS",
    "Action",
    "Combo",
    "KeyEvent",
    "combo_from_key_event",
    "AppSettings",
]
