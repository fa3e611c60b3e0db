from __future__ import annotations

from trafficlight.automation.errors import (
    HotkeyError,
    RegistrationConflict,
    RegistrationFailure,
    SessionBusy,
)
from trafficlight.automation.hotkey_registry import HotkeyBackend, HotkeyRegistry
from trafficlight.automation.rebind import RebindCoordinator, RebindOutcome, RebindState

__all__ = [
    "GlobalKeyCapture",
    "HotkeyBackend",
    "HotkeyError",
    "HotkeyRegistry",
    "HotkeyTriggerBridge",
    "KeyboardHotkeyBackend",
    "RebindCoordinator",
    "RebindOutcome",
    "RebindState",
    "RegistrationConflict",
    "RegistrationFailure",
    "SessionBusy",
]


def __getattr__(name: str):
    # Qt-backed pieces load on first use so the core stays importable without a display
    if name in ("GlobalKeyCapture", "HotkeyTriggerBridge", "KeyboardHotkeyBackend"):
        from trafficlight.automation import global_hotkey

        return getattr(global_hotkey, name)
    raise AttributeError(name)
