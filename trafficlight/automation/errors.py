"""Errors surfaced by hotkey registration and rebinding."""

from __future__ import annotations

from typing import Optional

from trafficlight.models.hotkeys import Action, Combo


class HotkeyError(Exception):
    """Base for registry and rebind errors."""


class RegistrationConflict(HotkeyError):
    """A combo is already bound to another action."""

    def __init__(self, combo: Combo, actions: tuple[Action, ...] = ()) -> None:
        self.combo = combo
        self.actions = actions
        names = ", ".join(a.label for a in actions) or "another action"
        super().__init__(f"{combo} is already bound to {names}")


class RegistrationFailure(HotkeyError):
    """The environment refused to register a combo."""

    def __init__(self, action: Action, combo: Combo, restored: bool = True) -> None:
        self.action = action
        self.combo = combo
        self.restored = restored
        suffix = "" if restored else " (previous hotkeys could not be restored)"
        super().__init__(f"Could not register {combo} for {action.label}{suffix}")


class SessionBusy(HotkeyError):
    """A rebind was requested while another one is in flight."""

    def __init__(self, active: Optional[Action], requested: Action) -> None:
        self.active = active
        self.requested = requested
        current = active.label if active is not None else "another hotkey"
        super().__init__(f"Already rebinding {current}; cannot rebind {requested.label}")
