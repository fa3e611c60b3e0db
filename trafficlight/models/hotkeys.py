"""Actions, key combos, and raw key-down events."""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Action(Enum):
    """Operations bound to global hotkeys. Values are the persisted setting keys."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    TIMER = "timer"
    TIMER_ALT = "timerRed"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS = {
    Action.GREEN: "Green",
    Action.YELLOW: "Yellow",
    Action.RED: "Red",
    Action.TIMER: "Timer (green)",
    Action.TIMER_ALT: "Timer (red)",
}

MODIFIER_ORDER = ("Ctrl", "Alt", "Shift", "Meta")

_MODIFIER_ALIASES = {
    "ctrl": "Ctrl",
    "control": "Ctrl",
    "alt": "Alt",
    "option": "Alt",
    "shift": "Shift",
    "meta": "Meta",
    "cmd": "Meta",
    "command": "Meta",
    "super": "Meta",
    "win": "Meta",
    "windows": "Meta",
}

# Key names reported for a bare modifier press; never valid as a terminal.
MODIFIER_KEYS = frozenset({"Control", "Ctrl", "Alt", "AltGr", "Shift", "Meta", "Cmd", "Super"})

_NAMED_KEYS = {
    "space": "Space",
    "enter": "Enter",
    "return": "Enter",
    "tab": "Tab",
}
_NAMED_KEYS.update({f"f{i}": f"F{i}" for i in range(1, 25)})

# keyboard-library names for modifiers and named terminals
_KEYBOARD_LIB_NAMES = {
    "Ctrl": "ctrl",
    "Alt": "alt",
    "Shift": "shift",
    "Meta": "windows",
    "Space": "space",
    "Enter": "enter",
    "Tab": "tab",
}

ESCAPE = "Escape"


def normalize_terminal(token: str) -> Optional[str]:
    """Canonical terminal token for *token*, or None if it cannot end a combo."""
    if not token:
        return None
    if token == " ":
        return "Space"
    named = _NAMED_KEYS.get(token.strip().lower())
    if named:
        return named
    if len(token) == 1 and token in string.printable and not token.isspace():
        return token.upper()
    return None


@dataclass(frozen=True)
class Combo:
    """Modifier tokens in canonical order plus one terminal key, e.g. Ctrl+Alt+G."""

    modifiers: tuple[str, ...]
    key: str

    def __post_init__(self) -> None:
        unknown = [m for m in self.modifiers if m not in MODIFIER_ORDER]
        if unknown:
            raise ValueError(f"Unknown modifier(s) {unknown}")
        ordered = tuple(m for m in MODIFIER_ORDER if m in self.modifiers)
        object.__setattr__(self, "modifiers", ordered)
        terminal = normalize_terminal(self.key)
        if terminal is None:
            raise ValueError(f"Invalid terminal key {self.key!r}")
        object.__setattr__(self, "key", terminal)

    @classmethod
    def parse(cls, text: str) -> "Combo":
        """Parse 'Alt+G' style text. Raises ValueError without exactly one terminal key."""
        raw = str(text or "").strip()
        if not raw:
            raise ValueError("Empty combo")
        # A trailing '+' is the plus key itself ("Ctrl++")
        parts = raw.split("+")
        if raw == "+":
            parts = ["+"]
        elif raw.endswith("++"):
            parts = parts[:-2] + ["+"]
        modifiers: list[str] = []
        terminal: Optional[str] = None
        for part in parts:
            token = part.strip()
            if not token and part != " ":
                raise ValueError(f"Malformed combo {text!r}")
            modifier = _MODIFIER_ALIASES.get(token.lower())
            if modifier is not None:
                if modifier not in modifiers:
                    modifiers.append(modifier)
                continue
            if terminal is not None:
                raise ValueError(f"Combo {text!r} has more than one terminal key")
            terminal = normalize_terminal(part if part == " " else token)
            if terminal is None:
                raise ValueError(f"Invalid key {token!r} in combo {text!r}")
        if terminal is None:
            raise ValueError(f"Combo {text!r} has no terminal key")
        return cls(tuple(modifiers), terminal)

    def keyboard_hotkey(self) -> str:
        """Hotkey string understood by keyboard.add_hotkey (e.g. 'ctrl+alt+g')."""
        names = [_KEYBOARD_LIB_NAMES[m] for m in self.modifiers]
        names.append(_KEYBOARD_LIB_NAMES.get(self.key, self.key.lower()))
        return "+".join(names)

    def __str__(self) -> str:
        return "+".join(self.modifiers + (self.key,))


DEFAULT_HOTKEYS: dict[Action, Combo] = {
    Action.GREEN: Combo(("Alt",), "G"),
    Action.YELLOW: Combo(("Alt",), "Y"),
    Action.RED: Combo(("Alt",), "R"),
    Action.TIMER: Combo(("Alt",), "S"),
    Action.TIMER_ALT: Combo(("Alt",), "A"),
}


@dataclass(frozen=True)
class KeyEvent:
    """One raw key-down with the modifier flags held at the time."""

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False

    @property
    def is_escape(self) -> bool:
        return self.key == ESCAPE

    @property
    def is_modifier_only(self) -> bool:
        return self.key in MODIFIER_KEYS


def combo_from_key_event(event: KeyEvent) -> Optional[Combo]:
    """Candidate combo for a key-down, or None for modifier-only/unsupported keys."""
    if event.is_modifier_only or event.is_escape:
        return None
    terminal = normalize_terminal(event.key)
    if terminal is None:
        return None
    flags = (event.ctrl, event.alt, event.shift, event.meta)
    modifiers = tuple(name for name, held in zip(MODIFIER_ORDER, flags) if held)
    return Combo(modifiers, terminal)


def hotkeys_to_dict(mapping: dict[Action, Combo]) -> dict[str, str]:
    """Persisted form: {'green': 'Alt+G', ...} in Action order."""
    return {action.value: str(mapping[action]) for action in Action if action in mapping}


def find_duplicate_combos(mapping: dict[Action, Combo]) -> dict[Combo, list[Action]]:
    """Combos assigned to more than one action."""
    seen: dict[Combo, list[Action]] = {}
    for action, combo in mapping.items():
        seen.setdefault(combo, []).append(action)
    return {combo: actions for combo, actions in seen.items() if len(actions) > 1}
