"""Typed view over the persisted settings root (timer, hotkeys, audio, display)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from trafficlight.models.hotkeys import (
    DEFAULT_HOTKEYS,
    Action,
    Combo,
    find_duplicate_combos,
    hotkeys_to_dict,
)
from trafficlight.models.signal import (
    DEFAULT_FLASH_MS,
    DEFAULT_HOLD_MS,
    DEFAULT_WARN_MS,
    HoldColor,
    TimerConfig,
)

logger = logging.getLogger(__name__)

MIN_PHASE_MS = 1000
MIN_FLASH_MS = 50
DEFAULT_VOLUME = 0.5


def _int_setting(raw: Any, default: int, minimum: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(minimum, value)


def _section(root: dict[str, Any], name: str) -> dict[str, Any]:
    raw = root.get(name)
    if raw is not None and not isinstance(raw, dict):
        logger.warning("Ignoring malformed %r settings section", name)
        return {}
    return raw or {}


def _parse_hotkeys(raw: Any) -> dict[Action, Combo]:
    """Hotkey map from {'green': 'Alt+G', ...}. Bad entries use that action's default."""
    raw = raw if isinstance(raw, dict) else {}
    mapping: dict[Action, Combo] = {}
    for action in Action:
        text = raw.get(action.value)
        if not text:
            mapping[action] = DEFAULT_HOTKEYS[action]
            continue
        try:
            mapping[action] = Combo.parse(str(text))
        except ValueError as e:
            logger.warning("Ignoring saved hotkey for %s: %s", action.value, e)
            mapping[action] = DEFAULT_HOTKEYS[action]
    if find_duplicate_combos(mapping):
        logger.warning("Saved hotkeys contain duplicates; using defaults")
        return dict(DEFAULT_HOTKEYS)
    return mapping


@dataclass
class AppSettings:
    """Everything that survives across runs."""

    timer: TimerConfig = field(default_factory=TimerConfig)
    hold_mode: HoldColor = HoldColor.GREEN
    hotkeys: dict[Action, Combo] = field(default_factory=lambda: dict(DEFAULT_HOTKEYS))
    volume: float = DEFAULT_VOLUME
    always_on_top: bool = True

    @classmethod
    def from_dict(cls, root: dict[str, Any]) -> "AppSettings":
        """Build from the namespaced root; missing or invalid values fall back to defaults."""
        root = root if isinstance(root, dict) else {}
        timer_cfg = _section(root, "timer")
        audio_cfg = _section(root, "audio")
        display_cfg = _section(root, "display")
        timer = TimerConfig(
            hold_duration=_int_setting(timer_cfg.get("hold_duration_ms"), DEFAULT_HOLD_MS, MIN_PHASE_MS),
            warn_duration=_int_setting(timer_cfg.get("warn_duration_ms"), DEFAULT_WARN_MS, MIN_PHASE_MS),
            flash_interval=_int_setting(timer_cfg.get("flash_interval_ms"), DEFAULT_FLASH_MS, MIN_FLASH_MS),
        )
        try:
            volume = float(audio_cfg.get("volume", DEFAULT_VOLUME))
        except (TypeError, ValueError):
            volume = DEFAULT_VOLUME
        return cls(
            timer=timer,
            hold_mode=HoldColor.parse(timer_cfg.get("hold_mode")),
            hotkeys=_parse_hotkeys(root.get("hotkeys")),
            volume=min(1.0, max(0.0, volume)),
            always_on_top=bool(display_cfg.get("always_on_top", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timer": {
                "hold_duration_ms": self.timer.hold_duration,
                "warn_duration_ms": self.timer.warn_duration,
                "flash_interval_ms": self.timer.flash_interval,
                "hold_mode": self.hold_mode.value,
            },
            "hotkeys": hotkeys_to_dict(self.hotkeys),
            "audio": {"volume": self.volume},
            "display": {"always_on_top": self.always_on_top},
        }


def split_duration(ms: int) -> tuple[int, int]:
    """(minutes, seconds) for the settings form. Sub-second remainders are dropped."""
    total_seconds = max(0, int(ms)) // 1000
    return total_seconds // 60, total_seconds % 60


def duration_from_parts(minutes: int, seconds: int) -> int:
    """Milliseconds from a minutes + seconds entry, never below MIN_PHASE_MS."""
    total = (max(0, int(minutes)) * 60 + max(0, int(seconds))) * 1000
    return max(MIN_PHASE_MS, total)
