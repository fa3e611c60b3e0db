"""Migrate the legacy flat settings to the namespaced format. No-op on already-migrated config."""

from __future__ import annotations

import copy
import logging
from typing import Any

from trafficlight.models.hotkeys import DEFAULT_HOTKEYS, hotkeys_to_dict
from trafficlight.models.signal import DEFAULT_FLASH_MS, DEFAULT_HOLD_MS, DEFAULT_WARN_MS

logger = logging.getLogger(__name__)

LEGACY_KEYS = ("greenDuration", "yellowFlashDuration", "timerMode", "shortcuts", "volume")
NAMESPACES = ("timer", "hotkeys", "audio", "display")


def default_config() -> dict[str, Any]:
    return {
        "timer": {
            "hold_duration_ms": DEFAULT_HOLD_MS,
            "warn_duration_ms": DEFAULT_WARN_MS,
            "flash_interval_ms": DEFAULT_FLASH_MS,
            "hold_mode": "green",
        },
        "hotkeys": hotkeys_to_dict(DEFAULT_HOTKEYS),
        "audio": {"volume": 0.5},
        "display": {"always_on_top": True},
    }


def is_legacy(data: dict[str, Any]) -> bool:
    """True for the flat layout, including its nested {'timer': {'greenDuration': ...}} variant."""
    if any(key in data for key in LEGACY_KEYS):
        return True
    timer = data.get("timer")
    return isinstance(timer, dict) and ("greenDuration" in timer or "yellowFlashDuration" in timer)


def migrate_config(old: dict[str, Any]) -> dict[str, Any]:
    """Convert flat config to namespaced {timer, hotkeys, audio, display}. Empty input yields defaults."""
    if not isinstance(old, dict) or not old:
        return default_config()
    if not is_legacy(old):
        return old
    nested_timer = old.get("timer") if isinstance(old.get("timer"), dict) else {}
    new = default_config()
    timer = new["timer"]
    hold = old.get("greenDuration", nested_timer.get("greenDuration"))
    warn = old.get("yellowFlashDuration", nested_timer.get("yellowFlashDuration"))
    if hold is not None:
        timer["hold_duration_ms"] = hold
    if warn is not None:
        timer["warn_duration_ms"] = warn
    if "timerMode" in old:
        timer["hold_mode"] = old["timerMode"]
    shortcuts = old.get("shortcuts") or old.get("hotkeys")
    if isinstance(shortcuts, dict):
        # Legacy files may hold only some actions; the rest keep their defaults
        new["hotkeys"].update(copy.deepcopy(shortcuts))
    if "volume" in old:
        new["audio"]["volume"] = old["volume"]
    display = old.get("display")
    if isinstance(display, dict):
        new["display"].update(copy.deepcopy(display))
    logger.debug("Migrated legacy keys: %s", [k for k in old if k not in NAMESPACES])
    return new
