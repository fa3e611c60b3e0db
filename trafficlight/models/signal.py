"""Signal lights, timer phases, and the timer's config/state records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LightColor(Enum):
    """What the signal head currently shows."""

    OFF = "off"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class HoldColor(Enum):
    """Color held before the warning phase. The complement is shown after it."""

    GREEN = "green"
    RED = "red"

    @property
    def light(self) -> LightColor:
        return LightColor(self.value)

    @property
    def complement(self) -> "HoldColor":
        return HoldColor.RED if self is HoldColor.GREEN else HoldColor.GREEN

    @classmethod
    def parse(cls, value: object, default: Optional["HoldColor"] = None) -> "HoldColor":
        """Parse 'green'/'red' (any case). Unknown values return default (GREEN when not given)."""
        if isinstance(value, HoldColor):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return default if default is not None else cls.GREEN


class Phase(Enum):
    IDLE = "idle"
    HOLDING = "holding"
    WARNING = "warning"
    DONE = "done"


ACTIVE_PHASES = frozenset({Phase.HOLDING, Phase.WARNING})

DEFAULT_HOLD_MS = 30000
DEFAULT_WARN_MS = 20000
DEFAULT_FLASH_MS = 500
TICK_INTERVAL_MS = 100


@dataclass(frozen=True)
class TimerConfig:
    """Durations for one run, in integer milliseconds. All must be positive."""

    hold_duration: int = DEFAULT_HOLD_MS
    warn_duration: int = DEFAULT_WARN_MS
    flash_interval: int = DEFAULT_FLASH_MS

    def __post_init__(self) -> None:
        for name in ("hold_duration", "warn_duration", "flash_interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer number of ms, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")


@dataclass
class TimerState:
    phase: Phase = Phase.IDLE
    mode: HoldColor = HoldColor.GREEN
    remaining: int = 0
    paused: bool = False


def progress_fraction(total: int, remaining: int) -> float:
    """Elapsed share of a phase, clamped to [0, 1]. Non-positive totals count as no progress."""
    if total <= 0:
        return 0.0
    return min(1.0, max(0.0, (total - remaining) / total))


def format_remaining(ms: int) -> str:
    """Format milliseconds as MM:SS, rounding partial seconds up."""
    seconds = max(0, -(-int(ms) // 1000))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
