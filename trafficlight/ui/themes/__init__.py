"""QSS themes for the traffic light window (lamps, countdown, hotkey list)."""
from __future__ import annotations

from pathlib import Path

THEMES_DIR = Path(__file__).resolve().parent
DEFAULT_THEME = "dark"


def theme_path(name: str) -> Path:
    return THEMES_DIR / f"{name}.qss"


def load_theme(name: str = DEFAULT_THEME) -> str:
    """Stylesheet text for a theme, falling back to the default theme. "" when neither exists."""
    for candidate in (name, DEFAULT_THEME):
        path = theme_path(candidate)
        if path.is_file():
            return path.read_text(encoding="utf-8")
    return ""
