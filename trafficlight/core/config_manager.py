"""Holds namespaced config dict; get_config/save_config with persist to JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from trafficlight.core.config_migration import is_legacy, migrate_config

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "settings.json"


class ConfigManager:
    """Holds root config dict. get_config(key) returns that slice; save_config(key, data) replaces and saves."""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH, initial: dict[str, Any] | None = None) -> None:
        self._path = Path(config_path)
        if initial is not None:
            self._root = copy_nested(migrate_config(initial))
        else:
            self.load_from_file()

    @property
    def path(self) -> Path:
        return self._path

    def get_config(self, section: str) -> dict[str, Any]:
        """Return a copy of the config section. Missing section returns {}."""
        data = self._root.get(section)
        if not isinstance(data, dict):
            return {}
        return dict(copy_nested(data))

    def save_config(self, section: str, data: dict[str, Any]) -> None:
        """Replace root[section] and persist to file."""
        self._root[section] = copy_nested(data)
        self._save_file()

    def get_root(self) -> dict[str, Any]:
        """Return the full root config. Caller should not mutate."""
        return self._root

    def set_root_and_save(self, root: dict[str, Any]) -> None:
        """Replace root config and persist to file."""
        self._root = copy_nested(root)
        self._save_file()

    def load_from_file(self) -> dict[str, Any]:
        """Load JSON from path; if missing or flat format, migrate and save. Set _root and return it."""
        data: Any = {}
        if self._path.exists():
            try:
                with open(self._path) as f:
                    data = json.load(f)
            except Exception as e:
                logger.exception("Failed to load config from %s: %s", self._path, e)
                data = {}
        if not isinstance(data, dict):
            logger.warning("Config at %s is not an object; using defaults", self._path)
            data = {}
        if not data or is_legacy(data):
            self._root = migrate_config(data)
            logger.info("Config migrated to namespaced format")
            self._save_file()
        else:
            self._root = data
        return self._root

    def _save_file(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump(self._root, f, indent=2)
        except Exception as e:
            logger.exception("Failed to save config to %s: %s", self._path, e)


def copy_nested(obj: Any) -> Any:
    """Deep copy dict/list; other types returned as-is."""
    if isinstance(obj, dict):
        return {k: copy_nested(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [copy_nested(v) for v in obj]
    return obj
