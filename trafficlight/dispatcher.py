"""Routes hotkey triggers and UI commands into the timer engine and rebind coordinator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from trafficlight.automation.rebind import RebindCoordinator
from trafficlight.models.hotkeys import Action, Combo, KeyEvent, hotkeys_to_dict
from trafficlight.models.settings import AppSettings
from trafficlight.models.signal import HoldColor, LightColor
from trafficlight.timer.engine import TimerEngine

if TYPE_CHECKING:
    from trafficlight.core.config_manager import ConfigManager

logger = logging.getLogger(__name__)

_ACTION_LIGHTS = {
    Action.GREEN: LightColor.GREEN,
    Action.YELLOW: LightColor.YELLOW,
    Action.RED: LightColor.RED,
}


class Dispatcher:
    """Thin glue between inputs (hotkeys, buttons, keys) and the two state machines."""

    def __init__(
        self,
        engine: TimerEngine,
        coordinator: RebindCoordinator,
        settings: AppSettings,
        config_manager: Optional["ConfigManager"] = None,
        on_settings_applied: Optional[Callable[[AppSettings], None]] = None,
    ) -> None:
        self._engine = engine
        self._coordinator = coordinator
        self._settings = settings
        self._config = config_manager
        self._on_settings_applied = on_settings_applied
        # Map as stored on disk; differs from the live map after a startup fallback
        self._saved_hotkeys = dict(settings.hotkeys)
        self._engine.configure(settings.timer)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    # --- global hotkeys ---

    def on_action(self, action: Action) -> bool:
        """Handle a triggered hotkey. Ignored while a rebind is capturing keys."""
        if self._coordinator.is_active:
            logger.debug("Hotkey %s ignored during rebind", action.value)
            return False
        logger.debug("Hotkey: %s", action.value)
        if action in _ACTION_LIGHTS:
            return self.light_clicked(_ACTION_LIGHTS[action])
        mode = HoldColor.GREEN if action is Action.TIMER else HoldColor.RED
        if self._engine.is_active:
            return self._engine.toggle_pause()
        return self._engine.start(mode)

    # --- UI commands ---

    def light_clicked(self, color: LightColor) -> bool:
        """A running timer pauses instead of changing color."""
        if self._engine.is_active:
            return self._engine.pause()
        return self._engine.set_light(color)

    def start_clicked(self) -> bool:
        return self._engine.start(self._settings.hold_mode)

    def pause_clicked(self) -> bool:
        return self._engine.toggle_pause()

    def clear_clicked(self) -> bool:
        return self._engine.clear()

    def rebind_clicked(self, action: Action) -> bool:
        return self._coordinator.begin(action)

    def rebind_cancel_clicked(self) -> bool:
        return self._coordinator.cancel()

    def key_pressed(self, event: KeyEvent) -> bool:
        """Raw key-down from the global capture thread or the window."""
        return self._coordinator.handle_key_event(event)

    # --- settings ---

    def apply_settings(self, settings: AppSettings) -> None:
        """Adopt edited settings. Hotkeys are owned by the registry and kept as they are."""
        settings.hotkeys = dict(self._settings.hotkeys)
        self._settings = settings
        self._engine.configure(settings.timer)
        self._save()
        if self._on_settings_applied is not None:
            self._on_settings_applied(settings)
        logger.info("Settings applied")

    def persist_hotkeys(self, mapping: dict[Action, Combo]) -> None:
        self._settings.hotkeys = dict(mapping)
        self._saved_hotkeys = dict(mapping)
        if self._config is not None:
            self._config.save_config("hotkeys", hotkeys_to_dict(mapping))
        logger.info("Hotkeys saved")

    def _save(self) -> None:
        if self._config is None:
            return
        root = self._settings.to_dict()
        root["hotkeys"] = hotkeys_to_dict(self._saved_hotkeys)
        self._config.set_root_and_save(root)
