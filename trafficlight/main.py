"""Traffic Light: main entry point.

Wires together: global hotkeys → dispatcher → timer engine / rebind coordinator → event bus → window.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from PyQt6.QtWidgets import QApplication

from trafficlight.automation.global_hotkey import (
    GlobalKeyCapture,
    HotkeyTriggerBridge,
    KeyboardHotkeyBackend,
)
from trafficlight.automation.hotkey_registry import HotkeyRegistry
from trafficlight.automation.rebind import RebindCoordinator
from trafficlight.core.config_manager import DEFAULT_CONFIG_PATH, ConfigManager
from trafficlight.core.events import EventBus, EventType
from trafficlight.dispatcher import Dispatcher
from trafficlight.models.hotkeys import DEFAULT_HOTKEYS
from trafficlight.models.settings import AppSettings
from trafficlight.timer.engine import TimerEngine
from trafficlight.ui.main_window import MainWindow
from trafficlight.ui.qt_scheduler import QtScheduler
from trafficlight.ui.settings_dialog import SettingsDialog

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CONFIG_PATH = DEFAULT_CONFIG_PATH
_QUIET_EVENTS = (EventType.TIMER_TICK, EventType.FLASH_TOGGLED, EventType.REBIND_COUNTDOWN)


def _log_event(event: EventType, **payload: Any) -> None:
    if event not in _QUIET_EVENTS:
        logger.debug("event %s %s", event.value, payload)


def main() -> None:
    app = QApplication(sys.argv)
    app.setStyle("Fusion")

    # --- Config: load (with migration) ---
    config_manager = ConfigManager(CONFIG_PATH)
    settings = AppSettings.from_dict(config_manager.get_root())

    # --- Core: bus, clock, engine, hotkeys ---
    bus = EventBus()
    bus.subscribe_all(_log_event)
    scheduler = QtScheduler(app)
    engine = TimerEngine(scheduler, bus, settings.timer)
    bridge = HotkeyTriggerBridge()
    registry = HotkeyRegistry(KeyboardHotkeyBackend(), on_trigger=bridge.emit_action)
    coordinator = RebindCoordinator(registry, scheduler, bus)

    # --- Window and settings dialog ---
    window = MainWindow(settings.hotkeys)
    window.attach(bus)
    window.set_always_on_top(settings.always_on_top)
    settings_dialog = SettingsDialog(settings, parent=window)

    def on_settings_applied(applied: AppSettings) -> None:
        window.set_always_on_top(applied.always_on_top)
        window.show_status_message("Settings saved", 2000)

    dispatcher = Dispatcher(engine, coordinator, settings, config_manager, on_settings_applied=on_settings_applied)
    coordinator.set_commit_handler(dispatcher.persist_hotkeys)

    if not registry.register_with_fallback(settings.hotkeys, DEFAULT_HOTKEYS):
        if registry.is_live:
            # Defaults are live for this session only; the saved map is left on disk
            settings.hotkeys = registry.bindings()
            window.show_status_message("Saved hotkeys unavailable; using defaults", 4000)
        else:
            window.show_status_message("Global hotkeys unavailable", 0)
    window.update_bindings(settings.hotkeys)

    # --- Inputs ---
    bridge.triggered.connect(dispatcher.on_action)
    window.light_requested.connect(dispatcher.light_clicked)
    window.start_requested.connect(dispatcher.start_clicked)
    window.pause_requested.connect(dispatcher.pause_clicked)
    window.clear_requested.connect(dispatcher.clear_clicked)
    window.rebind_requested.connect(dispatcher.rebind_clicked)
    window.rebind_cancel_requested.connect(dispatcher.rebind_cancel_clicked)
    window.key_captured.connect(dispatcher.key_pressed)
    window.settings_requested.connect(lambda: settings_dialog.show_or_raise(dispatcher.settings))
    settings_dialog.settings_accepted.connect(dispatcher.apply_settings)

    # Raw key capture runs only while a rebind waits for a key
    capture = GlobalKeyCapture(window)
    capture.key_pressed.connect(dispatcher.key_pressed)

    def on_capture_unavailable() -> None:
        window.set_window_capture(True)
        window.show_status_message("Global key capture unavailable; press keys in this window", 3000)

    capture.unavailable.connect(on_capture_unavailable)

    def stop_capture_when_idle(**_: Any) -> None:
        # rebind_failed(SessionBusy) arrives while the running session still needs keys
        if not coordinator.is_active:
            capture.stop()

    bus.subscribe(EventType.REBIND_BEGAN, lambda **_: capture.start())
    for ended in (EventType.REBIND_SUCCEEDED, EventType.REBIND_FAILED, EventType.REBIND_CANCELLED):
        bus.subscribe(ended, stop_capture_when_idle)

    window.show()
    exit_code = app.exec()
    coordinator.cancel()
    engine.stop()
    capture.stop()
    registry.unregister_all()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
