"""Global hotkeys (keyboard library) and global raw key capture (pynput) for rebinding."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from trafficlight.automation.hotkey_registry import HotkeyBackend
from trafficlight.models.hotkeys import ESCAPE, Action, Combo, KeyEvent

logger = logging.getLogger(__name__)

_PYNPUT_NAMES = {
    "space": "Space",
    "enter": "Enter",
    "tab": "Tab",
    "esc": ESCAPE,
    "ctrl": "Control",
    "ctrl_l": "Control",
    "ctrl_r": "Control",
    "alt": "Alt",
    "alt_l": "Alt",
    "alt_r": "Alt",
    "alt_gr": "AltGr",
    "shift": "Shift",
    "shift_l": "Shift",
    "shift_r": "Shift",
    "cmd": "Meta",
    "cmd_l": "Meta",
    "cmd_r": "Meta",
}
_PYNPUT_NAMES.update({f"f{i}": f"F{i}" for i in range(1, 25)})

_MODIFIER_FLAGS = {"Control": "ctrl", "Alt": "alt", "AltGr": "alt", "Shift": "shift", "Meta": "meta"}


def pynput_key_token(name: Optional[str], char: Optional[str], vk: Optional[int] = None) -> Optional[str]:
    """Key token for a pynput key: its Key name, its char, or its virtual key code."""
    if name:
        n = name.lower()
        return _PYNPUT_NAMES.get(n, n.capitalize())
    if char:
        if len(char) == 1 and ord(char) < 32:
            # With Ctrl held pynput reports control characters (Ctrl+G -> '\x07')
            char = chr(ord(char) + 64)
        return char.upper() if char.isalpha() else char
    if vk is not None and (48 <= vk <= 57 or 65 <= vk <= 90):
        return chr(vk)
    return None


def _token_for(key: Any) -> Optional[str]:
    return pynput_key_token(
        getattr(key, "name", None),
        getattr(key, "char", None),
        getattr(key, "vk", None),
    )


class KeyboardHotkeyBackend(HotkeyBackend):
    """HotkeyBackend on keyboard.add_hotkey/remove_hotkey. Callbacks run on the keyboard hook thread."""

    def __init__(self) -> None:
        self._handles: dict[Combo, Any] = {}

    def register(self, combo: Combo, callback: Callable[[], None]) -> bool:
        try:
            import keyboard
        except Exception as e:
            # On Linux the import itself fails without root
            logger.warning("keyboard library unavailable; global hotkeys disabled: %s", e)
            return False
        try:
            handle = keyboard.add_hotkey(combo.keyboard_hotkey(), callback, suppress=False)
        except Exception as e:
            logger.warning("keyboard.add_hotkey(%s) failed: %s", combo.keyboard_hotkey(), e)
            return False
        self._handles[combo] = handle
        return True

    def unregister(self, combo: Combo) -> None:
        handle = self._handles.pop(combo, None)
        if handle is None:
            return
        try:
            import keyboard

            keyboard.remove_hotkey(handle)
        except Exception as e:
            logger.warning("keyboard.remove_hotkey(%s) failed: %s", combo, e)


class HotkeyTriggerBridge(QObject):
    """Carries hotkey callbacks from the keyboard hook thread onto the Qt main thread."""

    triggered = pyqtSignal(object)

    def emit_action(self, action: Action) -> None:
        self.triggered.emit(action)


class KeyCaptureThread(QThread):
    """Runs a pynput keyboard listener and emits every key-down as a KeyEvent with held modifiers."""

    key_pressed = pyqtSignal(object)
    unavailable = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._running = True
        self._held: set[str] = set()

    def run(self) -> None:
        try:
            from pynput import keyboard
        except Exception as e:
            logger.warning("pynput unavailable; rebind capture falls back to window keys: %s", e)
            self.unavailable.emit()
            return

        def on_press(key) -> bool:
            if not self._running:
                return False
            token = _token_for(key)
            if token is None:
                return True
            if token in _MODIFIER_FLAGS:
                self._held.add(_MODIFIER_FLAGS[token])
            self.key_pressed.emit(
                KeyEvent(
                    key=token,
                    ctrl="ctrl" in self._held,
                    alt="alt" in self._held,
                    shift="shift" in self._held,
                    meta="meta" in self._held,
                )
            )
            return self._running

        def on_release(key) -> bool:
            token = _token_for(key)
            if token in _MODIFIER_FLAGS:
                self._held.discard(_MODIFIER_FLAGS[token])
            return self._running

        try:
            listener = keyboard.Listener(on_press=on_press, on_release=on_release)
            listener.start()
        except Exception as e:
            logger.warning("pynput listener failed to start: %s", e)
            self.unavailable.emit()
            return
        while self._running and listener.running:
            self.msleep(50)
        listener.stop()

    def stop(self) -> None:
        self._running = False


class GlobalKeyCapture(QObject):
    """Starts/stops a KeyCaptureThread for the duration of a rebind."""

    key_pressed = pyqtSignal(object)
    unavailable = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._thread: Optional[KeyCaptureThread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.isRunning()

    def start(self) -> None:
        if self.running:
            return
        self._thread = KeyCaptureThread(self)
        self._thread.key_pressed.connect(self.key_pressed.emit)
        self._thread.unavailable.connect(self.unavailable.emit)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread.wait(2000)
            self._thread = None
