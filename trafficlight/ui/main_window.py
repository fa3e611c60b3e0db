"""Main window: signal head, timer status, controls, hotkey list and rebind overlay."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QSizePolicy,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from trafficlight.core.events import EventBus, EventType
from trafficlight.models.hotkeys import ESCAPE, Action, Combo, KeyEvent
from trafficlight.models.signal import HoldColor, LightColor, Phase, format_remaining, progress_fraction

logger = logging.getLogger(__name__)

LAMP_ON = {
    LightColor.RED: "#ff3b30",
    LightColor.YELLOW: "#ffcc00",
    LightColor.GREEN: "#34c759",
}
LAMP_OFF = {
    LightColor.RED: "#3a1a18",
    LightColor.YELLOW: "#3a3318",
    LightColor.GREEN: "#183a20",
}
LAMP_SIZE = 64
PROGRESS_STEPS = 1000

_PHASE_TEXT = {
    Phase.IDLE: "READY",
    Phase.WARNING: "WARNING",
    Phase.DONE: "DONE",
}


def _load_main_window_theme() -> str:
    """Load dark theme QSS for the main window."""
    try:
        from trafficlight.ui.themes import load_theme

        return load_theme("dark")
    except Exception:
        return ""


def qt_key_to_token(key: int, text: str = "") -> Optional[str]:
    """Key token for a Qt key code, in the same vocabulary as KeyEvent.key."""
    if int(Qt.Key.Key_0) <= key <= int(Qt.Key.Key_9):
        return str(key - int(Qt.Key.Key_0))
    if int(Qt.Key.Key_A) <= key <= int(Qt.Key.Key_Z):
        return chr(ord("A") + (key - int(Qt.Key.Key_A)))
    if int(Qt.Key.Key_F1) <= key <= int(Qt.Key.Key_F24):
        return f"F{key - int(Qt.Key.Key_F1) + 1}"
    key_map = {
        int(Qt.Key.Key_Escape): ESCAPE,
        int(Qt.Key.Key_Space): "Space",
        int(Qt.Key.Key_Tab): "Tab",
        int(Qt.Key.Key_Backtab): "Tab",
        int(Qt.Key.Key_Return): "Enter",
        int(Qt.Key.Key_Enter): "Enter",
        int(Qt.Key.Key_Control): "Control",
        int(Qt.Key.Key_Alt): "Alt",
        int(Qt.Key.Key_AltGr): "AltGr",
        int(Qt.Key.Key_Shift): "Shift",
        int(Qt.Key.Key_Meta): "Meta",
        int(Qt.Key.Key_Minus): "-",
        int(Qt.Key.Key_Equal): "=",
        int(Qt.Key.Key_Plus): "+",
        int(Qt.Key.Key_BracketLeft): "[",
        int(Qt.Key.Key_BracketRight): "]",
        int(Qt.Key.Key_Backslash): "\\",
        int(Qt.Key.Key_Semicolon): ";",
        int(Qt.Key.Key_Apostrophe): "'",
        int(Qt.Key.Key_Comma): ",",
        int(Qt.Key.Key_Period): ".",
        int(Qt.Key.Key_Slash): "/",
        int(Qt.Key.Key_QuoteLeft): "`",
    }
    token = key_map.get(key)
    if token:
        return token
    text = str(text or "").strip()
    return text.upper() if len(text) == 1 and text.isprintable() else None


class _Lamp(QPushButton):
    """One round lamp. Clicking it requests that color."""

    def __init__(self, color: LightColor, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.color = color
        self._lit = False
        self.setFixedSize(LAMP_SIZE, LAMP_SIZE)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setToolTip(color.value.capitalize())
        self._apply_style()

    def set_lit(self, lit: bool) -> None:
        if lit != self._lit:
            self._lit = lit
            self._apply_style()

    @property
    def lit(self) -> bool:
        return self._lit

    def _apply_style(self) -> None:
        fill = LAMP_ON[self.color] if self._lit else LAMP_OFF[self.color]
        self.setStyleSheet(
            f"background: {fill}; border: 2px solid #111; border-radius: {LAMP_SIZE // 2}px;"
        )


class MainWindow(QMainWindow):
    light_requested = pyqtSignal(object)
    start_requested = pyqtSignal()
    pause_requested = pyqtSignal()
    clear_requested = pyqtSignal()
    settings_requested = pyqtSignal()
    rebind_requested = pyqtSignal(object)
    rebind_cancel_requested = pyqtSignal()
    # Key-downs from this window, used when global capture is unavailable
    key_captured = pyqtSignal(object)

    def __init__(self, bindings: dict[Action, Combo], parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Traffic Light")
        self.setMinimumSize(260, 420)
        self._window_capture = False
        self._rebinding: Optional[Action] = None
        self._bindings: dict[Action, Combo] = {}
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self._hold_mode = HoldColor.GREEN
        self._build_ui()
        _qss = _load_main_window_theme()
        if _qss:
            self.setStyleSheet(self.styleSheet() + "\n" + _qss)
        self.setStatusBar(QStatusBar())
        self._status_message_label = QLabel()
        self.statusBar().addWidget(self._status_message_label, 1)
        self.update_bindings(bindings)
        self._show_ready()

    def _build_ui(self) -> None:
        central = QWidget()
        central.setObjectName("centralWidget")
        self.setCentralWidget(central)
        top_layout = QVBoxLayout(central)
        top_layout.setContentsMargins(12, 12, 12, 12)
        top_layout.setSpacing(10)

        # --- Signal head ---
        head = QFrame()
        head.setObjectName("signalHead")
        head_layout = QVBoxLayout(head)
        head_layout.setContentsMargins(10, 10, 10, 10)
        head_layout.setSpacing(8)
        self._lamps: dict[LightColor, _Lamp] = {}
        for color in (LightColor.RED, LightColor.YELLOW, LightColor.GREEN):
            lamp = _Lamp(color, head)
            lamp.clicked.connect(lambda _checked=False, c=color: self.light_requested.emit(c))
            head_layout.addWidget(lamp, 0, Qt.AlignmentFlag.AlignHCenter)
            self._lamps[color] = lamp
        head_row = QHBoxLayout()
        head_row.addStretch(1)
        head_row.addWidget(head)
        head_row.addStretch(1)
        top_layout.addLayout(head_row)

        # --- Timer status ---
        self._phase_label = QLabel()
        self._phase_label.setObjectName("phaseLabel")
        self._phase_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        top_layout.addWidget(self._phase_label)
        self._countdown_label = QLabel()
        self._countdown_label.setObjectName("countdownLabel")
        self._countdown_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        top_layout.addWidget(self._countdown_label)
        self._progress = QProgressBar()
        self._progress.setRange(0, PROGRESS_STEPS)
        self._progress.setTextVisible(False)
        top_layout.addWidget(self._progress)

        # --- Controls ---
        controls = QHBoxLayout()
        controls.setSpacing(6)
        self._btn_start = QPushButton("▶ Start")
        self._btn_pause = QPushButton("Pause")
        self._btn_clear = QPushButton("Clear")
        self._btn_settings = QPushButton("⚙")
        self._btn_settings.setToolTip("Settings")
        for btn in (self._btn_start, self._btn_pause, self._btn_clear, self._btn_settings):
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            controls.addWidget(btn)
        self._btn_start.clicked.connect(self.start_requested.emit)
        self._btn_pause.clicked.connect(self.pause_requested.emit)
        self._btn_clear.clicked.connect(self.clear_requested.emit)
        self._btn_settings.clicked.connect(self.settings_requested.emit)
        top_layout.addLayout(controls)

        # --- Hotkeys ---
        grid = QGridLayout()
        grid.setHorizontalSpacing(8)
        grid.setVerticalSpacing(4)
        self._hotkey_buttons: dict[Action, QPushButton] = {}
        for row, action in enumerate(Action):
            grid.addWidget(QLabel(action.label), row, 0)
            btn = QPushButton("Set")
            btn.setObjectName("hotkeyButton")
            btn.setToolTip(f"Click to rebind {action.label}")
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            btn.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
            btn.clicked.connect(lambda _checked=False, a=action: self.rebind_requested.emit(a))
            grid.addWidget(btn, row, 1)
            self._hotkey_buttons[action] = btn
        top_layout.addLayout(grid)

        # --- Rebind overlay ---
        self._rebind_overlay = QFrame()
        self._rebind_overlay.setObjectName("rebindOverlay")
        overlay_layout = QHBoxLayout(self._rebind_overlay)
        overlay_layout.setContentsMargins(8, 6, 8, 6)
        self._rebind_label = QLabel()
        self._rebind_label.setWordWrap(True)
        overlay_layout.addWidget(self._rebind_label, 1)
        self._btn_rebind_cancel = QPushButton("Cancel")
        self._btn_rebind_cancel.clicked.connect(self.rebind_cancel_requested.emit)
        overlay_layout.addWidget(self._btn_rebind_cancel)
        self._rebind_overlay.hide()
        top_layout.addWidget(self._rebind_overlay)
        top_layout.addStretch(1)

    # --- wiring ---

    def attach(self, bus: EventBus) -> None:
        """Subscribe the window to engine and rebind events."""
        bus.subscribe(EventType.LIGHT_SET, self.on_light_set)
        bus.subscribe(EventType.FLASH_TOGGLED, self.on_flash_toggled)
        bus.subscribe(EventType.TIMER_STARTED, self.on_timer_started)
        bus.subscribe(EventType.TIMER_TICK, self.on_timer_tick)
        bus.subscribe(EventType.TIMER_PAUSED, self.on_timer_paused)
        bus.subscribe(EventType.TIMER_RESUMED, self.on_timer_resumed)
        bus.subscribe(EventType.TIMER_STOPPED, self.on_timer_stopped)
        bus.subscribe(EventType.TIMER_CLEARED, self.on_timer_cleared)
        bus.subscribe(EventType.TIMER_COMPLETED, self.on_timer_completed)
        bus.subscribe(EventType.REBIND_BEGAN, self.on_rebind_began)
        bus.subscribe(EventType.REBIND_COUNTDOWN, self.on_rebind_countdown)
        bus.subscribe(EventType.REBIND_SUCCEEDED, self.on_rebind_succeeded)
        bus.subscribe(EventType.REBIND_FAILED, self.on_rebind_failed)
        bus.subscribe(EventType.REBIND_CANCELLED, self.on_rebind_cancelled)

    def set_window_capture(self, enabled: bool) -> None:
        """Forward this window's own key presses as raw key events."""
        self._window_capture = enabled

    def set_always_on_top(self, on_top: bool) -> None:
        visible = self.isVisible()
        self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, on_top)
        if visible:
            self.show()

    def update_bindings(self, bindings: dict[Action, Combo]) -> None:
        self._bindings = dict(bindings)
        for action, btn in self._hotkey_buttons.items():
            combo = self._bindings.get(action)
            btn.setText(str(combo) if combo is not None else "Set")

    # --- display sink ---

    def on_light_set(self, light: LightColor, flashing: bool = False) -> None:
        for color, lamp in self._lamps.items():
            lamp.set_lit(color is light)

    def on_flash_toggled(self, on: bool) -> None:
        self._lamps[LightColor.YELLOW].set_lit(on)

    def on_timer_started(self, mode: HoldColor, phase: Phase, remaining: int, total: int) -> None:
        self._hold_mode = mode
        self._btn_pause.setText("Pause")
        self._show_progress(phase, remaining, total)

    def on_timer_tick(self, phase: Phase, remaining: int, total: int) -> None:
        self._show_progress(phase, remaining, total)

    def on_timer_paused(self, phase: Phase, remaining: int) -> None:
        self._phase_label.setText("PAUSED")
        self._btn_pause.setText("Resume")

    def on_timer_resumed(self, phase: Phase, remaining: int) -> None:
        self._phase_label.setText(self._phase_text(phase))
        self._btn_pause.setText("Pause")

    def on_timer_stopped(self) -> None:
        self._show_ready()

    def on_timer_cleared(self) -> None:
        self._show_ready()

    def on_timer_completed(self, mode: HoldColor, light: LightColor) -> None:
        self._phase_label.setText(_PHASE_TEXT[Phase.DONE])
        self._countdown_label.setText(format_remaining(0))
        self._progress.setValue(PROGRESS_STEPS)
        self._btn_pause.setText("Pause")

    def on_rebind_began(self, action: Action, prior_combo: Optional[Combo], seconds_left: int) -> None:
        self._rebinding = action
        self._hotkey_buttons[action].setText("…")
        self._show_rebind_prompt(action, seconds_left)
        self._rebind_overlay.show()
        self.setFocus()

    def on_rebind_countdown(self, action: Action, seconds_left: int) -> None:
        self._show_rebind_prompt(action, seconds_left)

    def on_rebind_succeeded(self, action: Action, combo: Combo, bindings: dict, unchanged: bool = False) -> None:
        self._end_rebind()
        self.update_bindings(bindings)
        if unchanged:
            self.show_status_message(f"{action.label} kept {combo}", 2000)
        else:
            self.show_status_message(f"{action.label} bound to {combo} ✓", 2000)

    def on_rebind_failed(self, action: Action, error: Exception, combo: Optional[Combo] = None) -> None:
        if self._rebinding is action:
            self._end_rebind()
        self.show_status_message(str(error), 3000)

    def on_rebind_cancelled(self, action: Action, combo: Optional[Combo], reason: str) -> None:
        self._end_rebind()
        text = "Rebind timed out" if reason == "timeout" else "Rebind cancelled"
        self.show_status_message(text, 2000)

    def show_status_message(self, text: str, timeout_ms: int = 0) -> None:
        """Show text in the status bar. If timeout_ms > 0, clear after that many ms."""
        self._status_message_label.setText(text)
        if timeout_ms > 0:

            def _clear() -> None:
                # A newer message owns the label now
                if self._status_message_label.text() == text:
                    self._status_message_label.setText("")

            QTimer.singleShot(timeout_ms, _clear)

    # --- internals ---

    def _phase_text(self, phase: Phase) -> str:
        if phase is Phase.HOLDING:
            return self._hold_mode.value.upper()
        return _PHASE_TEXT[phase]

    def _show_progress(self, phase: Phase, remaining: int, total: int) -> None:
        self._phase_label.setText(self._phase_text(phase))
        self._countdown_label.setText(format_remaining(remaining))
        self._progress.setValue(round(progress_fraction(total, remaining) * PROGRESS_STEPS))

    def _show_ready(self) -> None:
        self._phase_label.setText(_PHASE_TEXT[Phase.IDLE])
        self._countdown_label.setText(format_remaining(0))
        self._progress.setValue(0)
        self._btn_pause.setText("Pause")

    def _show_rebind_prompt(self, action: Action, seconds_left: int) -> None:
        self._rebind_label.setText(f"Press new keys for {action.label}… ({seconds_left}s, Esc to cancel)")

    def _end_rebind(self) -> None:
        self._rebinding = None
        self._rebind_overlay.hide()
        self.update_bindings(self._bindings)

    def keyPressEvent(self, event) -> None:
        if self._rebinding is None or not self._window_capture or event.isAutoRepeat():
            super().keyPressEvent(event)
            return
        token = qt_key_to_token(int(event.key()), event.text())
        if token is None:
            super().keyPressEvent(event)
            return
        mods = event.modifiers()
        self.key_captured.emit(
            KeyEvent(
                key=token,
                ctrl=bool(mods & Qt.KeyboardModifier.ControlModifier),
                alt=bool(mods & Qt.KeyboardModifier.AltModifier),
                shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
                meta=bool(mods & Qt.KeyboardModifier.MetaModifier),
            )
        )
        event.accept()
