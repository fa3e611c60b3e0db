"""Settings dialog: hold/warning durations, hold mode, volume, always-on-top."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QRadioButton,
    QSlider,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from trafficlight.models.settings import AppSettings, duration_from_parts, split_duration
from trafficlight.models.signal import HoldColor, TimerConfig

logger = logging.getLogger(__name__)


def _duration_row(parent: QWidget) -> tuple[QWidget, QSpinBox, QSpinBox]:
    row = QWidget(parent)
    layout = QHBoxLayout(row)
    layout.setContentsMargins(0, 0, 0, 0)
    minutes = QSpinBox(row)
    minutes.setRange(0, 99)
    minutes.setSuffix(" min")
    seconds = QSpinBox(row)
    seconds.setRange(0, 59)
    seconds.setSuffix(" s")
    layout.addWidget(minutes)
    layout.addWidget(seconds)
    return row, minutes, seconds


class SettingsDialog(QDialog):
    """Edits a copy of AppSettings; emits settings_accepted on OK. Hotkeys are edited on the main window."""

    settings_accepted = pyqtSignal(object)

    def __init__(self, settings: AppSettings, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self._settings = settings
        self._build_ui()
        self.populate(settings)

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        form = QFormLayout()

        hold_row, self._hold_min, self._hold_sec = _duration_row(self)
        form.addRow("Hold duration", hold_row)
        warn_row, self._warn_min, self._warn_sec = _duration_row(self)
        form.addRow("Warning duration", warn_row)

        mode_row = QWidget(self)
        mode_layout = QHBoxLayout(mode_row)
        mode_layout.setContentsMargins(0, 0, 0, 0)
        self._radio_green = QRadioButton("Green", mode_row)
        self._radio_red = QRadioButton("Red", mode_row)
        self._mode_group = QButtonGroup(self)
        self._mode_group.addButton(self._radio_green)
        self._mode_group.addButton(self._radio_red)
        mode_layout.addWidget(self._radio_green)
        mode_layout.addWidget(self._radio_red)
        form.addRow("Hold mode", mode_row)

        volume_row = QWidget(self)
        volume_layout = QHBoxLayout(volume_row)
        volume_layout.setContentsMargins(0, 0, 0, 0)
        self._slider_volume = QSlider(Qt.Orientation.Horizontal, volume_row)
        self._slider_volume.setRange(0, 100)
        self._volume_value = QLabel("50%", volume_row)
        self._volume_value.setMinimumWidth(36)
        self._slider_volume.valueChanged.connect(lambda v: self._volume_value.setText(f"{v}%"))
        volume_layout.addWidget(self._slider_volume, 1)
        volume_layout.addWidget(self._volume_value)
        form.addRow("Volume", volume_row)

        self._check_on_top = QCheckBox("Keep window on top", self)
        form.addRow("", self._check_on_top)
        layout.addLayout(form)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel, self
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def populate(self, settings: AppSettings) -> None:
        self._settings = settings
        hold_m, hold_s = split_duration(settings.timer.hold_duration)
        warn_m, warn_s = split_duration(settings.timer.warn_duration)
        self._hold_min.setValue(hold_m)
        self._hold_sec.setValue(hold_s)
        self._warn_min.setValue(warn_m)
        self._warn_sec.setValue(warn_s)
        self._radio_green.setChecked(settings.hold_mode is HoldColor.GREEN)
        self._radio_red.setChecked(settings.hold_mode is HoldColor.RED)
        self._slider_volume.setValue(round(settings.volume * 100))
        self._check_on_top.setChecked(settings.always_on_top)

    def collect(self) -> AppSettings:
        """AppSettings from the form; flash interval and hotkeys carry over unchanged."""
        timer = TimerConfig(
            hold_duration=duration_from_parts(self._hold_min.value(), self._hold_sec.value()),
            warn_duration=duration_from_parts(self._warn_min.value(), self._warn_sec.value()),
            flash_interval=self._settings.timer.flash_interval,
        )
        return AppSettings(
            timer=timer,
            hold_mode=HoldColor.RED if self._radio_red.isChecked() else HoldColor.GREEN,
            hotkeys=dict(self._settings.hotkeys),
            volume=self._slider_volume.value() / 100.0,
            always_on_top=self._check_on_top.isChecked(),
        )

    def show_or_raise(self, settings: Optional[AppSettings] = None) -> None:
        if settings is not None:
            self.populate(settings)
        self.show()
        self.raise_()
        self.activateWindow()

    def accept(self) -> None:
        settings = self.collect()
        logger.debug("Settings accepted: %s", settings)
        self.settings_accepted.emit(settings)
        super().accept()
