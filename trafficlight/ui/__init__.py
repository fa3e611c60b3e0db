from trafficlight.ui.main_window import MainWindow
from trafficlight.ui.qt_scheduler import QtScheduler
from trafficlight.ui.settings_dialog import SettingsDialog

__all__ = ["MainWindow", "QtScheduler", "SettingsDialog"]
