"""Scheduler on QTimer; callbacks run on the Qt event loop."""

from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import QElapsedTimer, QObject, Qt, QTimer

from trafficlight.core.scheduler import Scheduler, TimerHandle


class _QtHandle(TimerHandle):
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()


class QtScheduler(Scheduler):
    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        self._clock = QElapsedTimer()
        self._clock.start()

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {interval_ms}")
        timer = QTimer(self._parent)
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.setInterval(int(interval_ms))
        handle = _QtHandle(timer)

        def fire() -> None:
            # A queued timeout may still arrive after stop(); drop it
            if handle.active:
                callback()

        timer.timeout.connect(fire)
        timer.start()
        return handle

    def now(self) -> int:
        return int(self._clock.elapsed())
