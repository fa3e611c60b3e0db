import unittest

from PyQt6.QtCore import QCoreApplication, QEventLoop, QTimer

from trafficlight.core.events import EventBus
from trafficlight.models.signal import HoldColor, LightColor, Phase, TimerConfig
from trafficlight.timer.engine import TimerEngine
from trafficlight.ui.qt_scheduler import QtScheduler


class QtSchedulerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.app = QCoreApplication.instance() or QCoreApplication([])

    def _run_for(self, ms: int) -> None:
        loop = QEventLoop()
        QTimer.singleShot(ms, loop.quit)
        loop.exec()

    def test_fires_repeatedly_until_cancelled(self) -> None:
        sched = QtScheduler()
        fired: list[int] = []
        handle = sched.call_every(10, lambda: fired.append(sched.now()))
        self.assertTrue(handle.active)
        self._run_for(150)
        self.assertGreaterEqual(len(fired), 3)
        handle.cancel()
        self.assertFalse(handle.active)
        count = len(fired)
        self._run_for(60)
        self.assertEqual(len(fired), count)
        self.assertEqual(fired, sorted(fired))

    def test_cancel_from_inside_callback(self) -> None:
        sched = QtScheduler()
        fired: list[int] = []
        holder: dict = {}

        def once() -> None:
            fired.append(1)
            holder["handle"].cancel()

        holder["handle"] = sched.call_every(10, once)
        self._run_for(100)
        self.assertEqual(fired, [1])

    def test_engine_completes_on_qt_clock(self) -> None:
        engine = TimerEngine(QtScheduler(), EventBus(), TimerConfig(50, 50, 10), tick_interval=10)
        engine.start(HoldColor.GREEN)
        self._run_for(500)
        self.assertIs(engine.state.phase, Phase.DONE)
        self.assertIs(engine.light, LightColor.RED)

    def test_rejects_non_positive_interval(self) -> None:
        with self.assertRaises(ValueError):
            QtScheduler().call_every(0, lambda: None)


if __name__ == "__main__":
    unittest.main()
