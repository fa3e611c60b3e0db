from trafficlight.timer.engine import TimerEngine

__all__ = ["TimerEngine"]
