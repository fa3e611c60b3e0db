"""Display-sink event bus. Engine and coordinator emit; the window and logging subscribe."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    LIGHT_SET = "light_set"
    FLASH_TOGGLED = "flash_toggled"
    TIMER_STARTED = "timer_started"
    TIMER_PAUSED = "timer_paused"
    TIMER_RESUMED = "timer_resumed"
    TIMER_STOPPED = "timer_stopped"
    TIMER_CLEARED = "timer_cleared"
    TIMER_COMPLETED = "timer_completed"
    TIMER_TICK = "timer_tick"
    REBIND_BEGAN = "rebind_began"
    REBIND_COUNTDOWN = "rebind_countdown"
    REBIND_SUCCEEDED = "rebind_succeeded"
    REBIND_FAILED = "rebind_failed"
    REBIND_CANCELLED = "rebind_cancelled"


class EventBus:
    """Synchronous publish/subscribe keyed by EventType."""

    def __init__(self) -> None:
        self._subscribers: dict[EventType, list[Callable[..., None]]] = {}
        self._catch_all: list[Callable[..., None]] = []

    def subscribe(self, event: EventType, callback: Callable[..., None]) -> None:
        """Call callback(**payload) whenever event is emitted."""
        self._subscribers.setdefault(event, []).append(callback)

    def subscribe_all(self, callback: Callable[..., None]) -> None:
        """Call callback(event, **payload) for every event."""
        self._catch_all.append(callback)

    def unsubscribe(self, event: EventType, callback: Callable[..., None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: EventType, **payload: Any) -> None:
        """Deliver an event. Exceptions in one subscriber are logged and do not stop others."""
        for cb in list(self._subscribers.get(event, [])):
            try:
                cb(**payload)
            except Exception as e:
                logger.exception("Subscriber for %s failed: %s", event.value, e)
        for cb in list(self._catch_all):
            try:
                cb(event, **payload)
            except Exception as e:
                logger.exception("Catch-all subscriber for %s failed: %s", event.value, e)


class EventRecorder:
    """Catch-all subscriber that keeps (event, payload) pairs in order."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self.events: list[tuple[EventType, dict[str, Any]]] = []
        if bus is not None:
            bus.subscribe_all(self)

    def __call__(self, event: EventType, **payload: Any) -> None:
        self.events.append((event, payload))

    def of_type(self, event: EventType) -> list[dict[str, Any]]:
        return [payload for ev, payload in self.events if ev is event]

    def types(self) -> list[EventType]:
        return [ev for ev, _ in self.events]

    def clear(self) -> None:
        self.events.clear()
