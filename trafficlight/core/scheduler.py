"""Periodic scheduling with cancel handles. ManualScheduler drives tests and headless runs."""

from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle(ABC):
    """One periodic source. cancel() is synchronous: no callback runs after it returns."""

    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def active(self) -> bool:
        ...


class Scheduler(ABC):
    @abstractmethod
    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Call callback every interval_ms until the returned handle is cancelled."""

    @abstractmethod
    def now(self) -> int:
        """Monotonic time in ms."""


class _ManualHandle(TimerHandle):
    def __init__(self, scheduler: "ManualScheduler", interval_ms: int, callback: Callable[[], None], seq: int) -> None:
        self._scheduler = scheduler
        self.interval = interval_ms
        self.callback = callback
        self.seq = seq
        self.next_due = scheduler.now() + interval_ms
        self._active = True

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._scheduler._discard(self)

    @property
    def active(self) -> bool:
        return self._active


class ManualScheduler(Scheduler):
    """Virtual clock. Time only moves in advance(); due callbacks fire in order."""

    def __init__(self) -> None:
        self._now = 0
        self._handles: list[_ManualHandle] = []
        self._seq = itertools.count()

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {interval_ms}")
        handle = _ManualHandle(self, int(interval_ms), callback, next(self._seq))
        self._handles.append(handle)
        return handle

    def now(self) -> int:
        return self._now

    def pending(self) -> int:
        """Number of live periodic sources."""
        return len(self._handles)

    def advance(self, ms: int) -> None:
        """Move the clock forward by ms, firing every callback that falls due on the way."""
        if ms < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + ms
        while True:
            due = [h for h in self._handles if h.next_due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.next_due, h.seq))
            self._now = handle.next_due
            handle.next_due += handle.interval
            if handle.active:
                handle.callback()
        self._now = target

    def _discard(self, handle: _ManualHandle) -> None:
        if handle in self._handles:
            self._handles.remove(handle)
