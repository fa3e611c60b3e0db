"""Timer phase engine: hold a color, flash a yellow warning, then show the complement."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from trafficlight.core.events import EventBus, EventType
from trafficlight.core.scheduler import Scheduler, TimerHandle
from trafficlight.models.signal import (
    ACTIVE_PHASES,
    TICK_INTERVAL_MS,
    HoldColor,
    LightColor,
    Phase,
    TimerConfig,
    TimerState,
    progress_fraction,
)

logger = logging.getLogger(__name__)


class TimerEngine:
    """Owns TimerState and the tick/flash sources.

    Every operation returns True when it changed state and False for a no-op.
    Nothing here raises on an invalid call: the UI fires start/pause freely
    (double clicks, key repeat) and relies on those calls being idempotent.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        bus: EventBus,
        config: Optional[TimerConfig] = None,
        tick_interval: int = TICK_INTERVAL_MS,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")
        self._scheduler = scheduler
        self._bus = bus
        self._config = config or TimerConfig()
        self._run_config = self._config
        self._tick_interval = tick_interval
        self._state = TimerState()
        self._light = LightColor.OFF
        self._flash_on = False
        self._tick_handle: Optional[TimerHandle] = None
        self._flash_handle: Optional[TimerHandle] = None

    # --- queries ---

    @property
    def state(self) -> TimerState:
        return replace(self._state)

    @property
    def config(self) -> TimerConfig:
        """Config for the next run."""
        return self._config

    @property
    def light(self) -> LightColor:
        return self._light

    @property
    def flash_on(self) -> bool:
        return self._flash_on

    @property
    def is_active(self) -> bool:
        return self._state.phase in ACTIVE_PHASES

    @property
    def is_paused(self) -> bool:
        return self._state.paused

    def total_for_phase(self) -> int:
        if self._state.phase is Phase.HOLDING:
            return self._run_config.hold_duration
        if self._state.phase is Phase.WARNING:
            return self._run_config.warn_duration
        return 0

    def progress(self) -> float:
        return progress_fraction(self.total_for_phase(), self._state.remaining)

    # --- operations ---

    def configure(self, config: TimerConfig) -> bool:
        """Use config from the next start on. A running timer keeps its own."""
        if config == self._config:
            return False
        self._config = config
        if self.is_active:
            logger.debug("Timer config stored; applies to the next run")
        return True

    def set_light(self, color: LightColor) -> bool:
        """Show a color by hand. Refused while a run owns the light."""
        if self.is_active:
            logger.debug("set_light(%s) ignored: timer is running", color.value)
            return False
        self._set_light(color)
        return True

    def start(self, mode: HoldColor) -> bool:
        if self.is_active:
            logger.debug("start(%s) ignored: already %s", mode.value, self._state.phase.value)
            return False
        self._release_handles()
        self._run_config = self._config
        self._state = TimerState(
            phase=Phase.HOLDING,
            mode=mode,
            remaining=self._run_config.hold_duration,
            paused=False,
        )
        self._flash_on = False
        self._set_light(mode.light)
        self._bus.emit(
            EventType.TIMER_STARTED,
            mode=mode,
            phase=Phase.HOLDING,
            remaining=self._state.remaining,
            total=self._run_config.hold_duration,
        )
        self._tick_handle = self._scheduler.call_every(self._tick_interval, self._on_tick)
        logger.info("Timer started: hold %s for %d ms", mode.value, self._run_config.hold_duration)
        return True

    def pause(self) -> bool:
        if not self.is_active or self._state.paused:
            logger.debug("pause() ignored in %s (paused=%s)", self._state.phase.value, self._state.paused)
            return False
        self._state.paused = True
        self._bus.emit(EventType.TIMER_PAUSED, phase=self._state.phase, remaining=self._state.remaining)
        return True

    def resume(self) -> bool:
        if not self.is_active or not self._state.paused:
            logger.debug("resume() ignored in %s (paused=%s)", self._state.phase.value, self._state.paused)
            return False
        self._state.paused = False
        self._bus.emit(EventType.TIMER_RESUMED, phase=self._state.phase, remaining=self._state.remaining)
        return True

    def toggle_pause(self) -> bool:
        if self._state.paused:
            return self.resume()
        return self.pause()

    def tick(self, delta: int) -> bool:
        """Advance the clock of the current phase by delta ms. Negative deltas are ignored."""
        if self._state.paused or not self.is_active:
            return False
        delta = max(0, int(delta))
        self._state.remaining = max(0, self._state.remaining - delta)
        if self._state.remaining > 0:
            self._bus.emit(
                EventType.TIMER_TICK,
                phase=self._state.phase,
                remaining=self._state.remaining,
                total=self.total_for_phase(),
            )
        else:
            self._advance()
        return True

    def stop(self) -> bool:
        if self._state.phase is Phase.IDLE:
            logger.debug("stop() ignored: idle")
            return False
        self._reset()
        self._bus.emit(EventType.TIMER_STOPPED)
        logger.info("Timer stopped")
        return True

    def clear(self) -> bool:
        """Like stop(), but reports timer_cleared instead of timer_stopped and blanks the light."""
        if self._state.phase is Phase.IDLE and self._light is LightColor.OFF:
            logger.debug("clear() ignored: idle and dark")
            return False
        if self._state.phase is not Phase.IDLE:
            self._reset()
            logger.info("Timer cleared")
        self._bus.emit(EventType.TIMER_CLEARED)
        self._set_light(LightColor.OFF)
        return True

    # --- internals ---

    def _on_tick(self) -> None:
        self.tick(self._tick_interval)

    def _on_flash(self) -> None:
        if self._state.paused or self._state.phase is not Phase.WARNING:
            return
        self._flash_on = not self._flash_on
        self._bus.emit(EventType.FLASH_TOGGLED, on=self._flash_on)

    def _advance(self) -> None:
        if self._state.phase is Phase.HOLDING:
            self._state.phase = Phase.WARNING
            self._state.remaining = self._run_config.warn_duration
            self._flash_on = True
            self._set_light(LightColor.YELLOW, flashing=True)
            self._bus.emit(
                EventType.TIMER_TICK,
                phase=Phase.WARNING,
                remaining=self._state.remaining,
                total=self._run_config.warn_duration,
            )
            self._cancel_flash()
            self._flash_handle = self._scheduler.call_every(self._run_config.flash_interval, self._on_flash)
            logger.info("Timer warning: %d ms", self._run_config.warn_duration)
        elif self._state.phase is Phase.WARNING:
            self._release_handles()
            mode = self._state.mode
            self._state.phase = Phase.DONE
            self._state.remaining = 0
            self._state.paused = False
            self._flash_on = False
            final = mode.complement.light
            self._set_light(final)
            self._bus.emit(EventType.TIMER_COMPLETED, mode=mode, light=final)
            logger.info("Timer completed: showing %s", final.value)

    def _set_light(self, color: LightColor, flashing: bool = False) -> None:
        self._light = color
        self._bus.emit(EventType.LIGHT_SET, light=color, flashing=flashing)

    def _reset(self) -> None:
        self._release_handles()
        self._state = TimerState(mode=self._state.mode)
        self._flash_on = False

    def _cancel_flash(self) -> None:
        if self._flash_handle is not None:
            self._flash_handle.cancel()
            self._flash_handle = None

    def _release_handles(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        self._cancel_flash()
