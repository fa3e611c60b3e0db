"""Interactive rebind: capture the next key for one action, then commit or roll back."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from trafficlight.automation.errors import (
    HotkeyError,
    RegistrationConflict,
    RegistrationFailure,
    SessionBusy,
)
from trafficlight.automation.hotkey_registry import HotkeyRegistry
from trafficlight.core.events import EventBus, EventType
from trafficlight.core.scheduler import Scheduler, TimerHandle
from trafficlight.models.hotkeys import Action, Combo, KeyEvent, combo_from_key_event

logger = logging.getLogger(__name__)

REBIND_COUNTDOWN_SECONDS = 10
COUNTDOWN_TICK_MS = 1000


class RebindState(Enum):
    IDLE = "idle"
    AWAITING_KEY = "awaiting_key"
    COMMITTING = "committing"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass
class RebindSession:
    action: Action
    prior_combo: Optional[Combo]
    deadline: int
    seconds_left: int


@dataclass(frozen=True)
class RebindOutcome:
    success: bool
    action: Optional[Action] = None
    combo: Optional[Combo] = None
    error: Optional[HotkeyError] = None
    unchanged: bool = False


class RebindCoordinator:
    """Single-flight rebind negotiation against a HotkeyRegistry.

    begin() releases the action's current combo so the bare keys can be
    captured, then waits for handle_key_event()/complete(). The live map ends
    every session either fully on the new combo or fully on the old map.
    """

    def __init__(
        self,
        registry: HotkeyRegistry,
        scheduler: Scheduler,
        bus: EventBus,
        countdown_seconds: int = REBIND_COUNTDOWN_SECONDS,
        on_commit: Optional[Callable[[dict[Action, Combo]], None]] = None,
    ) -> None:
        if countdown_seconds <= 0:
            raise ValueError(f"countdown_seconds must be positive, got {countdown_seconds}")
        self._registry = registry
        self._scheduler = scheduler
        self._bus = bus
        self._countdown_seconds = countdown_seconds
        self._on_commit = on_commit
        self._state = RebindState.IDLE
        self._session: Optional[RebindSession] = None
        self._countdown: Optional[TimerHandle] = None

    def set_commit_handler(self, on_commit: Optional[Callable[[dict[Action, Combo]], None]]) -> None:
        self._on_commit = on_commit

    @property
    def state(self) -> RebindState:
        return self._state

    @property
    def session(self) -> Optional[RebindSession]:
        return replace(self._session) if self._session is not None else None

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def begin(self, action: Action) -> bool:
        if self._state is RebindState.COMMITTING or (
            self._session is not None and self._session.action is not action
        ):
            active = self._session.action if self._session is not None else None
            error = SessionBusy(active, action)
            logger.warning("%s", error)
            self._bus.emit(EventType.REBIND_FAILED, action=action, error=error)
            return False
        if self._session is not None:
            # Same action again: start the countdown over
            self._start_countdown()
            self._bus.emit(EventType.REBIND_COUNTDOWN, action=action, seconds_left=self._session.seconds_left)
            return True
        prior = self._registry.combo_for(action)
        self._registry.unregister(prior)
        self._session = RebindSession(action=action, prior_combo=prior, deadline=0, seconds_left=0)
        self._start_countdown()
        self._state = RebindState.AWAITING_KEY
        logger.info("Rebinding %s (currently %s)", action.value, prior)
        self._bus.emit(
            EventType.REBIND_BEGAN,
            action=action,
            prior_combo=prior,
            seconds_left=self._session.seconds_left,
        )
        return True

    def handle_key_event(self, event: KeyEvent) -> bool:
        """Feed one raw key-down. True if the event was consumed by the session."""
        if self._state is not RebindState.AWAITING_KEY:
            return False
        if event.is_escape:
            return self.cancel()
        candidate = combo_from_key_event(event)
        if candidate is None:
            logger.debug("Ignoring key %r while rebinding", event.key)
            return False
        self.complete(candidate)
        return True

    def complete(self, candidate: Combo) -> RebindOutcome:
        if self._state is not RebindState.AWAITING_KEY or self._session is None:
            logger.debug("complete(%s) ignored: no rebind waiting for a key", candidate)
            return RebindOutcome(success=False, combo=candidate)
        self._state = RebindState.COMMITTING
        self._cancel_countdown()
        session = self._session
        action = session.action

        if candidate == session.prior_combo:
            self._restore_prior()
            self._end_session()
            logger.info("Rebind %s: kept %s", action.value, candidate)
            self._bus.emit(
                EventType.REBIND_SUCCEEDED,
                action=action,
                combo=candidate,
                bindings=self._registry.bindings(),
                unchanged=True,
            )
            return RebindOutcome(success=True, action=action, combo=candidate, unchanged=True)

        owner = self._registry.action_for(candidate)
        if (owner is not None and owner is not action) or self._registry.is_taken(candidate):
            error = RegistrationConflict(candidate, (owner,) if owner is not None else ())
            self._restore_prior()
            return self._fail(action, candidate, error)

        new_map = self._registry.bindings()
        new_map[action] = candidate
        try:
            self._registry.register_all(new_map)
        except (RegistrationConflict, RegistrationFailure) as e:
            return self._fail(action, candidate, e)

        if self._on_commit is not None:
            try:
                self._on_commit(self._registry.bindings())
            except Exception as e:
                logger.exception("Persisting hotkeys failed: %s", e)
        self._end_session()
        logger.info("Rebind %s: %s -> %s", action.value, session.prior_combo, candidate)
        self._bus.emit(
            EventType.REBIND_SUCCEEDED,
            action=action,
            combo=candidate,
            bindings=self._registry.bindings(),
            unchanged=False,
        )
        return RebindOutcome(success=True, action=action, combo=candidate)

    def cancel(self) -> bool:
        if self._session is None or self._state is not RebindState.AWAITING_KEY:
            logger.debug("cancel() ignored: no rebind in progress")
            return False
        self._abort(RebindState.CANCELLED, "cancelled")
        return True

    # --- internals ---

    def _on_countdown(self) -> None:
        if self._session is None or self._state is not RebindState.AWAITING_KEY:
            return
        self._session.seconds_left -= 1
        if self._session.seconds_left > 0:
            self._bus.emit(
                EventType.REBIND_COUNTDOWN,
                action=self._session.action,
                seconds_left=self._session.seconds_left,
            )
        else:
            logger.info("Rebind %s timed out", self._session.action.value)
            self._abort(RebindState.TIMED_OUT, "timeout")

    def _abort(self, state: RebindState, reason: str) -> None:
        self._state = state
        self._cancel_countdown()
        session = self._session
        self._restore_prior()
        self._end_session()
        self._bus.emit(
            EventType.REBIND_CANCELLED,
            action=session.action,
            combo=session.prior_combo,
            reason=reason,
        )

    def _fail(self, action: Action, candidate: Combo, error: HotkeyError) -> RebindOutcome:
        self._end_session()
        logger.warning("Rebind %s to %s declined: %s", action.value, candidate, error)
        self._bus.emit(EventType.REBIND_FAILED, action=action, combo=candidate, error=error)
        return RebindOutcome(success=False, action=action, combo=candidate, error=error)

    def _restore_prior(self) -> None:
        try:
            self._registry.register_all(self._registry.bindings())
        except (RegistrationConflict, RegistrationFailure) as e:
            logger.error("Could not restore hotkeys after rebind: %s", e)

    def _start_countdown(self) -> None:
        self._cancel_countdown()
        self._session.seconds_left = self._countdown_seconds
        self._session.deadline = self._scheduler.now() + self._countdown_seconds * COUNTDOWN_TICK_MS
        self._countdown = self._scheduler.call_every(COUNTDOWN_TICK_MS, self._on_countdown)

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _end_session(self) -> None:
        self._cancel_countdown()
        self._session = None
        self._state = RebindState.IDLE
