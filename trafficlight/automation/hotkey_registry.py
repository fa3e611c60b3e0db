"""Live action->combo bindings and their registration with a global hotkey backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from trafficlight.automation.errors import HotkeyError, RegistrationConflict, RegistrationFailure
from trafficlight.models.hotkeys import Action, Combo, find_duplicate_combos

logger = logging.getLogger(__name__)


class HotkeyBackend(ABC):
    """Environment side of global hotkeys. Implementations report failure as False, never raise."""

    @abstractmethod
    def register(self, combo: Combo, callback: Callable[[], None]) -> bool:
        """Bind combo system-wide; callback runs on every press."""

    @abstractmethod
    def unregister(self, combo: Combo) -> None:
        """Release combo. Unknown combos are ignored."""


class HotkeyRegistry:
    """Source of truth for which combo triggers which action.

    Two maps are kept: the combos registered right now, and the last-known-good
    map (the most recent one that registered completely). register_all never
    leaves a partial set behind: on failure it falls back to the last-known-good
    map before raising.
    """

    def __init__(self, backend: HotkeyBackend, on_trigger: Optional[Callable[[Action], None]] = None) -> None:
        self._backend = backend
        self._on_trigger = on_trigger
        self._registered: dict[Combo, Action] = {}
        self._good: dict[Action, Combo] = {}
        self._live = False

    def set_trigger_handler(self, on_trigger: Optional[Callable[[Action], None]]) -> None:
        self._on_trigger = on_trigger

    # --- queries ---

    @property
    def is_live(self) -> bool:
        """False after a restore of the last-known-good map itself failed."""
        return self._live

    def bindings(self) -> dict[Action, Combo]:
        return dict(self._good)

    def combo_for(self, action: Action) -> Optional[Combo]:
        return self._good.get(action)

    def action_for(self, combo: Combo) -> Optional[Action]:
        """Action that owns combo in the last-known-good map."""
        for action, bound in self._good.items():
            if bound == combo:
                return action
        return None

    def is_taken(self, combo: Combo) -> bool:
        return combo in self._registered

    def registered_combos(self) -> set[Combo]:
        return set(self._registered)

    # --- mutations ---

    def register_all(self, mapping: dict[Action, Combo]) -> None:
        """Replace every live binding with mapping.

        Raises RegistrationConflict (nothing touched) when two actions share a
        combo, and RegistrationFailure after rolling back when the backend
        refuses one.
        """
        duplicates = find_duplicate_combos(mapping)
        if duplicates:
            combo, actions = next(iter(duplicates.items()))
            raise RegistrationConflict(combo, tuple(actions))
        self.unregister_all()
        for action in Action:
            combo = mapping.get(action)
            if combo is None:
                continue
            if not self.register_one(action, combo):
                logger.warning("Registration of %s for %s failed; restoring previous hotkeys", combo, action.value)
                self.unregister_all()
                restored = self._restore_good()
                raise RegistrationFailure(action, combo, restored=restored)
        self._good = dict(mapping)
        self._live = True
        logger.info("Hotkeys registered: %s", ", ".join(f"{a.value}={c}" for a, c in self._good.items()))

    def register_with_fallback(self, mapping: dict[Action, Combo], fallback: dict[Action, Combo]) -> bool:
        """Register mapping, or fallback if mapping is rejected. True only if mapping itself went live."""
        try:
            self.register_all(mapping)
            return True
        except HotkeyError as e:
            logger.warning("Hotkeys rejected (%s); trying defaults", e)
        if fallback != mapping:
            try:
                self.register_all(fallback)
            except HotkeyError as e:
                logger.error("Default hotkeys rejected too: %s", e)
        return False

    def register_one(self, action: Action, combo: Combo) -> bool:
        """Register a single binding. True if it is live afterwards."""
        owner = self._registered.get(combo)
        if owner is action:
            return True
        if owner is not None:
            logger.debug("register_one(%s, %s) refused: bound to %s", action.value, combo, owner.value)
            return False
        if not self._backend.register(combo, lambda a=action: self._trigger(a)):
            return False
        self._registered[combo] = action
        return True

    def unregister(self, combo: Optional[Combo]) -> None:
        """Release one live combo; no-op when it is not registered."""
        if combo is None or combo not in self._registered:
            return
        del self._registered[combo]
        self._backend.unregister(combo)

    def unregister_all(self) -> None:
        for combo in list(self._registered):
            self.unregister(combo)

    # --- internals ---

    def _restore_good(self) -> bool:
        for action, combo in self._good.items():
            if not self.register_one(action, combo):
                logger.error("Could not restore %s for %s; global hotkeys disabled", combo, action.value)
                self.unregister_all()
                self._live = False
                return False
        self._live = bool(self._good)
        return True

    def _trigger(self, action: Action) -> None:
        if self._on_trigger is not None:
            self._on_trigger(action)
