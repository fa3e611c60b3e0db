import unittest

from fakes import FakeBackend

from trafficlight.automation.errors import RegistrationConflict, RegistrationFailure, SessionBusy
from trafficlight.automation.hotkey_registry import HotkeyRegistry
from trafficlight.automation.rebind import RebindCoordinator, RebindState
from trafficlight.core.events import EventBus, EventRecorder, EventType
from trafficlight.core.scheduler import ManualScheduler
from trafficlight.models.hotkeys import DEFAULT_HOTKEYS, Action, Combo, KeyEvent

CTRL_SHIFT_G = Combo(("Ctrl", "Shift"), "G")


class RebindCoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = FakeBackend()
        self.registry = HotkeyRegistry(self.backend)
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.sched = ManualScheduler()
        self.bus = EventBus()
        self.events = EventRecorder(self.bus)
        self.committed: list[dict] = []
        self.coordinator = RebindCoordinator(
            self.registry, self.sched, self.bus, on_commit=self.committed.append
        )

    def assert_registry_unchanged(self) -> None:
        self.assertEqual(self.registry.bindings(), DEFAULT_HOTKEYS)
        self.assertEqual(set(self.backend.live), set(DEFAULT_HOTKEYS.values()))

    def test_begin_releases_prior_combo_and_starts_countdown(self) -> None:
        self.assertTrue(self.coordinator.begin(Action.YELLOW))
        self.assertIs(self.coordinator.state, RebindState.AWAITING_KEY)
        self.assertFalse(self.registry.is_taken(DEFAULT_HOTKEYS[Action.YELLOW]))
        began = self.events.of_type(EventType.REBIND_BEGAN)
        self.assertEqual(
            began,
            [{"action": Action.YELLOW, "prior_combo": DEFAULT_HOTKEYS[Action.YELLOW], "seconds_left": 10}],
        )
        session = self.coordinator.session
        self.assertEqual(session.deadline, 10000)

    def test_rebinding_to_own_combo_succeeds_unchanged(self) -> None:
        self.coordinator.begin(Action.YELLOW)
        self.assertTrue(self.coordinator.handle_key_event(KeyEvent("y", alt=True)))
        self.assertIs(self.coordinator.state, RebindState.IDLE)
        self.assert_registry_unchanged()
        self.assertEqual(self.events.of_type(EventType.REBIND_FAILED), [])
        succeeded = self.events.of_type(EventType.REBIND_SUCCEEDED)
        self.assertTrue(succeeded[0]["unchanged"])
        self.assertEqual(self.committed, [])

    def test_conflict_leaves_map_unchanged(self) -> None:
        self.coordinator.begin(Action.GREEN)
        outcome = self.coordinator.complete(DEFAULT_HOTKEYS[Action.RED])
        self.assertFalse(outcome.success)
        self.assertIsInstance(outcome.error, RegistrationConflict)
        self.assertEqual(outcome.error.actions, (Action.RED,))
        self.assert_registry_unchanged()
        failed = self.events.of_type(EventType.REBIND_FAILED)
        self.assertEqual(len(failed), 1)
        self.assertIsInstance(failed[0]["error"], RegistrationConflict)
        self.assertFalse(self.coordinator.is_active)
        self.assertEqual(self.sched.pending(), 0)

    def test_successful_rebind_commits_and_persists(self) -> None:
        self.coordinator.begin(Action.GREEN)
        outcome = self.coordinator.complete(CTRL_SHIFT_G)
        self.assertTrue(outcome.success)
        self.assertFalse(outcome.unchanged)
        expected = dict(DEFAULT_HOTKEYS)
        expected[Action.GREEN] = CTRL_SHIFT_G
        self.assertEqual(self.registry.bindings(), expected)
        self.assertEqual(set(self.backend.live), set(expected.values()))
        self.assertEqual(self.committed, [expected])
        succeeded = self.events.of_type(EventType.REBIND_SUCCEEDED)
        self.assertEqual(succeeded[0]["bindings"], expected)
        self.assertEqual(self.sched.pending(), 0)

    def test_timeout_restores_prior_binding(self) -> None:
        self.coordinator.begin(Action.RED)
        self.sched.advance(9000)
        self.assertTrue(self.coordinator.is_active)
        countdown = [p["seconds_left"] for p in self.events.of_type(EventType.REBIND_COUNTDOWN)]
        self.assertEqual(countdown, [9, 8, 7, 6, 5, 4, 3, 2, 1])
        self.sched.advance(1000)
        self.assertFalse(self.coordinator.is_active)
        cancelled = self.events.of_type(EventType.REBIND_CANCELLED)
        self.assertEqual(
            cancelled,
            [{"action": Action.RED, "combo": DEFAULT_HOTKEYS[Action.RED], "reason": "timeout"}],
        )
        self.assert_registry_unchanged()
        self.assertEqual(self.sched.pending(), 0)

    def test_escape_cancels(self) -> None:
        self.coordinator.begin(Action.TIMER)
        self.assertTrue(self.coordinator.handle_key_event(KeyEvent("Escape", ctrl=True)))
        self.assertEqual(self.events.of_type(EventType.REBIND_CANCELLED)[0]["reason"], "cancelled")
        self.assert_registry_unchanged()
        self.assertFalse(self.coordinator.cancel())

    def test_modifier_only_keys_are_ignored(self) -> None:
        self.coordinator.begin(Action.TIMER)
        self.assertFalse(self.coordinator.handle_key_event(KeyEvent("Control", ctrl=True)))
        self.assertFalse(self.coordinator.handle_key_event(KeyEvent("Backspace")))
        self.assertIs(self.coordinator.state, RebindState.AWAITING_KEY)

    def test_key_events_outside_a_session_are_ignored(self) -> None:
        self.assertFalse(self.coordinator.handle_key_event(KeyEvent("G", alt=True)))
        outcome = self.coordinator.complete(CTRL_SHIFT_G)
        self.assertFalse(outcome.success)
        self.assertIsNone(outcome.error)
        self.assert_registry_unchanged()

    def test_second_action_is_busy(self) -> None:
        self.coordinator.begin(Action.GREEN)
        self.assertFalse(self.coordinator.begin(Action.RED))
        failed = self.events.of_type(EventType.REBIND_FAILED)
        self.assertIsInstance(failed[0]["error"], SessionBusy)
        self.assertIs(self.coordinator.session.action, Action.GREEN)
        self.assertTrue(self.registry.is_taken(DEFAULT_HOTKEYS[Action.RED]))

    def test_same_action_restarts_countdown(self) -> None:
        self.coordinator.begin(Action.GREEN)
        self.sched.advance(5000)
        self.assertTrue(self.coordinator.begin(Action.GREEN))
        self.assertEqual(self.sched.pending(), 1)
        self.sched.advance(9000)
        self.assertTrue(self.coordinator.is_active)
        self.sched.advance(1000)
        self.assertFalse(self.coordinator.is_active)

    def test_environment_rejection_rolls_back(self) -> None:
        ctrl_k = Combo(("Ctrl",), "K")
        self.backend.refuse.add(ctrl_k)
        self.coordinator.begin(Action.GREEN)
        outcome = self.coordinator.complete(ctrl_k)
        self.assertIsInstance(outcome.error, RegistrationFailure)
        self.assert_registry_unchanged()
        self.assertEqual(self.committed, [])

    def test_begin_is_refused_while_committing(self) -> None:
        attempts: list[bool] = []
        coordinator = RebindCoordinator(self.registry, self.sched, self.bus)
        coordinator.set_commit_handler(lambda mapping: attempts.append(coordinator.begin(Action.RED)))
        coordinator.begin(Action.GREEN)
        self.assertTrue(coordinator.complete(CTRL_SHIFT_G).success)
        self.assertEqual(attempts, [False])
        self.assertTrue(coordinator.begin(Action.RED))

    def test_new_session_after_cancel(self) -> None:
        self.coordinator.begin(Action.GREEN)
        self.coordinator.cancel()
        self.assertTrue(self.coordinator.begin(Action.RED))
        self.assertEqual(self.sched.pending(), 1)


if __name__ == "__main__":
    unittest.main()
