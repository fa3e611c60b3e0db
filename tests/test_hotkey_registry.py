import unittest

from fakes import FakeBackend

from trafficlight.automation.errors import RegistrationConflict, RegistrationFailure
from trafficlight.automation.hotkey_registry import HotkeyRegistry
from trafficlight.models.hotkeys import DEFAULT_HOTKEYS, Action, Combo

CTRL_G = Combo(("Ctrl",), "G")
CTRL_K = Combo(("Ctrl",), "K")


class HotkeyRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = FakeBackend()
        self.triggered: list[Action] = []
        self.registry = HotkeyRegistry(self.backend, on_trigger=self.triggered.append)

    def test_register_all_then_is_taken_for_exactly_the_mapped_combos(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        for combo in DEFAULT_HOTKEYS.values():
            self.assertTrue(self.registry.is_taken(combo))
        self.assertFalse(self.registry.is_taken(CTRL_G))
        self.assertEqual(set(self.backend.live), set(DEFAULT_HOTKEYS.values()))
        self.assertTrue(self.registry.is_live)
        self.assertEqual(self.registry.bindings(), DEFAULT_HOTKEYS)

    def test_register_all_replaces_previous_bindings(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        mapping = dict(DEFAULT_HOTKEYS)
        mapping[Action.GREEN] = CTRL_G
        self.registry.register_all(mapping)
        self.assertFalse(self.registry.is_taken(DEFAULT_HOTKEYS[Action.GREEN]))
        self.assertNotIn(DEFAULT_HOTKEYS[Action.GREEN], self.backend.live)
        self.assertEqual(self.registry.combo_for(Action.GREEN), CTRL_G)
        self.assertIs(self.registry.action_for(CTRL_G), Action.GREEN)

    def test_duplicate_map_is_rejected_without_touching_anything(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.backend.calls.clear()
        mapping = dict(DEFAULT_HOTKEYS)
        mapping[Action.RED] = mapping[Action.GREEN]
        with self.assertRaises(RegistrationConflict) as ctx:
            self.registry.register_all(mapping)
        self.assertEqual(ctx.exception.actions, (Action.GREEN, Action.RED))
        self.assertEqual(self.backend.calls, [])
        self.assertEqual(self.registry.bindings(), DEFAULT_HOTKEYS)

    def test_failed_registration_restores_last_known_good_map(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.backend.refuse.add(CTRL_K)
        mapping = dict(DEFAULT_HOTKEYS)
        mapping[Action.RED] = CTRL_K
        with self.assertRaises(RegistrationFailure) as ctx:
            self.registry.register_all(mapping)
        self.assertIs(ctx.exception.action, Action.RED)
        self.assertEqual(ctx.exception.combo, CTRL_K)
        self.assertTrue(ctx.exception.restored)
        self.assertEqual(set(self.backend.live), set(DEFAULT_HOTKEYS.values()))
        self.assertEqual(self.registry.bindings(), DEFAULT_HOTKEYS)
        self.assertTrue(self.registry.is_live)

    def test_failed_restore_releases_everything(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.backend.refuse.update({CTRL_G, DEFAULT_HOTKEYS[Action.YELLOW]})
        mapping = dict(DEFAULT_HOTKEYS)
        mapping[Action.GREEN] = CTRL_G
        with self.assertRaises(RegistrationFailure) as ctx:
            self.registry.register_all(mapping)
        self.assertFalse(ctx.exception.restored)
        self.assertFalse(self.registry.is_live)
        self.assertEqual(self.backend.live, {})
        self.assertEqual(self.registry.registered_combos(), set())

    def test_trigger_routes_to_action(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.backend.press(DEFAULT_HOTKEYS[Action.TIMER_ALT])
        self.backend.press(DEFAULT_HOTKEYS[Action.YELLOW])
        self.assertEqual(self.triggered, [Action.TIMER_ALT, Action.YELLOW])

    def test_register_one_and_unregister_are_safe(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.registry.unregister(CTRL_G)
        self.registry.unregister(None)
        self.assertTrue(self.registry.register_one(Action.GREEN, DEFAULT_HOTKEYS[Action.GREEN]))
        self.assertFalse(self.registry.register_one(Action.RED, DEFAULT_HOTKEYS[Action.GREEN]))
        self.registry.unregister(DEFAULT_HOTKEYS[Action.GREEN])
        self.assertFalse(self.registry.is_taken(DEFAULT_HOTKEYS[Action.GREEN]))
        # the last-known-good map is not affected by single unregisters
        self.assertEqual(self.registry.combo_for(Action.GREEN), DEFAULT_HOTKEYS[Action.GREEN])

    def test_register_with_fallback(self) -> None:
        saved = dict(DEFAULT_HOTKEYS)
        saved[Action.GREEN] = CTRL_K
        self.backend.refuse.add(CTRL_K)
        self.assertFalse(self.registry.register_with_fallback(saved, DEFAULT_HOTKEYS))
        self.assertTrue(self.registry.is_live)
        self.assertEqual(self.registry.bindings(), DEFAULT_HOTKEYS)

    def test_unregister_all(self) -> None:
        self.registry.register_all(DEFAULT_HOTKEYS)
        self.registry.unregister_all()
        self.assertEqual(self.backend.live, {})


if __name__ == "__main__":
    unittest.main()
