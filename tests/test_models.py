import unittest

from trafficlight.models.hotkeys import (
    DEFAULT_HOTKEYS,
    Action,
    Combo,
    KeyEvent,
    combo_from_key_event,
    find_duplicate_combos,
    hotkeys_to_dict,
)
from trafficlight.models.signal import (
    HoldColor,
    LightColor,
    TimerConfig,
    format_remaining,
    progress_fraction,
)


class ComboParseTests(unittest.TestCase):
    def test_parse_is_case_insensitive_and_canonical(self) -> None:
        combo = Combo.parse("shift+CTRL+x")
        self.assertEqual(combo.modifiers, ("Ctrl", "Shift"))
        self.assertEqual(combo.key, "X")
        self.assertEqual(str(combo), "Ctrl+Shift+X")

    def test_modifier_and_key_aliases(self) -> None:
        self.assertEqual(Combo.parse("Cmd+Return"), Combo(("Meta",), "Enter"))
        self.assertEqual(Combo.parse("Control+Alt+space"), Combo(("Ctrl", "Alt"), "Space"))
        self.assertEqual(Combo.parse("win+f13"), Combo(("Meta",), "F13"))

    def test_plus_key_as_terminal(self) -> None:
        combo = Combo.parse("Ctrl++")
        self.assertEqual(combo.modifiers, ("Ctrl",))
        self.assertEqual(combo.key, "+")

    def test_bare_plus_key(self) -> None:
        combo = Combo.parse("+")
        self.assertEqual(combo, Combo((), "+"))
        self.assertEqual(Combo.parse(str(combo)), combo)
        self.assertEqual(Combo.parse(str(Combo(("Alt",), "+"))), Combo(("Alt",), "+"))

    def test_bare_function_key(self) -> None:
        combo = Combo.parse("F5")
        self.assertEqual(combo.modifiers, ())
        self.assertEqual(str(combo), "F5")

    def test_rejects_missing_or_extra_terminal(self) -> None:
        for text in ("", "Alt", "Ctrl+Shift", "Alt+G+H", "Alt++G", "Alt+Escape", "Alt+Backspace"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    Combo.parse(text)

    def test_rejects_unknown_modifier(self) -> None:
        with self.assertRaises(ValueError):
            Combo(("Hyper",), "G")

    def test_keyboard_hotkey_names(self) -> None:
        self.assertEqual(Combo(("Alt", "Ctrl"), "G").keyboard_hotkey(), "ctrl+alt+g")
        self.assertEqual(Combo(("Meta",), "Space").keyboard_hotkey(), "windows+space")
        self.assertEqual(Combo((), "F5").keyboard_hotkey(), "f5")


class KeyEventTests(unittest.TestCase):
    def test_candidate_combo_uses_held_modifiers(self) -> None:
        combo = combo_from_key_event(KeyEvent("g", ctrl=True, shift=True))
        self.assertEqual(combo, Combo(("Ctrl", "Shift"), "G"))

    def test_modifier_only_escape_and_unsupported_keys_yield_nothing(self) -> None:
        self.assertIsNone(combo_from_key_event(KeyEvent("Control", ctrl=True)))
        self.assertIsNone(combo_from_key_event(KeyEvent("Shift", shift=True)))
        self.assertIsNone(combo_from_key_event(KeyEvent("Escape")))
        self.assertIsNone(combo_from_key_event(KeyEvent("Backspace", alt=True)))

    def test_flags(self) -> None:
        self.assertTrue(KeyEvent("Escape").is_escape)
        self.assertTrue(KeyEvent("Alt", alt=True).is_modifier_only)
        self.assertFalse(KeyEvent("A", alt=True).is_modifier_only)


class HotkeyMapTests(unittest.TestCase):
    def test_default_map_persisted_names(self) -> None:
        self.assertEqual(
            hotkeys_to_dict(DEFAULT_HOTKEYS),
            {"green": "Alt+G", "yellow": "Alt+Y", "red": "Alt+R", "timer": "Alt+S", "timerRed": "Alt+A"},
        )

    def test_find_duplicate_combos(self) -> None:
        mapping = dict(DEFAULT_HOTKEYS)
        self.assertEqual(find_duplicate_combos(mapping), {})
        mapping[Action.RED] = mapping[Action.GREEN]
        self.assertEqual(
            find_duplicate_combos(mapping),
            {Combo(("Alt",), "G"): [Action.GREEN, Action.RED]},
        )


class SignalModelTests(unittest.TestCase):
    def test_hold_color_parse_and_complement(self) -> None:
        self.assertIs(HoldColor.parse("RED"), HoldColor.RED)
        self.assertIs(HoldColor.parse("blue"), HoldColor.GREEN)
        self.assertIs(HoldColor.parse(None, HoldColor.RED), HoldColor.RED)
        self.assertIs(HoldColor.GREEN.complement, HoldColor.RED)
        self.assertIs(HoldColor.RED.light, LightColor.RED)

    def test_timer_config_rejects_non_positive_and_non_integer(self) -> None:
        for kwargs in ({"hold_duration": 0}, {"warn_duration": -5}, {"flash_interval": 1.5}, {"hold_duration": True}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    TimerConfig(**kwargs)
        self.assertEqual(TimerConfig(), TimerConfig(30000, 20000, 500))

    def test_progress_fraction_is_clamped(self) -> None:
        self.assertEqual(progress_fraction(0, 5), 0.0)
        self.assertEqual(progress_fraction(100, 150), 0.0)
        self.assertEqual(progress_fraction(100, 0), 1.0)
        self.assertAlmostEqual(progress_fraction(30000, 7500), 0.75)

    def test_format_remaining_rounds_up(self) -> None:
        self.assertEqual(format_remaining(0), "00:00")
        self.assertEqual(format_remaining(1), "00:01")
        self.assertEqual(format_remaining(59999), "01:00")
        self.assertEqual(format_remaining(61000), "01:01")


if __name__ == "__main__":
    unittest.main()
