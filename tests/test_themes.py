import unittest

from trafficlight.ui.themes import load_theme, theme_path


class ThemeTests(unittest.TestCase):
    def test_dark_theme_styles_the_window(self) -> None:
        qss = load_theme("dark")
        self.assertIn("#countdownLabel", qss)
        self.assertIn("#hotkeyButton", qss)

    def test_unknown_theme_falls_back_to_dark(self) -> None:
        self.assertFalse(theme_path("neon").exists())
        self.assertEqual(load_theme("neon"), load_theme("dark"))


if __name__ == "__main__":
    unittest.main()
