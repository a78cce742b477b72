"""Key registry binding and hint tests."""

from __future__ import annotations

import unittest
from unittest import mock

from tryspace.input import KeyBinding, KeyRegistry


class KeyRegistryTests(unittest.TestCase):
    def test_lookup_returns_handler_for_every_bound_key(self) -> None:
        quit_handler = mock.Mock()
        registry = KeyRegistry().register(KeyBinding(("ESC", "CTRL_C"), quit_handler, hint=("Esc", "Quit")))

        registry.lookup("ESC")()
        registry.lookup("CTRL_C")()

        self.assertEqual(quit_handler.call_count, 2)
        self.assertIsNone(registry.lookup("ENTER"))

    def test_later_binding_overrides_earlier_key(self) -> None:
        first = mock.Mock()
        second = mock.Mock()
        registry = KeyRegistry().register(KeyBinding(("TAB",), first), KeyBinding(("TAB",), second))

        self.assertIs(registry.lookup("TAB"), second)

    def test_hints_keep_registration_order_and_skip_unhinted(self) -> None:
        registry = KeyRegistry().register(
            KeyBinding(("UP",), mock.Mock()),
            KeyBinding(("ENTER",), mock.Mock(), hint=("Enter", "Select")),
            KeyBinding(("ESC",), mock.Mock(), hint=("Esc", "Quit")),
        )

        self.assertEqual(registry.hints(), (("Enter", "Select"), ("Esc", "Quit")))


if __name__ == "__main__":
    unittest.main()
