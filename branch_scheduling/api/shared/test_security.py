"""
Tests for api/shared/security.py

Runs with `bench run-tests`.
"""

import unittest

from branch_scheduling.api.shared.security import sanitize_string


class TestSanitizeString(unittest.TestCase):
    """Tests for sanitize_string."""

    def test_empty_input_returns_none(self):
        self.assertIsNone(sanitize_string(None))
        self.assertIsNone(sanitize_string(""))

    def test_strips_and_truncates(self):
        self.assertEqual(sanitize_string("  Dentista  "), "Dentista")
        self.assertEqual(sanitize_string("abcdef", max_length=3), "abc")

    def test_drops_control_characters(self):
        self.assertEqual(sanitize_string("Sede\x00 Norte\x07"), "Sede Norte")


if __name__ == "__main__":
    unittest.main()
