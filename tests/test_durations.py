"""Tests for core.durations."""
from __future__ import annotations

import unittest

from core.durations import parse_iso_duration


class TestParseIsoDuration(unittest.TestCase):

    def test_hours_and_minutes(self):
        self.assertEqual(parse_iso_duration("PT1H30M"), 5400)

    def test_days(self):
        self.assertEqual(parse_iso_duration("P1D"), 86400)

    def test_all_components_with_fractional_seconds(self):
        self.assertEqual(parse_iso_duration("P1DT2H3M4.5S"), 86400 + 7200 + 180 + 4.5)

    def test_explicit_zero_is_not_absent(self):
        self.assertEqual(parse_iso_duration("PT0S"), 0)

    def test_unrecognized_is_absent(self):
        for literal in (None, "", "garbage", "P", "PT", "PT5X", "1H"):
            with self.subTest(literal=literal):
                self.assertIsNone(parse_iso_duration(literal))


if __name__ == "__main__":
    unittest.main()
