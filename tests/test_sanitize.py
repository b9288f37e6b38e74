"""Tests for core.sanitize (observation cleaning and duration inference)."""
from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.sanitize import (
    median,
    most_common,
    parse_timestamp,
    sanitize_observations,
    short_label,
    to_number,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _row(
    offset_sec: Optional[float],
    count: Optional[str] = "1",
    duration: Optional[str] = None,
    vehicle_type: Optional[str] = None,
) -> dict:
    """One binding starting offset_sec after T0."""
    row = {}
    if offset_sec is not None:
        stamp = (T0 + timedelta(seconds=offset_sec)).isoformat().replace("+00:00", "Z")
        row["startTime"] = {"type": "literal", "value": stamp}
    if count is not None:
        row["count"] = {"type": "literal", "value": count}
    if duration is not None:
        row["duration"] = {"type": "literal", "value": duration}
    if vehicle_type is not None:
        row["vehicleType"] = {"type": "uri", "value": vehicle_type}
    return row


def _offsets(observations) -> list:
    return [(o.start - T0).total_seconds() for o in observations]


class TestSanitizeObservations(unittest.TestCase):

    def test_mode_duration_fills_contiguous_gap(self):
        rows = [_row(0, "5"), _row(60, "7", "PT60S"), _row(120, "3")]

        result = sanitize_observations(rows)

        self.assertEqual([o.duration_sec for o in result], [60, 60, 0])
        self.assertEqual([o.count for o in result], [5, 7, 3])
        self.assertEqual(result[0].end, T0 + timedelta(seconds=60))
        self.assertEqual(result[2].end, result[2].start)

    def test_no_inference_across_large_gap(self):
        rows = [_row(0, "5"), _row(60, "7", "PT60S"), _row(120, "3"), _row(600, "2")]

        result = sanitize_observations(rows)

        self.assertEqual([o.duration_sec for o in result], [60, 60, 0, 0])

    def test_median_of_start_deltas_when_no_durations(self):
        rows = [_row(0), _row(60), _row(121), _row(180), _row(300)]

        result = sanitize_observations(rows)

        # deltas 60, 61, 59, 120 -> median 60.5 -> 61; 180+61 misses 300
        self.assertEqual([o.duration_sec for o in result], [61, 61, 61, 0, 0])

    def test_mismatch_beyond_tolerance_keeps_zero(self):
        rows = [_row(0), _row(63, duration="PT60S"), _row(123, duration="PT60S")]

        result = sanitize_observations(rows)

        self.assertEqual(result[0].duration_sec, 0)

    def test_tolerance_is_tunable(self):
        rows = [_row(0), _row(63, duration="PT60S"), _row(123, duration="PT60S")]

        result = sanitize_observations(rows, tolerance_sec=5)

        self.assertEqual(result[0].duration_sec, 60)

    def test_no_typical_duration_means_no_inference(self):
        result = sanitize_observations([_row(0), _row(0)])

        self.assertEqual([o.duration_sec for o in result], [0, 0])

    def test_sorts_by_start_and_keeps_tie_order(self):
        rows = [_row(120, "3"), _row(0, "1"), _row(0, "2")]

        result = sanitize_observations(rows)

        self.assertEqual(_offsets(result), [0, 0, 120])
        self.assertEqual([o.count for o in result], [1, 2, 3])
        self.assertIs(result[2].raw, rows[0])

    def test_drops_rows_missing_required_fields(self):
        rows = [
            _row(None, "1"),
            _row(10, None),
            _row(20, "many"),
            _row(30, "NaN"),
            {"startTime": {"type": "literal", "value": "not a date"}, "count": {"type": "literal", "value": "1"}},
            _row(40, "4"),
        ]

        result = sanitize_observations(rows)

        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].count, 4)

    def test_drops_negative_counts_keeps_fractional(self):
        result = sanitize_observations([_row(0, "-3"), _row(60, "0"), _row(120, "2.5")])

        self.assertEqual([o.count for o in result], [0, 2.5])
        self.assertEqual(_offsets(result), [60, 120])

    def test_fractional_duration_is_rounded(self):
        result = sanitize_observations([_row(0, duration="PT59.6S")])

        self.assertEqual(result[0].duration_sec, 60)
        self.assertEqual(result[0].end - result[0].start, timedelta(seconds=60))

    def test_vehicle_type_label(self):
        rows = [
            _row(0, vehicle_type="https://ex.org/vehicle#Car"),
            _row(60, vehicle_type="https://ex.org/vehicle/Truck"),
            _row(120),
        ]

        result = sanitize_observations(rows)

        self.assertEqual([o.vehicle_type for o in result], ["Car", "Truck", "unknown"])

    def test_start_ms(self):
        result = sanitize_observations([_row(1.5, duration="PT1S")])

        self.assertEqual(result[0].start_ms, int(T0.timestamp() * 1000) + 1500)
        self.assertEqual(result[0].end_ms, result[0].start_ms + 1000)

    def test_empty_input(self):
        self.assertEqual(sanitize_observations([]), [])


class TestHelpers(unittest.TestCase):

    def test_most_common(self):
        self.assertEqual(most_common([60, 30, 60]), 60)
        self.assertEqual(most_common([30, 60, 30, 60]), 30)
        self.assertIsNone(most_common([]))

    def test_median(self):
        self.assertEqual(median([3, 1, 2]), 2)
        self.assertEqual(median([60, 61]), 61)
        self.assertEqual(median([10, 20]), 15)
        self.assertIsNone(median([]))

    def test_short_label(self):
        self.assertEqual(short_label("http://ex.org/a/b#Bike"), "Bike")
        self.assertEqual(short_label("http://ex.org/a/"), "http://ex.org/a/")
        self.assertEqual(short_label("plain"), "plain")
        self.assertEqual(short_label(None), "unknown")

    def test_to_number(self):
        self.assertEqual(to_number("12"), 12.0)
        self.assertEqual(to_number("-1.5"), -1.5)
        self.assertIsNone(to_number(None))
        self.assertIsNone(to_number(""))
        self.assertIsNone(to_number("inf"))

    def test_parse_timestamp_with_offset(self):
        self.assertEqual(parse_timestamp("2024-01-01T01:00:00+01:00"), T0)
        self.assertEqual(parse_timestamp("2024-01-01T00:00:00"), T0)
        self.assertIsNone(parse_timestamp("yesterday-ish"))
        self.assertIsNone(parse_timestamp(None))


if __name__ == "__main__":
    unittest.main()
