"""Tests for components.observation_chart (frame bucketing and gap series)."""
from __future__ import annotations

import math
import unittest
from datetime import datetime, timedelta, timezone

from core.sanitize import SanitizedObservation
from components.observation_chart import Frame, build_chart_series, build_frames

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T0_MS = int(T0.timestamp() * 1000)


def _obs(offset_sec: int, duration_sec: int, count: float) -> SanitizedObservation:
    start = T0 + timedelta(seconds=offset_sec)
    return SanitizedObservation(
        start=start,
        duration_sec=duration_sec,
        end=start + timedelta(seconds=duration_sec),
        count=count,
        vehicle_type="unknown",
        raw={},
    )


class TestBuildFrames(unittest.TestCase):

    def test_sums_counts_per_window(self):
        frames = build_frames([_obs(60, 60, 2), _obs(0, 60, 1), _obs(0, 60, 4), _obs(0, 30, 8)])

        self.assertEqual(
            [(f.start_ms - T0_MS, f.end_ms - T0_MS, f.count) for f in frames],
            [(0, 60000, 5), (0, 30000, 8), (60000, 120000, 2)],
        )

    def test_empty(self):
        self.assertEqual(build_frames([]), [])


class TestBuildChartSeries(unittest.TestCase):

    def test_contiguous_frames_have_no_gap(self):
        frames = [Frame(0, 60000, 1), Frame(60000, 120000, 2), Frame(121000, 180000, 3)]

        series = build_chart_series(frames)

        self.assertEqual(list(series["value"]), [1.0, 2.0, 3.0])

    def test_gap_inserts_break_point(self):
        frames = [Frame(0, 60000, 1), Frame(62000, 120000, 2)]

        series = build_chart_series(frames)

        self.assertEqual(len(series), 3)
        self.assertTrue(math.isnan(series["value"].iloc[1]))
        self.assertEqual(series["time"].iloc[1].value // 1_000_000, 61999)
        self.assertEqual(series["value"].iloc[2], 2.0)

    def test_threshold_is_tunable(self):
        frames = [Frame(0, 60000, 1), Frame(62000, 120000, 2)]

        self.assertEqual(len(build_chart_series(frames, gap_threshold_ms=5000)), 2)

    def test_empty(self):
        series = build_chart_series([])

        self.assertTrue(series.empty)
        self.assertEqual(list(series.columns), ["time", "value"])


if __name__ == "__main__":
    unittest.main()
