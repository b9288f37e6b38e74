"""
Observation chart for a single sensor.
Buckets sanitized observations into time frames and renders them with gaps
where consecutive frames do not touch.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd
import streamlit as st

from core.sanitize import SanitizedObservation, sanitize_observations


# Frames further apart than this are drawn with a visual break.
GAP_THRESHOLD_MS = 1500


@dataclass
class Frame:
    start_ms: int
    end_ms: int
    count: float


def build_frames(observations: Iterable[SanitizedObservation]) -> List[Frame]:
    """Sum counts per (start, duration) window, sorted by start."""
    index: dict[tuple[int, int], Frame] = {}
    for obs in observations:
        key = (obs.start_ms, obs.duration_sec)
        if key in index:
            index[key].count += obs.count
        else:
            index[key] = Frame(obs.start_ms, obs.end_ms, obs.count)
    return sorted(index.values(), key=lambda f: f.start_ms)


def build_chart_series(frames: List[Frame], gap_threshold_ms: int = GAP_THRESHOLD_MS) -> pd.DataFrame:
    """
    Turn frames into a time/value series.

    A NaN point is placed 1 ms before any frame that does not start within
    ``gap_threshold_ms`` of the previous frame's end, so the line breaks there.

    Returns:
        DataFrame with columns ``time`` (UTC) and ``value``
    """
    times: list[int] = []
    values: list[float] = []
    last_end = None
    for frame in frames:
        if last_end is not None and abs(frame.start_ms - last_end) > gap_threshold_ms:
            times.append(frame.start_ms - 1)
            values.append(float("nan"))
        times.append(frame.start_ms)
        values.append(float(frame.count))
        last_end = frame.end_ms

    return pd.DataFrame({
        "time": pd.to_datetime(pd.Series(times, dtype="int64"), unit="ms", utc=True),
        "value": pd.Series(values, dtype="float64"),
    })


def render_observation_chart(raw_observations: Iterable[dict], height: int = 220) -> None:
    """Render the sanitized count series for one sensor."""
    series = build_chart_series(build_frames(sanitize_observations(raw_observations)))
    if series.empty:
        st.caption("_No chartable data_")
        return
    st.area_chart(series, x="time", y="value", height=height)
