"""
Observation Sanitizer
Normalizes raw SPARQL bindings into chartable observation records and repairs
missing durations with a mode/median heuristic.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

import pandas as pd

from core.durations import parse_iso_duration


logger = logging.getLogger(__name__)

# Allowed mismatch between a projected end and the next observation's start.
INFERENCE_TOLERANCE_SEC = 2


@dataclass(frozen=True)
class SanitizedObservation:
    """One cleaned observation; ``end`` is always ``start + duration_sec``."""
    start: datetime
    duration_sec: int
    end: datetime
    count: float
    vehicle_type: str
    raw: dict = field(repr=False, compare=False)

    @property
    def start_ms(self) -> int:
        return round(self.start.timestamp() * 1000)

    @property
    def end_ms(self) -> int:
        return round(self.end.timestamp() * 1000)


@dataclass
class _Provisional:
    start: datetime
    duration_sec: float
    count: float
    vehicle_type: str
    raw: dict


# =============================================================================
# FIELD HELPERS
# =============================================================================

def _term_value(row: dict, name: str) -> Optional[str]:
    term = row.get(name)
    if not term:
        return None
    return term.get("value")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Parse an xsd:dateTime literal; naive values are taken as UTC."""
    if not text:
        return None
    stamp = pd.to_datetime(text, utc=True, errors="coerce")
    if pd.isna(stamp):
        return None
    return stamp.to_pydatetime()


def to_number(text: Optional[str]) -> Optional[float]:
    """Parse a numeric literal, rejecting NaN and infinities."""
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def short_label(uri: Optional[str]) -> str:
    """Trailing path or fragment segment of a URI, e.g. ``.../vehicle#Car`` -> ``Car``."""
    if not uri:
        return "unknown"
    index = max(uri.rfind("/"), uri.rfind("#"))
    if index < 0:
        return uri
    return uri[index + 1:] or uri


# =============================================================================
# STATISTICS
# =============================================================================

def most_common(values: Iterable[float]) -> Optional[float]:
    """Most frequent value; ties go to the value seen first. None when empty."""
    counts = Counter(values)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def median(values: Iterable[int]) -> Optional[int]:
    """Median of integers, rounding the midpoint of an even-length list. None when empty."""
    ordered = sorted(values)
    if not ordered:
        return None
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return _round_half_up((ordered[mid - 1] + ordered[mid]) / 2)


def typical_duration(records: list[_Provisional]) -> Optional[float]:
    """
    Nominal window length: the mode of the known positive durations, else the
    median gap between consecutive starts (whole seconds).
    """
    typical = most_common(r.duration_sec for r in records if r.duration_sec > 0)
    if typical:
        return typical

    deltas = []
    for previous, current in zip(records, records[1:]):
        delta = (current.start - previous.start).total_seconds()
        if delta > 0:
            deltas.append(_round_half_up(delta))
    return median(deltas)


# =============================================================================
# SANITIZATION
# =============================================================================

def _to_provisional(row: dict) -> Optional[_Provisional]:
    start = parse_timestamp(_term_value(row, "startTime"))
    if start is None:
        logger.debug("Dropping observation without a parseable startTime")
        return None
    count = to_number(_term_value(row, "count"))
    if count is None or count < 0:
        logger.debug("Dropping observation without a non-negative count")
        return None
    duration = parse_iso_duration(_term_value(row, "duration"))
    return _Provisional(
        start=start,
        duration_sec=duration if duration is not None else 0.0,
        count=count,
        vehicle_type=short_label(_term_value(row, "vehicleType")),
        raw=row,
    )


def sanitize_observations(
    rows: Iterable[dict[str, Any]],
    tolerance_sec: float = INFERENCE_TOLERANCE_SEC,
) -> list[SanitizedObservation]:
    """
    Clean a sensor's raw bindings into time-ordered observations.

    Rows without a start time or with a missing or negative count are
    dropped. Counts stay floats, so fractional values pass through. A zero
    (unknown) duration is replaced by the typical duration only when
    ``start + typical`` lands within ``tolerance_sec`` of the next
    observation's start; the repair looks one record ahead and never
    revisits earlier records.

    Args:
        rows: SPARQL bindings for one sensor
        tolerance_sec: Allowed mismatch for accepting an inferred duration

    Returns:
        List of SanitizedObservation sorted by start
    """
    records = [r for r in (_to_provisional(row) for row in rows) if r is not None]
    records.sort(key=lambda r: r.start)

    typical = typical_duration(records)
    logger.debug("Typical duration %s over %d observations", typical, len(records))

    if typical:
        for current, following in zip(records, records[1:]):
            if current.duration_sec > 0:
                continue
            projected_end = current.start + timedelta(seconds=typical)
            mismatch = abs((projected_end - following.start).total_seconds())
            if mismatch <= tolerance_sec:
                current.duration_sec = typical

    sanitized = []
    for record in records:
        duration = max(0, _round_half_up(record.duration_sec))
        sanitized.append(SanitizedObservation(
            start=record.start,
            duration_sec=duration,
            end=record.start + timedelta(seconds=duration),
            count=record.count,
            vehicle_type=record.vehicle_type,
            raw=record.raw,
        ))
    return sanitized
