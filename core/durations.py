"""
ISO-8601 duration parsing for observation windows.
"""
from __future__ import annotations

import re
from typing import Optional


_DURATION = re.compile(
    r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?"
)


def parse_iso_duration(text: Optional[str]) -> Optional[float]:
    """
    Parse the ``P[nD][T[nH][nM][nS]]`` subset of ISO-8601 durations.

    Seconds may be fractional. Returns None when there is no duration
    information; ``0.0`` means an explicit zero-length window.

    Examples:
        >>> parse_iso_duration("PT1H30M")
        5400.0
        >>> parse_iso_duration("P1D")
        86400.0
        >>> parse_iso_duration("garbage") is None
        True
    """
    if not text:
        return None
    candidate = text.strip()
    match = _DURATION.fullmatch(candidate)
    # "P" and "PT" carry no components
    if not match or candidate.endswith(("P", "T")):
        return None

    days, hours, minutes, seconds = (float(g) if g else 0.0 for g in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds
