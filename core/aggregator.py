"""
Sensor Aggregator
Folds pages of keyed rows into immutable per-sensor snapshots.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Iterable, Mapping

from core.geometry import parse_wkt_point
from core.sparql import KeyedRow


@dataclass(frozen=True)
class SensorState:
    """
    Accumulated state for one sensor.

    ``lat``/``lon`` come from the first observation seen for the sensor and are
    NaN when its geometry could not be parsed.
    """
    id: str
    lat: float
    lon: float
    observations: tuple = ()

    @property
    def plottable(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lon)


Snapshot = Mapping[str, SensorState]

EMPTY_SNAPSHOT: Snapshot = MappingProxyType({})


def _new_sensor(sensor_id: str, observation: dict) -> SensorState:
    wkt = (observation.get("wkt") or {}).get("value")
    point = parse_wkt_point(wkt)
    lat, lon = point if point is not None else (math.nan, math.nan)
    return SensorState(id=sensor_id, lat=lat, lon=lon)


def fold_batch(previous: Snapshot, batch: Iterable[KeyedRow]) -> Snapshot:
    """
    Fold one page of rows into a new snapshot.

    ``previous`` is never modified; sensors the batch does not touch are
    shared with it. Rows without a sensor key are skipped. Within a batch the
    first row of a new sensor fixes its coordinates.

    Args:
        previous: Snapshot produced by the previous fold (or EMPTY_SNAPSHOT)
        batch: Rows as yielded by ``iter_result_pages``

    Returns:
        Read-only mapping of sensor id to SensorState
    """
    base: dict[str, SensorState] = {}
    appended: dict[str, list] = {}

    for sensor_id, observation in batch:
        if sensor_id is None:
            continue
        if sensor_id not in appended:
            appended[sensor_id] = []
            if sensor_id in previous:
                base[sensor_id] = previous[sensor_id]
            else:
                base[sensor_id] = _new_sensor(sensor_id, observation)
        appended[sensor_id].append(observation)

    nxt = dict(previous)
    for sensor_id, observations in appended.items():
        state = base[sensor_id]
        nxt[sensor_id] = replace(state, observations=state.observations + tuple(observations))
    return MappingProxyType(nxt)
