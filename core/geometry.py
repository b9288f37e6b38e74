"""
Geometry utilities for sensor locations.
Parses WKT point literals and turns snapshots into GeoDataFrames for mapping.
"""
from __future__ import annotations

import math
import re
from typing import List, Mapping, Optional

import geopandas as gpd
import pandas as pd
from shapely import wkt
from shapely.errors import GEOSException
from shapely.geometry import Point


DEFAULT_CENTER = (50.85, 4.35)  # Brussels (lat, lon)

_SRID_PREFIX = re.compile(r"^SRID=\d+;\s*", re.IGNORECASE)
_CRS_IRI_PREFIX = re.compile(r"^<[^>]*>\s*")


def parse_wkt_point(text: Optional[str]) -> Optional[tuple[float, float]]:
    """
    Parse a WKT point literal into a (lat, lon) pair.

    Accepts an optional ``SRID=n;`` or ``<crs-iri>`` prefix and 2-D or 3-D
    points (``POINT (x y)``, ``POINT Z (x y z)``). X is longitude and Y is
    latitude; when the latitude is out of range but the longitude is not, the
    two are swapped to undo axis-order mistakes upstream.

    Args:
        text: WKT literal, possibly None

    Returns:
        (lat, lon) tuple, or None when the literal is not a point
    """
    if not text:
        return None

    candidate = _SRID_PREFIX.sub("", text.strip())
    candidate = _CRS_IRI_PREFIX.sub("", candidate)
    try:
        geom = wkt.loads(candidate)
    except GEOSException:
        return None
    if geom.geom_type != "Point" or geom.is_empty:
        return None

    lon = geom.x
    lat = geom.y
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if abs(lat) > 90 and abs(lon) <= 90:
        lat, lon = lon, lat
    return lat, lon


def sensors_to_geodataframe(
    snapshot: Mapping[str, object],
    crs: str = "EPSG:4326",
) -> gpd.GeoDataFrame:
    """
    Build a point GeoDataFrame from a snapshot, one row per plottable sensor.

    Sensors whose coordinates are NaN are left out.

    Args:
        snapshot: Mapping of sensor id to SensorState
        crs: Coordinate reference system (default: EPSG:4326)

    Returns:
        GeoDataFrame with columns sensor, lat, lon, observation_count, geometry
    """
    records = []
    for sensor_id, state in snapshot.items():
        if not (math.isfinite(state.lat) and math.isfinite(state.lon)):
            continue
        records.append({
            "sensor": sensor_id,
            "lat": state.lat,
            "lon": state.lon,
            "observation_count": len(state.observations),
            "geometry": Point(state.lon, state.lat),
        })

    if not records:
        return gpd.GeoDataFrame(
            {
                "sensor": [],
                "lat": [],
                "lon": [],
                "observation_count": [],
                "geometry": gpd.GeoSeries([], crs=crs),
            },
            geometry="geometry",
            crs=crs,
        )
    return gpd.GeoDataFrame(records, geometry="geometry", crs=crs)


def get_map_center(
    gdf_list: List[Optional[gpd.GeoDataFrame]],
    default_center: tuple = DEFAULT_CENTER
) -> tuple:
    """
    Calculate the center point for a map from a list of GeoDataFrames.
    Uses the mean coordinates of the first non-empty GeoDataFrame.

    Args:
        gdf_list: List of GeoDataFrames to check (in priority order)
        default_center: Default center if no valid geometries (lat, lon)

    Returns:
        Tuple of (latitude, longitude)
    """
    for gdf in gdf_list:
        if gdf is not None and not gdf.empty:
            center_lat = gdf.geometry.y.mean()
            center_lon = gdf.geometry.x.mean()
            if pd.notna(center_lat) and pd.notna(center_lon):
                return (center_lat, center_lon)

    return default_center
