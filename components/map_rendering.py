"""
Map rendering for sensor snapshots.
Builds the Folium map with one marker per plottable sensor.
"""
from __future__ import annotations

import html
from typing import Optional

import folium
import geopandas as gpd

from core.aggregator import Snapshot
from core.geometry import DEFAULT_CENTER, get_map_center, sensors_to_geodataframe


POPUP_CSS = """
<style>
.leaflet-popup-content { min-width: 260px !important; max-width: 700px !important; }
.leaflet-popup-content a, .leaflet-tooltip a {
  display: inline-block;
  max-width: 100%;
  overflow-wrap: anywhere;
}
</style>
"""

TILE_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a>'


def create_base_map(
    center: Optional[tuple] = None,
    zoom: int = 12,
    apply_popup_css: bool = True
) -> folium.Map:
    """
    Create the OpenStreetMap base map.

    Args:
        center: Map center (lat, lon); defaults to Brussels
        zoom: Initial zoom level
        apply_popup_css: Whether to apply popup styling CSS

    Returns:
        Configured Folium Map object
    """
    map_obj = folium.Map(
        location=list(center or DEFAULT_CENTER),
        zoom_start=zoom,
        tiles="OpenStreetMap",
        attr=TILE_ATTRIBUTION,
        scrollWheelZoom=True,
    )
    if apply_popup_css:
        map_obj.get_root().header.add_child(folium.Element(POPUP_CSS))
    return map_obj


def sensor_popup_html(sensor_id: str, lat: float, lon: float, observation_count: int) -> str:
    """Popup body: sensor id, location, and number of observations."""
    return (
        '<div style="font-size: 14px; line-height: 1.4">'
        f"<div><b>Sensor:</b><br>{html.escape(sensor_id)}</div>"
        f'<div style="margin-top: 6px"><b>Location:</b><br>{lat:.5f}, {lon:.5f}</div>'
        f'<div style="margin-top: 6px"><b>Observations:</b> {observation_count}</div>'
        "</div>"
    )


def add_sensor_markers(map_obj: folium.Map, sensors: gpd.GeoDataFrame) -> int:
    """
    Add one marker per sensor row.

    The tooltip carries the sensor id so a clicked marker can be matched back
    to its sensor.

    Returns:
        Number of markers added
    """
    if sensors is None or sensors.empty:
        return 0

    group = folium.FeatureGroup(name=f"Sensors ({len(sensors)})")
    for row in sensors.itertuples(index=False):
        folium.Marker(
            location=[row.lat, row.lon],
            popup=folium.Popup(
                sensor_popup_html(row.sensor, row.lat, row.lon, row.observation_count),
                max_width=700,
            ),
            tooltip=row.sensor,
        ).add_to(group)
    group.add_to(map_obj)
    return len(sensors)


def build_sensor_map(snapshot: Snapshot, center: Optional[tuple] = None, zoom: int = 12) -> folium.Map:
    """
    Base map plus markers for every sensor with finite coordinates.

    Without an explicit center the map is centered on the plotted sensors,
    falling back to Brussels when there are none.
    """
    sensors = sensors_to_geodataframe(snapshot)
    map_obj = create_base_map(center=center or get_map_center([sensors]), zoom=zoom)
    add_sensor_markers(map_obj, sensors)
    return map_obj
