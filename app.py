"""
Vehicle Counting Explorer
Streams traffic-count observations from a SPARQL endpoint onto a live map.
"""

import time

import streamlit as st
from streamlit_folium import st_folium

from core.sparql import bindings_to_dataframe
from components.map_rendering import build_sensor_map
from components.observation_chart import render_observation_chart
from components.result_display import render_data_expander, render_metrics_row, snapshot_metrics
from components.stream_state import StreamState
from logging_config import configure_logging
from settings import get_settings

REFRESH_INTERVAL_SEC = 1.0

configure_logging()
settings = get_settings()

# Page configuration
st.set_page_config(
    page_title="Vehicle Counting Explorer",
    page_icon="🚗",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.title("🚗 Vehicle Counting Explorer")

stream = StreamState("sensors")

# SIDEBAR: endpoint configuration
st.sidebar.markdown("### ⚙️ Endpoint")
endpoint = st.sidebar.text_input("SPARQL endpoint", value=settings.endpoint_url)
page_size = st.sidebar.number_input(
    "Page size",
    min_value=1,
    value=settings.page_size,
    step=500,
    help="Rows requested per page"
)

col_start, col_stop = st.sidebar.columns(2)
start_clicked = col_start.button("Start", type="primary", use_container_width=True)
stop_clicked = col_stop.button("Stop", use_container_width=True, disabled=not stream.running)

if start_clicked:
    stream.start(endpoint.strip(), int(page_size), timeout=settings.request_timeout)
elif stop_clicked:
    stream.stop()

was_running = stream.running
stream.poll()

st.markdown(f"**Status:** {stream.status}")
if stream.error is not None:
    st.error(f"Query failed: {stream.error}")

snapshot = stream.snapshot
render_metrics_row(snapshot_metrics(snapshot))

map_col, detail_col = st.columns([3, 2])

with map_col:
    map_state = st_folium(
        build_sensor_map(snapshot),
        width=None,
        height=600,
        returned_objects=["last_object_clicked_tooltip"],
        key="sensor_map",
    )
    clicked = (map_state or {}).get("last_object_clicked_tooltip")
    if clicked and clicked in snapshot:
        stream.select(clicked)

with detail_col:
    selected = stream.selected_sensor
    if selected and selected in snapshot:
        sensor = snapshot[selected]
        st.subheader("Sensor")
        st.caption(selected)
        if sensor.plottable:
            st.markdown(f"**Location:** {sensor.lat:.5f}, {sensor.lon:.5f}")
        st.markdown(f"**Observations:** {len(sensor.observations)}")
        render_observation_chart(sensor.observations)
        render_data_expander(
            "View raw observations",
            bindings_to_dataframe(list(sensor.observations)),
            download_filename="observations.csv",
            download_key="observations_download",
        )
    else:
        st.info("Click a sensor marker to chart its observations.")

if was_running:
    time.sleep(REFRESH_INTERVAL_SEC)
    st.rerun()
