"""
Shared result display components.
Metrics rows and data expanders for the sensor view.
"""
from __future__ import annotations

from typing import List, Dict, Any, Optional
import streamlit as st
import pandas as pd

from core.aggregator import Snapshot


def render_metrics_row(metrics: List[Dict[str, Any]], num_columns: Optional[int] = None) -> None:
    """
    Render a row of metrics in columns.

    Args:
        metrics: List of dicts with 'label' and 'value' keys, optionally 'delta'
        num_columns: Number of columns (defaults to len(metrics))

    Example:
        render_metrics_row([
            {"label": "Sensors", "value": 42},
            {"label": "Observations", "value": 12000},
        ])
    """
    if not metrics:
        return

    cols = st.columns(num_columns or len(metrics))
    for i, metric in enumerate(metrics):
        with cols[i]:
            st.metric(
                label=metric.get('label', ''),
                value=metric.get('value', ''),
                delta=metric.get('delta')
            )


def snapshot_metrics(snapshot: Snapshot) -> List[Dict[str, Any]]:
    """Sensor, observation, and unplottable-sensor counts for a snapshot."""
    observations = sum(len(state.observations) for state in snapshot.values())
    unplottable = sum(1 for state in snapshot.values() if not state.plottable)
    return [
        {"label": "Sensors", "value": len(snapshot)},
        {"label": "Observations", "value": observations},
        {"label": "Without location", "value": unplottable},
    ]


def render_data_expander(
    title: str,
    df: pd.DataFrame,
    download_filename: Optional[str] = None,
    download_key: Optional[str] = None,
) -> None:
    """
    Render an expander with a dataframe and an optional CSV download button.

    Args:
        title: Expander title (e.g., "View raw observations")
        df: DataFrame to display
        download_filename: Filename for CSV download (None = no download button)
        download_key: Unique key for the download button
    """
    if df is None or df.empty:
        return

    with st.expander(title):
        st.dataframe(df, use_container_width=True)

        if download_filename and download_key:
            st.download_button(
                label="Download CSV",
                data=df.to_csv(index=False),
                file_name=download_filename,
                mime="text/csv",
                key=download_key
            )
