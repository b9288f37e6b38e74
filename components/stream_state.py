"""
Session state for the streaming sensor view.
Keeps the background worker and the latest snapshot across Streamlit reruns.
"""
from __future__ import annotations

from typing import Optional

import streamlit as st

from core.aggregator import EMPTY_SNAPSHOT, Snapshot
from core.pipeline import (
    PipelineFailed,
    PipelineFinished,
    PipelineUpdate,
    PipelineWorker,
)


INITIAL_STATUS = "Initializing application"


class StreamState:
    """
    Manages the session state of one sensor stream.

    Example:
        stream = StreamState("sensors")
        if start_clicked:
            stream.start(endpoint, page_size)
        stream.poll()
        render(stream.snapshot, stream.status)
    """

    def __init__(self, key: str = "sensor_stream"):
        self.key = key
        self._worker_key = f"{key}_worker"
        self._snapshot_key = f"{key}_snapshot"
        self._status_key = f"{key}_status"
        self._error_key = f"{key}_error"
        self._selected_key = f"{key}_selected"

    @property
    def worker(self) -> Optional[PipelineWorker]:
        return st.session_state.get(self._worker_key)

    @property
    def snapshot(self) -> Snapshot:
        return st.session_state.get(self._snapshot_key, EMPTY_SNAPSHOT)

    @property
    def status(self) -> str:
        return st.session_state.get(self._status_key, INITIAL_STATUS)

    @property
    def error(self) -> Optional[BaseException]:
        return st.session_state.get(self._error_key)

    @property
    def running(self) -> bool:
        worker = self.worker
        return worker is not None and worker.running

    @property
    def selected_sensor(self) -> Optional[str]:
        return st.session_state.get(self._selected_key)

    def select(self, sensor_id: Optional[str]) -> None:
        st.session_state[self._selected_key] = sensor_id

    def start(self, endpoint: str, page_size: int, timeout: Optional[float] = None) -> None:
        """Cancel any running stream and start a fresh one."""
        self.stop()
        worker = PipelineWorker(endpoint, page_size=page_size, timeout=timeout)
        st.session_state[self._worker_key] = worker
        st.session_state[self._snapshot_key] = EMPTY_SNAPSHOT
        st.session_state[self._status_key] = f"Querying {endpoint}"
        st.session_state[self._error_key] = None
        worker.start()

    def stop(self) -> None:
        worker = self.worker
        if worker is not None and worker.running:
            worker.cancel()

    def poll(self) -> None:
        """
        Apply every message the worker has queued.

        Only the newest snapshot is kept; each one already contains
        everything its predecessors did.
        """
        worker = self.worker
        if worker is None:
            return
        for message in worker.drain():
            if isinstance(message, PipelineUpdate):
                st.session_state[self._snapshot_key] = message.snapshot
                st.session_state[self._status_key] = message.message
            elif isinstance(message, PipelineFinished):
                if message.cancelled:
                    st.session_state[self._status_key] = "Stopped."
                else:
                    st.session_state[self._status_key] = (
                        f"Finished loading {message.sensor_count} sensors."
                    )
            elif isinstance(message, PipelineFailed):
                st.session_state[self._error_key] = message.error
                st.session_state[self._status_key] = f"Query failed: {message.error}"
