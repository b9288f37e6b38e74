"""
Stream Pipeline
Drives the paginated query, folds each page into a snapshot, and hands
progress-annotated snapshots to a consumer, optionally from a background thread.
"""
from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Union

from core.aggregator import EMPTY_SNAPSHOT, Snapshot, fold_batch
from core.sparql import DEFAULT_PAGE_SIZE, OBSERVATION_QUERY, iter_result_pages


logger = logging.getLogger(__name__)

UpdateCallback = Callable[[Snapshot, str], None]


def progress_message(offset: int, page_size: int) -> str:
    return f"Loading results {offset} to {offset + page_size}."


def run_pipeline(
    endpoint: str,
    on_update: UpdateCallback,
    page_size: int = DEFAULT_PAGE_SIZE,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    query: str = OBSERVATION_QUERY,
) -> Snapshot:
    """
    Stream the endpoint's result set into snapshots.

    After every page ``on_update(snapshot, message)`` is called with the new
    snapshot and the row range just processed. Request errors propagate
    unchanged; updates already delivered stay valid. When ``cancel_event`` is
    set the run stops before the next page request and emits nothing further.

    Args:
        endpoint: Full URL of the SPARQL endpoint
        on_update: Consumer callback
        page_size: Rows per page request
        timeout: Per-request timeout in seconds
        cancel_event: Optional event checked between pages
        query: Query template without LIMIT/OFFSET

    Returns:
        The last snapshot produced (EMPTY_SNAPSHOT when nothing was loaded)
    """
    snapshot = EMPTY_SNAPSHOT
    offset = 0
    pages = iter_result_pages(endpoint, page_size, query, timeout)
    while not (cancel_event and cancel_event.is_set()):
        batch = next(pages, None)
        if batch is None:
            break
        snapshot = fold_batch(snapshot, batch)
        if cancel_event and cancel_event.is_set():
            break
        on_update(snapshot, progress_message(offset, page_size))
        offset += page_size

    if cancel_event and cancel_event.is_set():
        logger.info("Pipeline cancelled", extra={"offset": offset, "sensor_count": len(snapshot)})
    else:
        logger.info("Pipeline finished", extra={"offset": offset, "sensor_count": len(snapshot)})
    return snapshot


# =============================================================================
# BACKGROUND WORKER
# =============================================================================

@dataclass(frozen=True)
class PipelineUpdate:
    snapshot: Snapshot
    message: str


@dataclass(frozen=True)
class PipelineFinished:
    cancelled: bool
    sensor_count: int


@dataclass(frozen=True)
class PipelineFailed:
    error: BaseException


PipelineMessage = Union[PipelineUpdate, PipelineFinished, PipelineFailed]


class PipelineWorker:
    """
    Runs ``run_pipeline`` on a daemon thread.

    Messages arrive on ``messages`` in production order: any number of
    PipelineUpdate values, then exactly one PipelineFinished or PipelineFailed.

    Example:
        worker = PipelineWorker("http://localhost:7878/query")
        worker.start()
        for message in worker.drain():
            ...
    """

    def __init__(
        self,
        endpoint: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint
        self.page_size = page_size
        self.timeout = timeout
        self.messages: "queue.Queue[PipelineMessage]" = queue.Queue()
        self._cancel = threading.Event()
        self._thread = threading.Thread(target=self._run, name="sensor-stream", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._cancel.set()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def drain(self) -> list[PipelineMessage]:
        """Return every message queued so far without blocking."""
        drained = []
        while True:
            try:
                drained.append(self.messages.get_nowait())
            except queue.Empty:
                return drained

    def _publish(self, snapshot: Snapshot, message: str) -> None:
        self.messages.put(PipelineUpdate(snapshot, message))

    def _run(self) -> None:
        try:
            final = run_pipeline(
                self.endpoint,
                self._publish,
                page_size=self.page_size,
                timeout=self.timeout,
                cancel_event=self._cancel,
            )
        except Exception as exc:
            logger.warning("Pipeline stopped with an error: %s", exc, extra={"endpoint": self.endpoint})
            self.messages.put(PipelineFailed(exc))
        else:
            self.messages.put(PipelineFinished(self._cancel.is_set(), len(final)))
