"""
Core Module
Streaming SPARQL access, sensor aggregation, and observation sanitization.
"""
from core.sparql import (
    DEFAULT_PAGE_SIZE,
    OBSERVATION_QUERY,
    KeyedRow,
    SparqlHTTPError,
    SparqlQueryError,
    SparqlTransportError,
    bindings_to_dataframe,
    build_page_query,
    get_sensor_id,
    iter_result_pages,
    post_sparql_page,
)

from core.geometry import (
    get_map_center,
    parse_wkt_point,
    sensors_to_geodataframe,
)

from core.durations import parse_iso_duration

from core.sanitize import (
    INFERENCE_TOLERANCE_SEC,
    SanitizedObservation,
    sanitize_observations,
)

from core.aggregator import (
    EMPTY_SNAPSHOT,
    SensorState,
    Snapshot,
    fold_batch,
)

from core.pipeline import (
    PipelineFailed,
    PipelineFinished,
    PipelineUpdate,
    PipelineWorker,
    run_pipeline,
)

__all__ = [
    # SPARQL
    "DEFAULT_PAGE_SIZE",
    "OBSERVATION_QUERY",
    "KeyedRow",
    "SparqlHTTPError",
    "SparqlQueryError",
    "SparqlTransportError",
    "bindings_to_dataframe",
    "build_page_query",
    "get_sensor_id",
    "iter_result_pages",
    "post_sparql_page",
    # Geometry
    "get_map_center",
    "parse_wkt_point",
    "sensors_to_geodataframe",
    # Observations
    "parse_iso_duration",
    "INFERENCE_TOLERANCE_SEC",
    "SanitizedObservation",
    "sanitize_observations",
    # Aggregation
    "EMPTY_SNAPSHOT",
    "SensorState",
    "Snapshot",
    "fold_batch",
    # Pipeline
    "PipelineFailed",
    "PipelineFinished",
    "PipelineUpdate",
    "PipelineWorker",
    "run_pipeline",
]
