"""
Core SPARQL Utilities
Paginated access to the traffic-count observation endpoint.
"""
from __future__ import annotations

import logging
from typing import Any, Iterator, NamedTuple, Optional

import pandas as pd
import rdflib
import requests


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 3000
SYNTHETIC_SENSOR_PREFIX = "http://example.org/sensor/location/"

HEADERS = {
    "Content-Type": "application/sparql-query",
    "Accept": "application/sparql-results+json",
}


# =============================================================================
# QUERY TEMPLATE
# =============================================================================

OBSERVATION_QUERY = """
PREFIX rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#>
PREFIX rdfs: <http://www.w3.org/2000/01/rdf-schema#>
PREFIX sosa: <http://www.w3.org/ns/sosa/>
PREFIX impl: <https://implementatie.data.vlaanderen.be/ns/vsds-verkeersmetingen#>
PREFIX verkeer: <https://data.vlaanderen.be/ns/verkeersmetingen#>
PREFIX prov: <http://www.w3.org/ns/prov#>
PREFIX sf: <http://www.opengis.net/ont/sf#>
PREFIX time: <http://www.w3.org/2006/time#>
PREFIX geosparql: <http://www.opengis.net/ont/geosparql#>
PREFIX iso19156-sp: <http://def.isotc211.org/iso19156/2011/SamplingPoint#>
PREFIX iso19156-ob: <http://def.isotc211.org/iso19156/2011/Observation#>

SELECT ?obs ?startTime ?duration ?count ?wkt ?sensor WHERE {

?obs a impl:Verkeerstelling ;
     impl:Verkeerstelling.tellingresultaat ?count ;
     verkeer:geobserveerdObject ?object ;
     iso19156-ob:OM_Observation.phenomenonTime ?phenomenonTime ;
     sosa:madeBySensor ?sensor .

?phenomenonTime a time:TemporalEntity ;
        time:hasBeginning ?startTimeObject ;
        time:hasXSDDuration ?duration .

?startTimeObject a time:Instant ;
        time:inXSDDateTimeStamp ?startTime .

?object a verkeer:Verkeersmeetpunt ;
        iso19156-sp:SF_SamplingPoint.shape ?location .

?location a sf:Point ;
        geosparql:asWKT ?wkt .

}
ORDER BY ?sensor ?startTime
"""


def build_page_query(limit: int, offset: int, query: str = OBSERVATION_QUERY) -> str:
    """Append the LIMIT/OFFSET clause for one page to a query."""
    return f"{query}\n LIMIT {limit} OFFSET {offset}"


# =============================================================================
# ERRORS
# =============================================================================

class SparqlQueryError(Exception):
    """A page request failed; the stream cannot continue."""


class SparqlHTTPError(SparqlQueryError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, response_text: Optional[str] = None, reason: str = ""):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(f"SPARQL HTTP {status_code}: {response_text or reason}")


class SparqlTransportError(SparqlQueryError):
    """The request never produced a usable response (network, timeout, bad JSON)."""


# =============================================================================
# ROWS
# =============================================================================

class KeyedRow(NamedTuple):
    """A binding paired with the sensor it belongs to (None when unresolvable)."""
    sensor: Optional[str]
    observation: dict


def get_sensor_id(row: dict) -> Optional[str]:
    """
    Derive the sensor key for a binding.

    Uses the ``sensor`` IRI unless it is a blank node, then a synthetic key
    built from the ``wkt`` literal, otherwise None.
    """
    sensor = row.get("sensor")
    if sensor and sensor.get("type") != "bnode":
        return sensor.get("value")
    wkt = (row.get("wkt") or {}).get("value")
    if wkt:
        return f"{SYNTHETIC_SENSOR_PREFIX}{wkt}"
    return None


def bindings_to_dataframe(rows: list[dict]) -> pd.DataFrame:
    """
    Convert raw bindings to a DataFrame of Python values.

    Typed literals are converted through rdflib (xsd:integer -> int,
    xsd:dateTime -> datetime, ...); IRIs and untyped literals stay strings.
    """
    data = []
    for row in rows:
        record = {}
        for name, term in row.items():
            if term.get("type") in ("literal", "typed-literal"):
                record[name] = rdflib.term.Literal(
                    term.get("value"), datatype=term.get("datatype")
                ).toPython()
            else:
                record[name] = term.get("value")
        data.append(record)
    return pd.DataFrame(data)


# =============================================================================
# QUERY EXECUTION
# =============================================================================

def _safe_text(response: requests.Response) -> Optional[str]:
    try:
        return response.text[:500]
    except Exception:
        return None


def post_sparql_page(
    endpoint: str,
    limit: int,
    offset: int,
    query: str = OBSERVATION_QUERY,
    timeout: Optional[float] = None,
) -> list[KeyedRow]:
    """
    POST one page of the query and return its rows keyed by sensor.

    Args:
        endpoint: Full URL of the SPARQL endpoint
        limit: Page size
        offset: Index of the first row of the page
        query: Query template without LIMIT/OFFSET
        timeout: Request timeout in seconds (None = no timeout)

    Returns:
        List of KeyedRow, empty when the page has no results

    Raises:
        SparqlHTTPError: on a non-2xx response
        SparqlTransportError: on network failure or an undecodable body
    """
    body = build_page_query(limit, offset, query)
    try:
        response = requests.post(endpoint, data=body.encode("utf-8"), headers=HEADERS, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        logger.warning("SPARQL request failed", extra={"endpoint": endpoint, "offset": offset})
        raise SparqlTransportError(f"Network error: {exc}") from exc

    if not 200 <= response.status_code < 300:
        logger.warning(
            "SPARQL endpoint returned an error",
            extra={"endpoint": endpoint, "offset": offset, "status": response.status_code},
        )
        raise SparqlHTTPError(response.status_code, _safe_text(response), response.reason or "")

    try:
        payload: Any = response.json()
    except ValueError as exc:
        raise SparqlTransportError(f"Invalid JSON from {endpoint}: {exc}") from exc

    if not isinstance(payload, dict):
        raise SparqlTransportError(
            f"Unexpected SPARQL response from {endpoint}: expected a JSON object, got {type(payload).__name__}"
        )

    bindings = (payload.get("results") or {}).get("bindings") or []
    return [KeyedRow(get_sensor_id(row), row) for row in bindings]


def iter_result_pages(
    endpoint: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    query: str = OBSERVATION_QUERY,
    timeout: Optional[float] = None,
) -> Iterator[list[KeyedRow]]:
    """
    Lazily yield successive pages of keyed rows.

    Requests ``[offset, offset + page_size)`` starting at 0 and stops, without
    error, at the first empty page. Request errors propagate and end the
    iteration. Each call starts a fresh offset counter.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    logger.info("Querying SPARQL endpoint", extra={"endpoint": endpoint, "page_size": page_size})
    offset = 0
    batch = post_sparql_page(endpoint, page_size, offset, query, timeout)
    while batch:
        logger.info(
            "Resolved SPARQL query for indices %d to %d", offset, offset + page_size,
            extra={"row_count": len(batch)},
        )
        yield batch
        offset += page_size
        batch = post_sparql_page(endpoint, page_size, offset, query, timeout)
