"""
Settings
Environment-driven configuration for the sensor stream explorer.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_ENDPOINT_ENV = "SENSOR_STREAM_ENDPOINT"
_PAGE_SIZE_ENV = "SENSOR_STREAM_PAGE_SIZE"
_TIMEOUT_ENV = "SENSOR_STREAM_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_ENDPOINT = "http://localhost:7878/query"
DEFAULT_PAGE_SIZE = 3000
DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class Settings:
    endpoint_url: str
    page_size: int
    request_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@lru_cache
def get_settings() -> Settings:
    return Settings(
        endpoint_url=_read_str_env(_ENDPOINT_ENV, DEFAULT_ENDPOINT),
        page_size=_read_positive_int(_PAGE_SIZE_ENV, DEFAULT_PAGE_SIZE),
        request_timeout=_read_positive_float(_TIMEOUT_ENV, DEFAULT_TIMEOUT),
        log_level=_read_str_env(_LOG_LEVEL_ENV, "INFO").upper(),
    )
