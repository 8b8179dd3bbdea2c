from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_SENSOR_COUNT_ENV = "SENSOR_COUNT"
_SENSOR_HOST_ENV = "SENSOR_HOST"
_SENSOR_BASE_PORT_ENV = "SENSOR_BASE_PORT"
_STALE_READING_ENV = "STALE_READING_SECONDS"
_DISPLAY_INTERVAL_ENV = "MIN_DISPLAY_INTERVAL_SECONDS"
_READ_BUFFER_ENV = "READ_BUFFER_SIZE"
_DISPLAY_UNIT_ENV = "DISPLAY_UNIT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_SENSOR_COUNT = 4
DEFAULT_SENSOR_HOST = "127.0.0.1"
DEFAULT_SENSOR_BASE_PORT = 5000
DEFAULT_STALE_READING_SECONDS = 600.0
DEFAULT_MIN_DISPLAY_INTERVAL_SECONDS = 1.0
DEFAULT_READ_BUFFER_SIZE = 87380
DEFAULT_DISPLAY_UNIT = "°C"


@dataclass(frozen=True)
class Settings:
    sensor_count: int
    sensor_host: str
    sensor_base_port: int
    stale_reading_seconds: float
    min_display_interval_seconds: float
    read_buffer_size: int
    display_unit: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_non_negative_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_port(default: int) -> int:
    port = _read_positive_int(_SENSOR_BASE_PORT_ENV, default)
    return port if port < 65536 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        sensor_count=_read_positive_int(_SENSOR_COUNT_ENV, DEFAULT_SENSOR_COUNT),
        sensor_host=_read_str_env(_SENSOR_HOST_ENV, DEFAULT_SENSOR_HOST),
        sensor_base_port=_read_port(DEFAULT_SENSOR_BASE_PORT),
        stale_reading_seconds=_read_non_negative_float(
            _STALE_READING_ENV, DEFAULT_STALE_READING_SECONDS
        ),
        min_display_interval_seconds=_read_non_negative_float(
            _DISPLAY_INTERVAL_ENV, DEFAULT_MIN_DISPLAY_INTERVAL_SECONDS
        ),
        read_buffer_size=_read_positive_int(_READ_BUFFER_ENV, DEFAULT_READ_BUFFER_SIZE),
        display_unit=_read_str_env(_DISPLAY_UNIT_ENV, DEFAULT_DISPLAY_UNIT),
        log_level=_read_log_level("INFO"),
    )
