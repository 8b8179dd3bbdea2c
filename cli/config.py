from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_PERIOD_SECONDS = 60.0
DEFAULT_CHANGE_MIN_SECONDS = 1.0
DEFAULT_CHANGE_MAX_SECONDS = 59.0

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_HTTP_TIMEOUT"
_PERIOD_ENV = "SIMULATOR_PERIOD_SECONDS"
_CHANGE_MIN_ENV = "SIMULATOR_CHANGE_MIN_SECONDS"
_CHANGE_MAX_ENV = "SIMULATOR_CHANGE_MAX_SECONDS"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class SimulatorConfig:
    period_seconds: float = DEFAULT_PERIOD_SECONDS
    change_min_seconds: float = DEFAULT_CHANGE_MIN_SECONDS
    change_max_seconds: float = DEFAULT_CHANGE_MAX_SECONDS
    min_temperature: float = -50.0
    max_temperature: float = 50.0


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    return CLIConfig(base_url=url.rstrip("/"), timeout=timeout)


def load_simulator_config(period_seconds: Optional[float] = None) -> SimulatorConfig:
    if period_seconds is None:
        period_seconds = _read_float(os.getenv(_PERIOD_ENV), DEFAULT_PERIOD_SECONDS)
    change_min = _read_float(os.getenv(_CHANGE_MIN_ENV), DEFAULT_CHANGE_MIN_SECONDS)
    change_max = _read_float(os.getenv(_CHANGE_MAX_ENV), DEFAULT_CHANGE_MAX_SECONDS)
    if change_max <= change_min:
        change_min, change_max = DEFAULT_CHANGE_MIN_SECONDS, DEFAULT_CHANGE_MAX_SECONDS
    return SimulatorConfig(
        period_seconds=period_seconds,
        change_min_seconds=change_min,
        change_max_seconds=change_max,
    )
