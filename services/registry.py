"""Static sensor registry built from configuration."""

from __future__ import annotations

from typing import Tuple

from models.records import SensorDescriptor
from settings import Settings


def build_sensor_registry(count: int, host: str, base_port: int) -> Tuple[SensorDescriptor, ...]:
    """Describe ``count`` sensors on ``host``, one port per sensor starting at ``base_port``."""
    if count < 1:
        raise ValueError("At least one sensor must be configured.")
    if base_port < 1 or base_port + count - 1 > 65535:
        raise ValueError(
            f"Sensor ports {base_port}..{base_port + count - 1} fall outside the valid TCP range."
        )
    return tuple(
        SensorDescriptor(index=index, host=host, port=str(base_port + index))
        for index in range(count)
    )


def registry_from_settings(settings: Settings) -> Tuple[SensorDescriptor, ...]:
    return build_sensor_registry(
        count=settings.sensor_count,
        host=settings.sensor_host,
        base_port=settings.sensor_base_port,
    )
