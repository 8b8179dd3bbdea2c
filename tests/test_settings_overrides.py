from __future__ import annotations

import pytest

from services.registry import registry_from_settings
from settings import (
    DEFAULT_MIN_DISPLAY_INTERVAL_SECONDS,
    DEFAULT_READ_BUFFER_SIZE,
    DEFAULT_SENSOR_BASE_PORT,
    DEFAULT_SENSOR_COUNT,
    DEFAULT_STALE_READING_SECONDS,
    get_settings,
)

_ENV_NAMES = (
    "SENSOR_COUNT",
    "SENSOR_HOST",
    "SENSOR_BASE_PORT",
    "STALE_READING_SECONDS",
    "MIN_DISPLAY_INTERVAL_SECONDS",
    "READ_BUFFER_SIZE",
    "DISPLAY_UNIT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_describe_four_local_sensors() -> None:
    settings = get_settings()

    assert settings.sensor_count == 4
    assert settings.sensor_host == "127.0.0.1"
    assert settings.sensor_base_port == 5000
    assert settings.stale_reading_seconds == 600.0
    assert settings.min_display_interval_seconds == 1.0
    assert settings.read_buffer_size == 87380
    assert settings.display_unit == "°C"
    assert settings.log_level == "INFO"
    assert [descriptor.port for descriptor in registry_from_settings(settings)] == [
        "5000",
        "5001",
        "5002",
        "5003",
    ]


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_COUNT", "2")
    monkeypatch.setenv("SENSOR_HOST", " sensors.lan ")
    monkeypatch.setenv("SENSOR_BASE_PORT", "7100")
    monkeypatch.setenv("STALE_READING_SECONDS", "90.5")
    monkeypatch.setenv("MIN_DISPLAY_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("READ_BUFFER_SIZE", "64")
    monkeypatch.setenv("DISPLAY_UNIT", "°F")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.sensor_count == 2
    assert settings.sensor_host == "sensors.lan"
    assert settings.sensor_base_port == 7100
    assert settings.stale_reading_seconds == 90.5
    assert settings.min_display_interval_seconds == 0.0
    assert settings.read_buffer_size == 64
    assert settings.display_unit == "°F"
    assert settings.log_level == "DEBUG"
    assert [descriptor.address for descriptor in registry_from_settings(settings)] == [
        "sensors.lan:7100",
        "sensors.lan:7101",
    ]


@pytest.mark.parametrize(
    "name, value",
    [
        ("SENSOR_COUNT", "0"),
        ("SENSOR_COUNT", "four"),
        ("SENSOR_BASE_PORT", "70000"),
        ("SENSOR_BASE_PORT", "-1"),
        ("STALE_READING_SECONDS", "-5"),
        ("MIN_DISPLAY_INTERVAL_SECONDS", "soon"),
        ("READ_BUFFER_SIZE", "   "),
    ],
)
def test_invalid_values_fall_back_to_defaults(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    settings = get_settings()

    assert settings.sensor_count == DEFAULT_SENSOR_COUNT
    assert settings.sensor_base_port == DEFAULT_SENSOR_BASE_PORT
    assert settings.stale_reading_seconds == DEFAULT_STALE_READING_SECONDS
    assert settings.min_display_interval_seconds == DEFAULT_MIN_DISPLAY_INTERVAL_SECONDS
    assert settings.read_buffer_size == DEFAULT_READ_BUFFER_SIZE


def test_settings_are_cached_until_cleared(monkeypatch) -> None:
    first = get_settings()
    monkeypatch.setenv("SENSOR_COUNT", "9")

    assert get_settings() is first

    get_settings.cache_clear()
    assert get_settings().sensor_count == 9
