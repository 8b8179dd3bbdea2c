from __future__ import annotations

import signal
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import _install_signal_handlers, app
from settings import get_settings


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.readout: Dict[str, Any] = {
            "line": "21.4 °C",
            "mean_value": 21.375,
            "fresh_count": 2,
            "skipped": [3],
        }
        self.sensors: List[Dict[str, Any]] = [
            {
                "index": 0,
                "host": "127.0.0.1",
                "port": "5000",
                "state": "connected",
                "raw_text": "21.250000",
                "age_seconds": 3.2,
                "fresh": True,
            },
            {
                "index": 1,
                "host": "127.0.0.1",
                "port": "5001",
                "state": "abandoned",
                "raw_text": "",
                "age_seconds": 660.0,
                "fresh": False,
            },
        ]
        self.closed = False

    def get_readout(self) -> Dict[str, Any]:
        return self.readout

    def get_sensors(self) -> List[Dict[str, Any]]:
        return self.sensors

    def close(self) -> None:
        self.closed = True


class StubEngine:
    def __init__(self, settings) -> None:
        self.settings = settings
        self.started = False

    def start(self) -> None:
        self.started = True

    def wait(self, timeout: float | None = None) -> bool:
        return True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def _install_engine_stub(monkeypatch) -> List[StubEngine]:
    engines: List[StubEngine] = []
    handlers: List[StubEngine] = []

    def factory(settings):
        if settings.sensor_count > 100:
            raise ValueError("Sensor ports exceed 65535.")
        engine = StubEngine(settings)
        engines.append(engine)
        return engine

    monkeypatch.setattr("cli.app.engine_from_settings", factory)
    monkeypatch.setattr("cli.app._install_signal_handlers", handlers.append)
    monkeypatch.setattr("cli.app.configure_logging", lambda level=None: None)
    return engines


def test_status_renders_readout_and_sensors(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://sensors.local:9000/", "status"])

    assert result.exit_code == 0
    assert "Readout" in result.stdout
    assert "line: 21.4 °C" in result.stdout
    assert "unparseable readings from sensors: 3" in result.stdout
    assert "[0] 127.0.0.1:5000 connected reading=21.250000 age=3.2s (fresh)" in result.stdout
    assert "[1] 127.0.0.1:5001 abandoned reading=- age=660.0s (stale)" in result.stdout
    assert stub.config.base_url == "http://sensors.local:9000"
    assert stub.closed is True


def test_status_without_sensors(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    stub.sensors = []
    stub.readout = {"line": "--.- °C", "mean_value": None, "fresh_count": 0, "skipped": []}
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "No sensors configured." in result.stdout
    assert "unparseable" not in result.stdout


def test_run_applies_overrides_and_waits_for_stop(monkeypatch, runner: CliRunner) -> None:
    monkeypatch.setenv("SENSOR_COUNT", "6")
    engines = _install_engine_stub(monkeypatch)

    result = runner.invoke(
        app,
        ["run", "--host", "10.0.0.7", "--base-port", "7000", "--min-interval", "0.5"],
    )

    assert result.exit_code == 0
    assert len(engines) == 1
    settings = engines[0].settings
    assert settings.sensor_count == 6
    assert settings.sensor_host == "10.0.0.7"
    assert settings.sensor_base_port == 7000
    assert settings.min_display_interval_seconds == 0.5
    assert settings.stale_reading_seconds == 600.0
    assert engines[0].started is True


def test_run_rejects_invalid_sensor_layout(monkeypatch, runner: CliRunner) -> None:
    engines = _install_engine_stub(monkeypatch)

    result = runner.invoke(app, ["run", "--sensors", "1000"])

    assert result.exit_code == 2
    assert engines == []


def test_simulate_serves_on_requested_port(monkeypatch, runner: CliRunner) -> None:
    created = []

    class StubSimulator:
        def __init__(self, port, host, config) -> None:
            self.port = port
            self.host = host
            self.config = config
            created.append(self)

        async def serve_forever(self) -> None:
            self.served = True

    monkeypatch.setattr("cli.app.SensorNodeSimulator", StubSimulator)
    monkeypatch.setattr("cli.app.configure_logging", lambda level=None: None)

    result = runner.invoke(app, ["simulate", "5003", "--host", "127.0.0.1", "--period", "5"])

    assert result.exit_code == 0
    assert "Simulating sensor node on 127.0.0.1:5003" in result.stdout
    assert created[0].port == 5003
    assert created[0].config.period_seconds == 5.0
    assert created[0].served is True


def test_termination_signals_stop_the_engine(monkeypatch) -> None:
    installed: Dict[int, Any] = {}
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.__setitem__(signum, handler))

    class StoppableEngine:
        def __init__(self) -> None:
            self.stop_calls = 0

        def stop(self) -> None:
            self.stop_calls += 1

    engine = StoppableEngine()
    _install_signal_handlers(engine)

    assert signal.SIGTERM in installed
    assert signal.SIGINT in installed

    installed[signal.SIGTERM](signal.SIGTERM, None)

    assert engine.stop_calls == 1
