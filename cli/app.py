from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, replace
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config, load_simulator_config
from cli.render import render_readout, render_sensors
from cli.simulator import SensorNodeSimulator
from logging_config import configure_logging
from services.engine import ReadoutEngine, engine_from_settings
from settings import get_settings

logger = logging.getLogger(__name__)

_TERMINATION_SIGNALS = ("SIGTERM", "SIGINT", "SIGQUIT")


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Average temperature readout over a fixed set of TCP sensor nodes.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _install_signal_handlers(engine: ReadoutEngine) -> None:
    def terminate(signum: int, _frame: object) -> None:
        logger.warning("Signal received. Closing application orderly, cleanly and gracefully")
        engine.stop()

    for name in _TERMINATION_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is not None:
            signal.signal(signum, terminate)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Status API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds for status requests.",
    ),
) -> None:
    """Entry point for the CLI."""
    ctx.obj = CLIState(config=load_config(base_url=base_url, timeout=timeout))


@app.command("run")
def run_command(
    sensors: Optional[int] = typer.Option(None, "--sensors", min=1, help="Number of sensor nodes."),
    host: Optional[str] = typer.Option(None, "--host", help="Host of every sensor node."),
    base_port: Optional[int] = typer.Option(
        None, "--base-port", min=1, max=65535, help="Port of sensor 0; sensor i listens on base + i."
    ),
    stale_after: Optional[float] = typer.Option(
        None, "--stale-after", min=0, help="Seconds after which a reading is ignored."
    ),
    min_interval: Optional[float] = typer.Option(
        None, "--min-interval", min=0, help="Minimum seconds between readout updates."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Connect to the sensors and print the average temperature until signalled."""
    configure_logging(log_level.upper() if log_level else None)
    settings = get_settings()
    overrides = {
        "sensor_count": sensors,
        "sensor_host": host,
        "sensor_base_port": base_port,
        "stale_reading_seconds": stale_after,
        "min_display_interval_seconds": min_interval,
    }
    settings = replace(settings, **{key: value for key, value in overrides.items() if value is not None})

    try:
        engine = engine_from_settings(settings)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    _install_signal_handlers(engine)
    engine.start()
    while not engine.wait(0.5):
        pass


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface for the status API."),
    port: int = typer.Option(8000, "--port", help="Port for the status API."),
) -> None:
    """Run the engine behind the HTTP status API."""
    import uvicorn

    uvicorn.run("app.main:app", host=host, port=port)


@app.command("simulate")
def simulate_command(
    port: int = typer.Argument(..., min=1, max=65535, help="Port to listen on."),
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to listen on."),
    period: Optional[float] = typer.Option(
        None, "--period", help="Seconds between periodic reports (default 60)."
    ),
) -> None:
    """Pretend to be a temperature sensor node."""
    configure_logging()
    simulator = SensorNodeSimulator(port=port, host=host, config=load_simulator_config(period))
    typer.echo(f"Simulating sensor node on {host}:{port} ...")
    try:
        asyncio.run(simulator.serve_forever())
    except KeyboardInterrupt:
        typer.echo("Sensor node stopped.")


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show the readout and sensor table of a running status API."""
    state = _get_state(ctx)
    client = ApiClient(state.config)
    try:
        render_readout(client.get_readout())
        render_sensors(client.get_sensors())
    finally:
        client.close()
