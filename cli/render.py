from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_readout(payload: Dict[str, Any]) -> None:
    echo_heading("Readout")
    echo_key_values(
        [
            ("line", payload.get("line")),
            ("mean_value", payload.get("mean_value")),
            ("fresh_count", payload.get("fresh_count")),
        ]
    )
    skipped = payload.get("skipped") or []
    if skipped:
        typer.secho(
            f"unparseable readings from sensors: {', '.join(str(index) for index in skipped)}",
            fg=typer.colors.YELLOW,
        )


def render_sensors(sensors: List[Dict[str, Any]]) -> None:
    typer.echo()
    echo_heading("Sensors")
    if not sensors:
        typer.echo("No sensors configured.")
        return
    for sensor in sensors:
        marker = "fresh" if sensor.get("fresh") else "stale"
        raw_text = (sensor.get("raw_text") or "").strip() or "-"
        typer.echo(
            f"  - [{sensor.get('index')}] {sensor.get('host')}:{sensor.get('port')} "
            f"{sensor.get('state')} reading={raw_text} age={sensor.get('age_seconds')}s ({marker})"
        )
