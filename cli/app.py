from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_record, render_records, render_report
from datastore.sinks import open_sink
from logging_config import configure_logging
from sensors.base import SensorError
from sensors.factory import open_sensor
from services.pipeline import Pipeline
from settings import (
    SENSOR_BACKENDS,
    SINK_BACKENDS,
    ConfigurationError,
    Settings,
    get_settings,
    validate_backend,
    validate_positive_int,
)

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Sample an environment sensor, average fixed windows and store the results.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _resolve_settings(
    window: Optional[int],
    interval: Optional[int],
    sensor: Optional[str],
    sink: Optional[str],
) -> Settings:
    try:
        settings = get_settings()
        overrides: dict[str, object] = {}
        if window is not None:
            overrides["window_size"] = validate_positive_int("--window", window)
        if interval is not None:
            overrides["read_interval"] = validate_positive_int("--interval", interval)
        if sensor is not None:
            overrides["sensor_backend"] = validate_backend("--sensor", sensor, SENSOR_BACKENDS)
        if sink is not None:
            overrides["sink_backend"] = validate_backend("--sink", sink, SINK_BACKENDS)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return dataclasses.replace(settings, **overrides)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Read API base URL (defaults to ENVMON_API_URL env or http://localhost:8000).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("run")
def run_command(
    window: Optional[int] = typer.Option(
        None,
        "--window",
        "-w",
        help="Number of samples averaged into one record (default 8).",
    ),
    interval: Optional[int] = typer.Option(
        None,
        "--interval",
        "--read-interval",
        "-i",
        help="Seconds between sensor reads (default 15).",
    ),
    sensor: Optional[str] = typer.Option(
        None, "--sensor", help="Sensor backend: simulated or bme280."
    ),
    sink: Optional[str] = typer.Option(None, "--sink", help="Sink backend: local or influxdb."),
) -> None:
    """Run the sampling pipeline until SIGINT or SIGTERM."""
    settings = _resolve_settings(window, interval, sensor, sink)
    configure_logging(settings.log_level)

    try:
        with open_sensor(settings) as env_sensor, open_sink(settings) as record_sink:
            pipeline = Pipeline(
                sensor=env_sensor,
                sink=record_sink,
                window_size=settings.window_size,
                interval=settings.read_interval,
                measurement=settings.measurement,
            )
            report = pipeline.run()
    except SensorError as exc:
        logger.critical("Fatal sensor failure", extra={"reason": str(exc)})
        typer.secho(f"Fatal sensor error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    render_report(report)


@app.command("records")
def records_command(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, max=1000, help="Records to show."),
) -> None:
    """List recent averaged records from the read API."""
    state = _get_state(ctx)
    render_records(state.client.list_records(limit))


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent averaged record."""
    state = _get_state(ctx)
    render_record(state.client.get_latest())
