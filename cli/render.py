from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

from services.pipeline import PipelineReport


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_float(value: Any, digits: int) -> str:
    if isinstance(value, (int, float)):
        return f"{value:.{digits}f}"
    return str(value)


def render_record(payload: Dict[str, Any]) -> None:
    echo_heading("Latest Record")
    echo_key_values(
        [
            ("measurement", payload.get("measurement")),
            ("timestamp", payload.get("timestamp")),
            ("temperature_c", _format_float(payload.get("temperature_c"), 3)),
            ("pressure_hpa", _format_float(payload.get("pressure_hpa"), 3)),
            ("humidity", _format_float(payload.get("humidity"), 4)),
        ]
    )


def render_records(records: Iterable[Dict[str, Any]]) -> None:
    rows = list(records)
    echo_heading(f"Records ({len(rows)})")
    if not rows:
        typer.echo("No records stored yet.")
        return
    for row in rows:
        typer.echo(
            f"  - {row.get('timestamp')}  "
            f"T={_format_float(row.get('temperature_c'), 3)}C  "
            f"P={_format_float(row.get('pressure_hpa'), 3)}hPa  "
            f"H={_format_float(row.get('humidity'), 4)}"
        )


def render_report(report: PipelineReport) -> None:
    echo_heading("Run Summary")
    echo_key_values(
        [
            ("samples_read", report.samples_read),
            ("windows_emitted", report.windows_emitted),
            ("partial_discarded", report.partial_discarded),
            ("records_written", report.records_written),
            ("write_failures", report.write_failures),
        ]
    )
