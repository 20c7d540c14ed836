from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_entry(entry: Dict[str, Any]) -> str:
    movement = "MOVEMENT" if entry.get("movement_alert") else "stable"
    return (
        f"  - {entry.get('date')} {entry.get('timestamp')}: "
        f"{float(entry.get('temperature') or 0):.1f}C "
        f"{float(entry.get('humidity') or 0):.1f}% {movement}"
    )


def render_entries(entries: List[Dict[str, Any]]) -> None:
    echo_heading(f"History ({len(entries)} readings)")
    if not entries:
        typer.echo("No readings stored yet. Connect to a device to start collecting data.")
        return
    for entry in entries:
        typer.echo(_format_entry(entry))


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Session")
    echo_key_values(
        [
            ("state", payload.get("state")),
            ("address", payload.get("address")),
            ("last_success_at", payload.get("last_success_at")),
            ("last_address", payload.get("last_address")),
        ]
    )
    error = payload.get("last_error")
    if error:
        typer.secho(f"last_error: {error}", fg=typer.colors.RED)

    reading = payload.get("last_reading") or {}
    typer.echo()
    echo_heading("Last Reading")
    if reading:
        echo_key_values(
            [
                ("temperature", reading.get("temperature")),
                ("humidity", reading.get("humidity")),
                ("observed_at", reading.get("observed_at")),
            ]
        )
        if reading.get("movement_alert"):
            typer.secho("movement: DETECTED", fg=typer.colors.RED, bold=True)
        else:
            typer.echo("movement: stable")
    else:
        typer.echo("No reading available.")


def render_history(payload: Dict[str, Any]) -> None:
    render_entries(payload.get("entries") or [])

    summary = payload.get("summary") or {}
    typer.echo()
    echo_heading("Summary")
    echo_key_values(
        [
            ("entry_count", summary.get("entry_count")),
            ("movement_count", summary.get("movement_count")),
            ("mean_temperature", summary.get("mean_temperature")),
            ("mean_humidity", summary.get("mean_humidity")),
        ]
    )


def render_relay(payload: Dict[str, Any]) -> None:
    color = typer.colors.GREEN if payload.get("success") else typer.colors.RED
    typer.secho(payload.get("message") or "Relay finished.", fg=color)
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("entry_count", payload.get("entry_count")),
        ]
    )
    body = (payload.get("body") or "").strip()
    if body:
        typer.echo(f"body: {body}")
