from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_history, render_relay, render_status


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for driving the sensor monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between status refreshes when watching.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum seconds to keep watching.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("connect")
def connect_command(
    ctx: typer.Context,
    address: Optional[str] = typer.Argument(
        None, help="Device IPv4 address. Defaults to the last address that connected."
    ),
) -> None:
    """Connect to a device and start polling it."""
    state = _get_state(ctx)
    typer.echo(f"Connecting to {address or 'the remembered device'} ...")
    payload = state.client.connect(address)
    typer.secho(f"Connected. address={payload.get('address')}", fg=typer.colors.GREEN)
    typer.echo()
    render_status(payload)


@app.command("disconnect")
def disconnect_command(ctx: typer.Context) -> None:
    """Stop polling the current device."""
    state = _get_state(ctx)
    state.client.disconnect()
    typer.echo("Disconnected.")


@app.command("status")
def status_command(
    ctx: typer.Context,
    watch: bool = typer.Option(
        False,
        "--watch/--no-watch",
        help="Keep refreshing until the session ends or the timeout elapses.",
    ),
) -> None:
    """Show the connection state and the last reading."""
    state = _get_state(ctx)
    if not watch:
        render_status(state.client.get_status())
        return

    def _render(payload: dict) -> None:
        render_status(payload)
        typer.echo()

    state.client.watch_status(
        interval=state.config.poll_interval,
        timeout=state.config.poll_timeout,
        on_update=_render,
    )


@app.command("history")
def history_command(ctx: typer.Context) -> None:
    """List stored readings, most recent first."""
    state = _get_state(ctx)
    render_history(state.client.get_history())


@app.command("clear-history")
def clear_history_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete every stored reading."""
    state = _get_state(ctx)
    if not yes:
        typer.confirm("Delete the whole reading history?", abort=True)
    state.client.clear_history()
    typer.secho("History cleared.", fg=typer.colors.GREEN)


@app.command("relay")
def relay_command(ctx: typer.Context) -> None:
    """Send the stored history to the collector."""
    state = _get_state(ctx)
    payload = state.client.relay()
    render_relay(payload)
    if not payload.get("success"):
        raise typer.Exit(code=1)
