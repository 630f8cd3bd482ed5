"""Fetch and watch commands for carelinkbridge."""

from __future__ import annotations

import typer
from rich.console import Console

from carelinkbridge.cli.app import app
from carelinkbridge.cli.app import apply_config_verbosity
from carelinkbridge.cli.app import exit_code_for
from carelinkbridge.cli.app import load_cli_config
from carelinkbridge.core.fetch import CareLinkClient
from carelinkbridge.core.poll import run_polling_loop
from carelinkbridge.display.json import output_json
from carelinkbridge.display.json import output_json_error
from carelinkbridge.display.rich import format_cycle
from carelinkbridge.display.rich import render_summary
from carelinkbridge.errors.classify import classify_exception
from carelinkbridge.errors.types import ClassifiedError
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.models import summarize


def show_error(console: Console, error: ClassifiedError, json_mode: bool) -> None:
    """Report a failed fetch on stdout (JSON) or the console."""
    if json_mode:
        output_json_error(error)
        return

    console.print(f"[red]Fetch failed:[/red] {error.message}")
    if error.remediation:
        console.print(f"[dim]{error.remediation}[/dim]")


def show_snapshot(
    console: Console,
    snapshot: TelemetrySnapshot,
    json_mode: bool,
) -> None:
    if json_mode:
        output_json(snapshot)
    else:
        console.print(render_summary(summarize(snapshot)))


@app.command("fetch")
async def fetch_command(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Print the raw snapshot as JSON",
    ),
) -> None:
    """Run one fetch cycle and show the latest snapshot."""
    console = Console()
    json_mode = json_output or ctx.meta.get("json", False)
    config = load_cli_config(json_mode)
    apply_config_verbosity(ctx, config)
    verbose = ctx.meta.get("verbose", False)

    async with CareLinkClient(config) as client:
        try:
            snapshot = await client.fetch()
        except Exception as e:
            classified = classify_exception(e)
            show_error(console, classified, json_mode)
            raise typer.Exit(exit_code_for(classified)) from e

        show_snapshot(console, snapshot, json_mode)
        if verbose and not json_mode:
            console.print(format_cycle(client.last_cycle))


@app.command("watch")
async def watch_command(
    ctx: typer.Context,
    interval: int = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between fetches (defaults to the configured interval)",
    ),
    count: int = typer.Option(
        None,
        "--count",
        "-n",
        help="Stop after this many fetches",
    ),
    stop_on_auth_error: bool = typer.Option(
        False,
        "--stop-on-auth-error",
        help="Exit when the CareLink session needs a new login",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Print each snapshot as one line of JSON",
    ),
) -> None:
    """Fetch repeatedly, logging failures and carrying on."""
    console = Console()
    json_mode = json_output or ctx.meta.get("json", False)

    config = load_cli_config(json_mode)
    apply_config_verbosity(ctx, config)
    interval = interval or config.fetch.interval

    def on_snapshot(snapshot: TelemetrySnapshot) -> None:
        show_snapshot(console, snapshot, json_mode)

    async with CareLinkClient(config) as client:
        try:
            await run_polling_loop(
                client,
                interval,
                on_snapshot,
                max_cycles=count,
                stop_on_credential_error=stop_on_auth_error,
            )
        except Exception as e:
            classified = classify_exception(e)
            show_error(console, classified, json_mode)
            raise typer.Exit(exit_code_for(classified)) from e
