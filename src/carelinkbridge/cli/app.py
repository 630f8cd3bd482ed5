"""Main CLI application for carelinkbridge."""

from __future__ import annotations

import logging
from enum import IntEnum

import msgspec
import typer
from rich.console import Console
from rich.logging import RichHandler

from carelinkbridge.cli.atyper import ATyper
from carelinkbridge.config.paths import config_file
from carelinkbridge.config.settings import Config
from carelinkbridge.config.settings import get_config
from carelinkbridge.errors.types import ClassifiedError
from carelinkbridge.errors.types import ErrorCategory
from carelinkbridge.errors.types import ErrorSeverity

app = ATyper(
    name="carelinkbridge",
    help="Fetch CareLink telemetry through rotating proxies",
    add_completion=False,
    no_args_is_help=False,
    invoke_without_command=True,
)


class ExitCode(IntEnum):
    """Exit codes for carelinkbridge."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NETWORK_ERROR = 3
    CONFIG_ERROR = 4


def exit_code_for(error: ClassifiedError) -> ExitCode:
    """Map a classified failure to the process exit code."""
    match error.category:
        case ErrorCategory.CREDENTIALS:
            return ExitCode.AUTH_ERROR
        case ErrorCategory.NETWORK | ErrorCategory.PROXY:
            return ExitCode.NETWORK_ERROR
        case ErrorCategory.CONFIGURATION:
            return ExitCode.CONFIG_ERROR
        case _:
            return ExitCode.GENERAL_ERROR


def load_cli_config(json_mode: bool = False) -> Config:
    """Load configuration, exiting with CONFIG_ERROR when it is unusable."""
    try:
        return get_config()
    except (ValueError, msgspec.ValidationError) as e:
        if json_mode:
            from carelinkbridge.display.json import create_error_response
            from carelinkbridge.display.json import output_json_pretty

            output_json_pretty(
                create_error_response(
                    message=str(e),
                    category=ErrorCategory.CONFIGURATION.value,
                    severity=ErrorSeverity.FATAL.value,
                    remediation=f"Check {config_file()} and CARELINK_* variables",
                )
            )
        else:
            Console(stderr=True).print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e


def apply_config_verbosity(ctx: typer.Context, config: Config) -> None:
    """Turn on debug logging from config when no --verbose/--quiet flag was given."""
    if not config.verbose or ctx.meta.get("verbose") or ctx.meta.get("quiet"):
        return
    ctx.meta["verbose"] = True
    configure_logging(verbose=True)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr through Rich.

    Quiet wins over verbose when both are given.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        ],
        force=True,
    )
    # httpx logs every request at INFO, which includes full URLs
    logging.getLogger("httpx").setLevel(logging.WARNING if not verbose else logging.INFO)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", "-j", help="Enable JSON output mode"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Enable quiet mode"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """carelinkbridge - Fetch the latest CareLink snapshot."""
    if version:
        from carelinkbridge import __version__

        typer.echo(f"carelinkbridge {__version__}")
        raise typer.Exit()

    if verbose and quiet:
        verbose = False

    ctx.meta["json"] = json
    ctx.meta["verbose"] = verbose
    ctx.meta["quiet"] = quiet

    configure_logging(verbose=verbose, quiet=quiet)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def run_app() -> None:
    """Run the CLI app."""
    app()


# Command modules register themselves on import, so they come after app
from carelinkbridge.cli.commands import auth as auth_cmd  # noqa: E402
from carelinkbridge.cli.commands import config as config_cmd  # noqa: E402
from carelinkbridge.cli.commands import fetch as fetch_cmd  # noqa: E402, F401

app.add_typer(auth_cmd.auth_app, name="auth")
app.add_typer(config_cmd.config_app, name="config")
