"""Config management commands for carelinkbridge."""

from __future__ import annotations

import msgspec.toml
import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from carelinkbridge.cli.app import load_cli_config
from carelinkbridge.cli.atyper import ATyper
from carelinkbridge.config.paths import config_dir
from carelinkbridge.config.paths import config_file
from carelinkbridge.config.paths import credentials_dir
from carelinkbridge.config.paths import ensure_directories
from carelinkbridge.config.paths import proxy_file
from carelinkbridge.config.settings import Config
from carelinkbridge.config.settings import config_to_dict
from carelinkbridge.config.settings import save_config

config_app = ATyper(help="Manage configuration settings.")


@config_app.command("show")
def config_show_command(ctx: typer.Context) -> None:
    """Display current settings, environment overrides included."""
    console = Console()
    json_mode = ctx.meta.get("json", False)
    verbose = ctx.meta.get("verbose", False)
    quiet = ctx.meta.get("quiet", False)

    config = load_cli_config(json_mode)
    config_path = config_file()

    if json_mode:
        from carelinkbridge.display.json import output_json_pretty

        data = config_to_dict(config)
        data["path"] = str(config_path)
        output_json_pretty(data)
        return

    if quiet:
        console.print(str(config_path))
        return

    toml_data = msgspec.toml.encode(config)
    console.print(
        Panel(Syntax(toml_data.decode() or "# all defaults\n", "toml"), title=f"Config: {config_path}")
    )

    if verbose:
        if config_path.exists():
            console.print(f"[dim]File size: {config_path.stat().st_size} bytes[/dim]")
        else:
            console.print("[dim]Using default configuration (file not created yet)[/dim]")


@config_app.command("path")
def config_path_command(ctx: typer.Context) -> None:
    """Show the files and directories carelinkbridge reads."""
    console = Console()
    json_mode = ctx.meta.get("json", False)
    verbose = ctx.meta.get("verbose", False)

    config = load_cli_config(json_mode)
    paths = {
        "config_dir": config_dir(),
        "config_file": config_file(),
        "credentials_dir": credentials_dir(),
        "session_file": config.session_path(),
        "proxy_file": config.proxy_path(),
    }

    if json_mode:
        from carelinkbridge.display.json import output_json_pretty

        output_json_pretty({name: str(path) for name, path in paths.items()})
        return

    for name, path in paths.items():
        label = name.replace("_", " ").capitalize() + ":"
        line = f"{label:<17}{path}"
        if verbose:
            line += " [green](exists)[/green]" if path.exists() else " [dim](missing)[/dim]"
        console.print(line)


@config_app.command("init")
def config_init_command(
    ctx: typer.Context,
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing config file",
    ),
) -> None:
    """Create the config directories and a default config file."""
    console = Console()
    json_mode = ctx.meta.get("json", False)

    ensure_directories()
    path = config_file()
    created = force or not path.exists()
    if created:
        save_config(Config(), path, include_defaults=True)

    if json_mode:
        from carelinkbridge.display.json import output_json_pretty

        output_json_pretty({"success": True, "created": created, "path": str(path)})
    elif created:
        console.print(f"[green]✓[/green] Wrote {path}")
        console.print(f"[dim]Put proxies, one per line, in {proxy_file()}[/dim]")
    else:
        console.print(f"[dim]{path} already exists, use --force to overwrite[/dim]")
