"""Session inspection commands for carelinkbridge."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from carelinkbridge.cli.app import ExitCode
from carelinkbridge.cli.app import load_cli_config
from carelinkbridge.cli.atyper import ATyper
from carelinkbridge.config.credentials import SessionStore
from carelinkbridge.config.credentials import check_credential_permissions
from carelinkbridge.display.rich import format_age

auth_app = ATyper(help="Inspect or remove the stored CareLink session.")


@auth_app.command("status")
def auth_status_command(ctx: typer.Context) -> None:
    """Show whether a session exists and when its token expires."""
    console = Console()
    json_mode = ctx.meta.get("json", False)
    quiet = ctx.meta.get("quiet", False)

    config = load_cli_config(json_mode)
    path = config.session_path()
    session = SessionStore(path).load()

    expires_at = session.expires_at() if session else None
    data = {
        "authenticated": session is not None,
        "session_file": str(path),
        "expires_at": expires_at.isoformat() if expires_at else None,
        "expired": session.is_expired() if session else None,
        "permissions_ok": check_credential_permissions(path),
    }

    if json_mode:
        from carelinkbridge.display.json import output_json_pretty

        output_json_pretty(data)
    elif quiet:
        console.print("authenticated" if session else "not authenticated")
    else:
        table = Table(title="CareLink Session", show_header=False)
        table.add_column(style="dim")
        table.add_column()

        if session is None:
            table.add_row("Status", "[yellow]No session[/yellow]")
        elif data["expired"]:
            table.add_row("Status", "[yellow]Access token expired (refreshed on next fetch)[/yellow]")
        else:
            table.add_row("Status", "[green]Authenticated[/green]")
        table.add_row("Session file", str(path))
        if expires_at is not None:
            table.add_row("Expires", f"{expires_at:%Y-%m-%d %H:%M %Z}")
        if not data["permissions_ok"]:
            table.add_row("Permissions", "[red]readable by other users, chmod 600 it[/red]")
        console.print(table)

        if session is None:
            console.print("\n[dim]Log in to CareLink to create the session file.[/dim]")

    if session is None:
        raise typer.Exit(ExitCode.AUTH_ERROR)


@auth_app.command("logout")
def auth_logout_command(ctx: typer.Context) -> None:
    """Delete the stored session file."""
    console = Console()
    json_mode = ctx.meta.get("json", False)

    config = load_cli_config(json_mode)
    path = config.session_path()
    existed = path.exists()
    SessionStore(path).delete()

    if json_mode:
        from carelinkbridge.display.json import output_json_pretty

        output_json_pretty({"success": True, "deleted": existed, "session_file": str(path)})
    elif existed:
        console.print(f"[green]✓[/green] Deleted session {path}")
    else:
        console.print(f"[dim]No session at {path}[/dim]")
