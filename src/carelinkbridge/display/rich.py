"""Rich-based rendering utilities for carelinkbridge."""

from __future__ import annotations

from datetime import UTC
from datetime import datetime

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from carelinkbridge.core.fetch import FetchCycle
from carelinkbridge.models import SnapshotSummary

# Sensor glucose bands in mg/dL
SG_LOW = 70
SG_HIGH = 180

TREND_ARROWS = {
    "UP_TRIPLE": "↑↑↑",
    "UP_DOUBLE": "↑↑",
    "UP": "↑",
    "NONE": "→",
    "DOWN": "↓",
    "DOWN_DOUBLE": "↓↓",
    "DOWN_TRIPLE": "↓↓↓",
}


def sg_color(sg: int | None) -> str:
    """Pick a color for a sensor glucose value."""
    if sg is None or sg <= 0:
        return "dim"
    if sg < SG_LOW:
        return "red"
    if sg > SG_HIGH:
        return "yellow"
    return "green"


def battery_color(percent: int | None) -> str:
    if percent is None:
        return "dim"
    if percent < 20:
        return "red"
    if percent < 50:
        return "yellow"
    return "green"


def format_age(when: datetime | None, now: datetime | None = None) -> str:
    """Format how long ago ``when`` was, e.g. ``3m ago``.

    Args:
        when: Timestamp to describe
        now: Reference time, defaults to the current time

    Returns:
        Human-readable age, or ``unknown``
    """
    if when is None:
        return "unknown"

    now = now or datetime.now(UTC)
    seconds = int((now - when).total_seconds())
    if seconds < 0:
        return "just now"
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h {seconds % 3600 // 60}m ago"
    return f"{seconds // 86400}d ago"


def format_sg(summary: SnapshotSummary) -> Text:
    """Format the latest sensor glucose with its trend arrow."""
    text = Text()
    if not summary.last_sg:
        text.append("no reading", style="dim")
        return text

    text.append(str(summary.last_sg), style=f"bold {sg_color(summary.last_sg)}")
    text.append(" mg/dL", style="dim")
    if summary.trend:
        text.append(f" {TREND_ARROWS.get(summary.trend, summary.trend)}")
    return text


def format_battery(percent: int | None) -> Text:
    if percent is None:
        return Text("n/a", style="dim")
    return Text(f"{percent}%", style=battery_color(percent))


def render_summary(summary: SnapshotSummary, now: datetime | None = None) -> Panel:
    """Render a snapshot summary as a panel for the terminal."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()

    table.add_row("Glucose", format_sg(summary))
    table.add_row("Updated", format_age(summary.last_update, now))
    table.add_row("Device", summary.device_family or "unknown")
    table.add_row("Pump battery", format_battery(summary.pump_battery_percent))
    if summary.conduit_battery_percent is not None:
        table.add_row("Phone/conduit", format_battery(summary.conduit_battery_percent))
    if summary.sensor_state:
        sensor = summary.sensor_state
        if summary.sensor_duration_hours is not None:
            sensor += f" ({summary.sensor_duration_hours}h left)"
        table.add_row("Sensor", sensor)
    if summary.active_insulin is not None:
        table.add_row("Active insulin", f"{summary.active_insulin:.2f} U")
    if summary.last_alarm:
        table.add_row("Last alarm", Text(summary.last_alarm, style="yellow"))
    table.add_row("Readings", str(summary.sg_count))

    return Panel(table, title="CareLink", border_style="cyan", expand=False)


def format_cycle(cycle: FetchCycle) -> Text:
    """One-line description of a fetch cycle for verbose output."""
    text = Text()
    attempts = len(cycle.attempts)
    text.append(f"{attempts} attempt{'s' if attempts != 1 else ''}", style="dim")
    if cycle.proxy_swaps:
        text.append(f" • {cycle.proxy_swaps} proxy swap(s)", style="dim")
    text.append(f" • {cycle.elapsed:.1f}s", style="dim")
    return text
