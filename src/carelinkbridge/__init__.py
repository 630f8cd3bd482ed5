"""carelinkbridge: Fetch CareLink telemetry through rotating proxies."""

from __future__ import annotations

__version__ = "0.1.0"

from carelinkbridge.models import SnapshotSummary
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.models import is_ble_device
from carelinkbridge.models import summarize

__all__ = [
    "__version__",
    "TelemetrySnapshot",
    "SnapshotSummary",
    "is_ble_device",
    "summarize",
]


def main() -> None:
    """Entry point for the carelinkbridge CLI."""
    from carelinkbridge.cli.app import run_app

    run_app()
