"""Display utilities for carelinkbridge.

Terminal (Rich-based) and JSON output for snapshots and errors.
"""
from __future__ import annotations

from carelinkbridge.display.json import encode_json
from carelinkbridge.display.json import from_classified_error
from carelinkbridge.display.json import output_json
from carelinkbridge.display.json import output_json_error
from carelinkbridge.display.json import output_json_pretty
from carelinkbridge.display.rich import format_age
from carelinkbridge.display.rich import format_cycle
from carelinkbridge.display.rich import format_sg
from carelinkbridge.display.rich import render_summary
from carelinkbridge.display.rich import sg_color

__all__ = [
    # Rich rendering
    "render_summary",
    "format_sg",
    "format_age",
    "format_cycle",
    "sg_color",
    # JSON output
    "output_json",
    "output_json_pretty",
    "output_json_error",
    "from_classified_error",
    "encode_json",
]
