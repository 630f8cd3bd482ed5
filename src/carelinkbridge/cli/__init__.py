"""Command-line interface for carelinkbridge."""

from carelinkbridge.cli.app import ExitCode, app, run_app

__all__ = ["app", "run_app", "ExitCode"]
