"""CLI commands for carelinkbridge."""
