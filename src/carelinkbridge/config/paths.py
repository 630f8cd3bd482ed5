"""Platform-specific paths for carelinkbridge configuration and credentials."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir

PACKAGE_NAME = "carelinkbridge"

SESSION_FILE_NAME = "logindata.json"
PROXY_FILE_NAME = "https.txt"


def _get_env_path(env_var: str, fallback: Path) -> Path:
    """Get path from environment variable or fallback."""
    if env_value := os.environ.get(env_var):
        return Path(env_value)
    return fallback


def config_dir() -> Path:
    """Get user config directory.

    Respects CARELINKBRIDGE_CONFIG_DIR environment variable.
    """
    base_dir = Path(user_config_dir(PACKAGE_NAME))
    return _get_env_path("CARELINKBRIDGE_CONFIG_DIR", base_dir)


def credentials_dir() -> Path:
    """Get credentials subdirectory."""
    return config_dir() / "credentials"


def session_file() -> Path:
    """Default location of the persisted CareLink session."""
    return credentials_dir() / SESSION_FILE_NAME


def proxy_file() -> Path:
    """Default location of the proxy list."""
    return config_dir() / PROXY_FILE_NAME


def config_file() -> Path:
    """Get main config.toml path."""
    return config_dir() / "config.toml"


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    for directory in (config_dir(), credentials_dir()):
        directory.mkdir(parents=True, exist_ok=True)
