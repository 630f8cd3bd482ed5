"""Pytest configuration and shared fixtures for carelinkbridge tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from helpers import SERVER
from helpers import make_jwt

from carelinkbridge.auth.session import Session
from carelinkbridge.config.settings import CareLinkConfig, Config, FetchConfig, ProxyConfig
from carelinkbridge.core.proxy import ProxyCandidate
from carelinkbridge.core.urls import build_urls


@pytest.fixture
def utc_now() -> datetime:
    """Fixed UTC datetime for consistent testing."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def valid_session() -> Session:
    return Session(
        access_token=make_jwt(datetime.now(UTC) + timedelta(hours=1)),
        refresh_token="refresh-1",
        client_id="client-1",
        token_url="https://mdtlogin.example.com/oauth/token",
    )


@pytest.fixture
def expired_session() -> Session:
    return Session(
        access_token=make_jwt(datetime.now(UTC) - timedelta(minutes=5)),
        refresh_token="refresh-1",
        client_id="client-1",
        token_url="https://mdtlogin.example.com/oauth/token",
    )


@pytest.fixture
def urls():
    return build_urls(SERVER, "gb", "en")


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config with proxies disabled and every path inside tmp_path."""
    return Config(
        carelink=CareLinkConfig(
            username="jane",
            session_file=str(tmp_path / "logindata.json"),
        ),
        proxy=ProxyConfig(enabled=False, file=str(tmp_path / "https.txt")),
        fetch=FetchConfig(),
    )


@pytest.fixture
def proxies() -> list[ProxyCandidate]:
    return [
        ProxyCandidate(host="10.0.0.1", port=8080),
        ProxyCandidate(host="10.0.0.2", port=8080),
        ProxyCandidate(host="10.0.0.3", port=8080, username="u", password="p"),
    ]


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    with patch.dict("os.environ", {"CARELINKBRIDGE_CONFIG_DIR": str(config_dir)}):
        yield config_dir


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CareLink environment variables of the host out of tests."""
    import os

    for name in list(os.environ):
        upper = name.upper()
        if upper.startswith(("CARELINK", "MMCONNECT", "CUSTOMCONNSTR_", "USE_PROXY")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    import carelinkbridge.config.settings as settings

    settings._config = None
    yield
    settings._config = None
