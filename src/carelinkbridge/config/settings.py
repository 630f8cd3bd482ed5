"""Configuration structures and loading for carelinkbridge."""

import os
import tomllib
from pathlib import Path

import msgspec


# Default values
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_REQUEST_CEILING = 30
DEFAULT_PROXY_SWAP_DELAY = 1.0
DEFAULT_MAX_RETRY_DURATION = 512
DEFAULT_INTERVAL = 300
DEFAULT_COUNTRY_CODE = "gb"
DEFAULT_LANGUAGE = "en"
DEFAULT_SERVER = "EU"


# Account and region selection
class CareLinkConfig(msgspec.Struct, omit_defaults=True):
    """CareLink account and region settings."""

    username: str = ""
    server: str = DEFAULT_SERVER
    server_name: str | None = None
    country_code: str = DEFAULT_COUNTRY_CODE
    language: str = DEFAULT_LANGUAGE
    patient_id: str | None = None
    session_file: str | None = None


# Proxy configuration
class ProxyConfig(msgspec.Struct, omit_defaults=True):
    """Forward proxy settings."""

    enabled: bool = True
    file: str | None = None


# Fetch configuration
class FetchConfig(msgspec.Struct, omit_defaults=True):
    """Fetch behavior settings."""

    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    request_ceiling: int = DEFAULT_REQUEST_CEILING
    proxy_swap_delay: float = DEFAULT_PROXY_SWAP_DELAY
    max_retry_duration: int = DEFAULT_MAX_RETRY_DURATION
    interval: int = DEFAULT_INTERVAL


# Main configuration
class Config(msgspec.Struct, omit_defaults=True):
    """Main configuration structure."""

    carelink: CareLinkConfig = msgspec.field(default_factory=CareLinkConfig)
    proxy: ProxyConfig = msgspec.field(default_factory=ProxyConfig)
    fetch: FetchConfig = msgspec.field(default_factory=FetchConfig)
    verbose: bool = False

    def session_path(self) -> Path:
        """Resolve the session file location."""
        from .paths import session_file

        if self.carelink.session_file:
            return Path(self.carelink.session_file).expanduser()
        return session_file()

    def proxy_path(self) -> Path:
        """Resolve the proxy list location."""
        from .paths import proxy_file

        if self.proxy.file:
            return Path(self.proxy.file).expanduser()
        return proxy_file()


def _load_from_toml(path: Path) -> dict:
    """Load configuration from TOML file."""
    if not path.exists():
        return {}

    with path.open("rb") as f:
        return tomllib.load(f)


def _save_to_toml(data: dict, path: Path) -> None:
    """Save configuration to TOML file."""
    import tomli_w

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(data, f)


def config_to_dict(config: Config) -> dict:
    """Every setting, defaults included, as plain builtins."""
    return {
        "carelink": msgspec.structs.asdict(config.carelink),
        "proxy": msgspec.structs.asdict(config.proxy),
        "fetch": msgspec.structs.asdict(config.fetch),
        "verbose": config.verbose,
    }


def convert_config(data: dict) -> Config:
    """Convert raw dict to Config struct."""
    return msgspec.convert(data, type=Config)


def _read_env(key: str) -> str | None:
    """Read a variable, also accepting lowercase and CUSTOMCONNSTR_ variants."""
    for name in (
        key,
        key.lower(),
        f"CUSTOMCONNSTR_{key}",
        f"CUSTOMCONNSTR_{key.lower()}",
    ):
        value = os.environ.get(name)
        if value:
            return value
    return None


def _read_env_bool(key: str) -> bool | None:
    value = _read_env(key)
    if value is None:
        return None
    return value.strip().lower() not in ("false", "0", "no", "off")


def _read_env_int(key: str) -> int | None:
    value = _read_env(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {value!r}") from e


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config.

    CARELINK_USERNAME, CARELINK_PATIENT: account settings
    MMCONNECT_SERVER, MMCONNECT_SERVERNAME: region or explicit host
    MMCONNECT_COUNTRYCODE, MMCONNECT_LANGCODE: locale for country settings
    USE_PROXY: set to "false" to ignore the proxy list
    CARELINK_INTERVAL, CARELINK_MAX_RETRY_DURATION: timing, in seconds
    CARELINK_QUIET: set to "false" for verbose logging
    """
    carelink_changes = {
        field: value
        for field, key in (
            ("username", "CARELINK_USERNAME"),
            ("patient_id", "CARELINK_PATIENT"),
            ("server", "MMCONNECT_SERVER"),
            ("server_name", "MMCONNECT_SERVERNAME"),
            ("country_code", "MMCONNECT_COUNTRYCODE"),
            ("language", "MMCONNECT_LANGCODE"),
        )
        if (value := _read_env(key)) is not None
    }
    if carelink_changes:
        carelink = msgspec.structs.replace(config.carelink, **carelink_changes)
        config = msgspec.structs.replace(config, carelink=carelink)

    if (use_proxy := _read_env_bool("USE_PROXY")) is not None:
        proxy = msgspec.structs.replace(config.proxy, enabled=use_proxy)
        config = msgspec.structs.replace(config, proxy=proxy)

    fetch_changes = {
        field: value
        for field, key in (
            ("interval", "CARELINK_INTERVAL"),
            ("max_retry_duration", "CARELINK_MAX_RETRY_DURATION"),
        )
        if (value := _read_env_int(key)) is not None
    }
    if fetch_changes:
        fetch = msgspec.structs.replace(config.fetch, **fetch_changes)
        config = msgspec.structs.replace(config, fetch=fetch)

    if (quiet := _read_env_bool("CARELINK_QUIET")) is not None:
        config = msgspec.structs.replace(config, verbose=not quiet)

    return config


# Config state storage
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from disk."""
    global _config
    _config = load_config()
    return _config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file with defaults."""
    from .paths import config_file

    config_path = path or config_file()

    raw_data = _load_from_toml(config_path)
    if not raw_data:
        config = Config()
    else:
        config = convert_config(raw_data)

    return _apply_env_overrides(config)


def save_config(
    config: Config,
    path: Path | None = None,
    *,
    include_defaults: bool = False,
) -> None:
    """Save configuration to file.

    Defaults are left out unless ``include_defaults`` is set, which is how
    a fresh config file lists every available setting.
    """
    from .paths import config_file

    config_path = path or config_file()

    if include_defaults:
        data = config_to_dict(config)
    else:
        data = msgspec.to_builtins(config)

    # TOML has no null
    def clean_none(d: dict) -> dict:
        return {
            k: clean_none(v) if isinstance(v, dict) else v
            for k, v in d.items()
            if v is not None
        }

    _save_to_toml(clean_none(data), config_path)

    global _config
    _config = config
