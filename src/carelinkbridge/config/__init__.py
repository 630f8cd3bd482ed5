"""Configuration management for carelinkbridge."""

from carelinkbridge.config.credentials import (
    SessionStore,
    check_credential_permissions,
    delete_credential,
    read_credential,
    write_credential,
)
from carelinkbridge.config.paths import (
    config_dir,
    config_file,
    credentials_dir,
    ensure_directories,
    proxy_file,
    session_file,
)
from carelinkbridge.config.settings import (
    CareLinkConfig,
    Config,
    FetchConfig,
    ProxyConfig,
    config_to_dict,
    get_config,
    load_config,
    reload_config,
    save_config,
)

__all__ = [
    # paths
    "config_dir",
    "credentials_dir",
    "config_file",
    "session_file",
    "proxy_file",
    "ensure_directories",
    # settings
    "Config",
    "CareLinkConfig",
    "FetchConfig",
    "ProxyConfig",
    "config_to_dict",
    "get_config",
    "load_config",
    "reload_config",
    "save_config",
    # credentials
    "SessionStore",
    "write_credential",
    "read_credential",
    "delete_credential",
    "check_credential_permissions",
]
