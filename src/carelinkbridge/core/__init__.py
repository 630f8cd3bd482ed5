"""Core transport, proxy rotation and retry building blocks.

The fetch orchestrator lives in ``carelinkbridge.core.fetch`` and the
polling host in ``carelinkbridge.core.poll``; they are imported from there
since they depend on the strategies package, which depends on this one.
"""

from carelinkbridge.core.http import create_http_client, get_timeout_config
from carelinkbridge.core.proxy import (
    ProxyCandidate,
    ProxyRotator,
    load_proxy_list,
    parse_proxy_line,
)
from carelinkbridge.core.retry import RetryConfig, calculate_retry_delay
from carelinkbridge.core.urls import CareLinkUrls, build_urls, resolve_server_name, resolve_urls

__all__ = [
    # http
    "create_http_client",
    "get_timeout_config",
    # proxy
    "ProxyCandidate",
    "ProxyRotator",
    "load_proxy_list",
    "parse_proxy_line",
    # retry
    "RetryConfig",
    "calculate_retry_delay",
    # urls
    "CareLinkUrls",
    "build_urls",
    "resolve_server_name",
    "resolve_urls",
]
