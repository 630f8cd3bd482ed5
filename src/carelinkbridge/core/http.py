"""HTTP transport setup for talking to CareLink."""

from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Callable

import httpx

from carelinkbridge.config.settings import DEFAULT_TIMEOUT
from carelinkbridge.core.proxy import ProxyCandidate

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

# CareLink is picky about clients that don't look like a browser
BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

JSON_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json, text/plain, */*",
}

RequestHook = Callable[[httpx.Request], Awaitable[None]]
TransportFactory = Callable[[ProxyCandidate | None], httpx.AsyncBaseTransport]


def get_timeout_config(timeout: float = DEFAULT_TIMEOUT) -> httpx.Timeout:
    """Per-request timeout applied to connect, read, write and pool waits."""
    return httpx.Timeout(timeout)


def default_transport(proxy: ProxyCandidate | None) -> httpx.AsyncBaseTransport:
    """Build a connection pool, routed through ``proxy`` when given."""
    return httpx.AsyncHTTPTransport(
        proxy=httpx.Proxy(proxy.url) if proxy else None,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
    )


async def raise_for_error_status(response: httpx.Response) -> None:
    """Treat 4xx/5xx as errors and let 1xx-3xx through to the caller.

    Redirects are not followed, so 3xx responses reach the caller as-is.
    """
    if response.status_code >= 400:
        await response.aread()
        response.raise_for_status()


def create_http_client(
    proxy: ProxyCandidate | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    on_request: RequestHook | None = None,
    transport_factory: TransportFactory = default_transport,
) -> httpx.AsyncClient:
    """Create an HTTP client bound to one proxy (or none).

    Args:
        proxy: Proxy to route every request through
        timeout: Per-request timeout in seconds
        on_request: Hook awaited before each request is sent
        transport_factory: Builds the transport for ``proxy``

    Returns:
        Configured httpx.AsyncClient; the caller owns and closes it
    """
    return httpx.AsyncClient(
        headers=BROWSER_HEADERS,
        timeout=get_timeout_config(timeout),
        follow_redirects=False,
        trust_env=False,
        transport=transport_factory(proxy),
        event_hooks={
            "request": [on_request] if on_request else [],
            "response": [raise_for_error_status],
        },
    )
