"""Network error classification utilities.

httpx wraps socket-level failures several layers deep (httpx -> httpcore ->
OSError), so the original cause is found by walking the exception chain and,
failing that, by matching the message text.
"""

from __future__ import annotations

import socket
import ssl
from collections.abc import Iterator

import httpx

from carelinkbridge.errors.types import NetworkErrorCode
from carelinkbridge.errors.types import PROXY_STATUS_CODES

_MESSAGE_HINTS: tuple[tuple[str, NetworkErrorCode], ...] = (
    ("connection refused", NetworkErrorCode.CONNECTION_REFUSED),
    ("connection reset", NetworkErrorCode.CONNECTION_RESET),
    ("server disconnected", NetworkErrorCode.CONNECTION_RESET),
    ("name or service not known", NetworkErrorCode.DNS_NOT_FOUND),
    ("nodename nor servname", NetworkErrorCode.DNS_NOT_FOUND),
    ("temporary failure in name resolution", NetworkErrorCode.DNS_NOT_FOUND),
    ("getaddrinfo", NetworkErrorCode.DNS_NOT_FOUND),
    ("ssl", NetworkErrorCode.TLS_PROTOCOL),
    ("tls", NetworkErrorCode.TLS_PROTOCOL),
    ("invalid port", NetworkErrorCode.BAD_SOCKET_PORT),
    ("timed out", NetworkErrorCode.TIMEOUT),
)


def _exception_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield the error and every cause/context behind it, once each."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _code_from_type(error: BaseException) -> NetworkErrorCode | None:
    # gaierror and SSLError are OSError subclasses, check them first
    if isinstance(error, socket.gaierror):
        return NetworkErrorCode.DNS_NOT_FOUND
    if isinstance(error, ssl.SSLError):
        return NetworkErrorCode.TLS_PROTOCOL
    if isinstance(error, ConnectionRefusedError):
        return NetworkErrorCode.CONNECTION_REFUSED
    if isinstance(error, ConnectionResetError):
        return NetworkErrorCode.CONNECTION_RESET
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return NetworkErrorCode.TIMEOUT
    if isinstance(error, httpx.ProxyError):
        return NetworkErrorCode.PROXY_TUNNEL
    if isinstance(error, httpx.InvalidURL) and "port" in str(error).lower():
        return NetworkErrorCode.BAD_SOCKET_PORT
    return None


def network_error_code(error: BaseException) -> NetworkErrorCode | None:
    """Map an exception to the network failure it represents, if any.

    Args:
        error: Exception raised while sending a request

    Returns:
        NetworkErrorCode, or None when the error is not a transport failure
    """
    chain = list(_exception_chain(error))

    for link in chain:
        code = _code_from_type(link)
        if code is not None:
            return code

    if not any(isinstance(link, (httpx.TransportError, OSError)) for link in chain):
        return None

    for link in chain:
        message = str(link).lower()
        for hint, code in _MESSAGE_HINTS:
            if hint in message:
                return code

    return None


def is_network_error(error: BaseException) -> bool:
    """Check if an exception is a network-related error."""
    return network_error_code(error) is not None


def is_proxy_status(status_code: int) -> bool:
    """Check if an HTTP status suggests the current proxy is unusable."""
    return status_code in PROXY_STATUS_CODES
