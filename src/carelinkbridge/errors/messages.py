"""Remediation messages shown alongside classified errors."""

from __future__ import annotations

from carelinkbridge.errors.types import ErrorCategory
from carelinkbridge.errors.types import NetworkErrorCode

CREDENTIAL_ERROR_TEMPLATES: dict[str, str] = {
    "no_credentials": (
        "No CareLink session found.\n"
        "Log in with your CareLink login tool to create logindata.json, "
        "then run carelinkbridge auth status to verify."
    ),
    "refresh_expired": (
        "The CareLink refresh token was rejected and the stored session was deleted.\n"
        "Log in again with your CareLink login tool."
    ),
}

NETWORK_REMEDIATION: dict[NetworkErrorCode, str] = {
    NetworkErrorCode.CONNECTION_REFUSED: "The proxy or CareLink server refused the connection.",
    NetworkErrorCode.TIMEOUT: "The request timed out. The proxy may be slow or dead.",
    NetworkErrorCode.CONNECTION_RESET: "The connection was reset. The proxy may have dropped it.",
    NetworkErrorCode.DNS_NOT_FOUND: "Could not resolve the server address. Check DNS and the server setting.",
    NetworkErrorCode.TLS_PROTOCOL: "TLS handshake failed. The proxy may not support HTTPS tunnelling.",
    NetworkErrorCode.BAD_SOCKET_PORT: "A proxy in the proxy list has an invalid port.",
    NetworkErrorCode.PROXY_TUNNEL: "The proxy rejected the tunnel request. Check proxy credentials.",
}


def get_credential_error_message(error_type: str) -> str:
    """Get the remediation text for a credential failure.

    Args:
        error_type: Template key ("no_credentials" or "refresh_expired")

    Returns:
        Message with remediation steps
    """
    return CREDENTIAL_ERROR_TEMPLATES.get(
        error_type,
        "CareLink credentials are unusable. Log in to CareLink again.",
    )


def get_remediation(
    category: ErrorCategory,
    network_code: NetworkErrorCode | None = None,
    status_code: int | None = None,
) -> str | None:
    """Get a remediation hint for a classified failure."""
    if network_code is not None:
        return NETWORK_REMEDIATION.get(network_code)

    match category:
        case ErrorCategory.PROXY:
            if status_code == 407:
                return "Proxy authentication required. Check the proxy list credentials."
            return "CareLink rejected the request. The proxy may be blocked; another will be tried."
        case ErrorCategory.STRATEGY:
            return "CareLink returned no usable data for this account. Check the patient and country settings."
        case ErrorCategory.REQUEST_CEILING:
            return "Too many requests in one fetch. This usually means the API changed; please report it."
        case ErrorCategory.CONFIGURATION:
            return "Run 'carelinkbridge config show' to check your configuration."
        case _:
            return None
