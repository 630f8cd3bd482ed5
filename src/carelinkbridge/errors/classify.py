"""Exception classification for the fetch retry policy."""

from __future__ import annotations

import json

import httpx
import msgspec

from carelinkbridge.errors.messages import get_credential_error_message
from carelinkbridge.errors.messages import get_remediation
from carelinkbridge.errors.network import is_proxy_status
from carelinkbridge.errors.network import network_error_code
from carelinkbridge.errors.types import AllEndpointsFailedError
from carelinkbridge.errors.types import CareLinkError
from carelinkbridge.errors.types import ClassifiedError
from carelinkbridge.errors.types import ErrorCategory
from carelinkbridge.errors.types import ErrorSeverity
from carelinkbridge.errors.types import NoCredentialsError
from carelinkbridge.errors.types import RefreshExpiredError
from carelinkbridge.errors.types import RetryAction


def extract_error_message(response: httpx.Response) -> str:
    """Extract a meaningful error message from an HTTP response."""
    status = response.status_code

    try:
        body = response.json()
        if isinstance(body, dict):
            for key in ("error", "message", "detail", "error_description"):
                value = body.get(key)
                if isinstance(value, str):
                    return value
                if isinstance(value, dict) and "message" in value:
                    return str(value["message"])
    except (json.JSONDecodeError, UnicodeDecodeError, httpx.ResponseNotRead):
        pass

    try:
        text = response.text.strip()
    except httpx.ResponseNotRead:
        text = ""
    if text and len(text) < 200:
        return text

    return f"HTTP {status}"


def classify_http_status_error(error: httpx.HTTPStatusError) -> ClassifiedError:
    """Classify an HTTP error status into a retry decision."""
    status = error.response.status_code
    detail = extract_error_message(error.response)

    if is_proxy_status(status):
        category = ErrorCategory.PROXY
        severity = ErrorSeverity.TRANSIENT
        action = RetryAction.SWAP_PROXY
    else:
        category = ErrorCategory.UNKNOWN
        severity = ErrorSeverity.RECOVERABLE
        action = RetryAction.BACKOFF

    return ClassifiedError(
        message=f"HTTP {status}: {detail}",
        category=category,
        severity=severity,
        action=action,
        status_code=status,
        remediation=get_remediation(category, status_code=status),
        details={"url": str(error.request.url), "response": detail},
    )


def classify_exception(e: BaseException) -> ClassifiedError:
    """Classify any exception raised during a fetch attempt."""

    if isinstance(e, NoCredentialsError):
        return ClassifiedError(
            message=str(e),
            category=ErrorCategory.CREDENTIALS,
            severity=ErrorSeverity.FATAL,
            action=RetryAction.RAISE,
            remediation=get_credential_error_message("no_credentials"),
        )

    if isinstance(e, RefreshExpiredError):
        return ClassifiedError(
            message=str(e),
            category=ErrorCategory.CREDENTIALS,
            severity=ErrorSeverity.FATAL,
            action=RetryAction.RAISE,
            remediation=get_credential_error_message("refresh_expired"),
        )

    if isinstance(e, CareLinkError):
        action = (
            RetryAction.RAISE
            if e.severity == ErrorSeverity.FATAL
            else RetryAction.BACKOFF
        )
        details = {"tried": e.tried} if isinstance(e, AllEndpointsFailedError) else None
        return ClassifiedError(
            message=str(e),
            category=e.category,
            severity=e.severity,
            action=action,
            remediation=get_remediation(e.category),
            details=details,
        )

    if isinstance(e, httpx.HTTPStatusError):
        return classify_http_status_error(e)

    if (code := network_error_code(e)) is not None:
        return ClassifiedError(
            message=f"Network error ({code}): {e}",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            action=RetryAction.SWAP_PROXY,
            network_code=code,
            remediation=get_remediation(ErrorCategory.NETWORK, network_code=code),
        )

    if isinstance(e, httpx.TransportError):
        return ClassifiedError(
            message=f"Network error: {e}",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.RECOVERABLE,
            action=RetryAction.BACKOFF,
        )

    if isinstance(e, (json.JSONDecodeError, msgspec.DecodeError, KeyError, ValueError, TypeError)):
        return ClassifiedError(
            message=f"Invalid response format: {e}",
            category=ErrorCategory.PARSE,
            severity=ErrorSeverity.RECOVERABLE,
            action=RetryAction.BACKOFF,
        )

    return ClassifiedError(
        message=str(e) or type(e).__name__,
        category=ErrorCategory.UNKNOWN,
        severity=ErrorSeverity.RECOVERABLE,
        action=RetryAction.BACKOFF,
        details={"type": type(e).__name__},
    )
