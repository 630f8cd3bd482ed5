"""Error types and classifications."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

import msgspec


class ErrorCategory(StrEnum):
    """Error categories for handling decisions."""

    CREDENTIALS = "credentials"
    PROXY = "proxy"
    NETWORK = "network"
    STRATEGY = "strategy"
    REQUEST_CEILING = "request_ceiling"
    PARSE = "parse"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ErrorSeverity(StrEnum):
    """Error severity levels."""

    FATAL = "fatal"
    RECOVERABLE = "recoverable"
    TRANSIENT = "transient"


class RetryAction(StrEnum):
    """What the fetch orchestrator does after a failed attempt."""

    SWAP_PROXY = "swap_proxy"
    BACKOFF = "backoff"
    RAISE = "raise"


class NetworkErrorCode(StrEnum):
    """Low-level network failures that indicate a bad route or proxy."""

    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    CONNECTION_RESET = "connection_reset"
    DNS_NOT_FOUND = "dns_not_found"
    TLS_PROTOCOL = "tls_protocol"
    BAD_SOCKET_PORT = "bad_socket_port"
    PROXY_TUNNEL = "proxy_tunnel"


# Statuses that usually mean the proxy was blocked, banned or broken
PROXY_STATUS_CODES: frozenset[int] = frozenset({400, 403, 407, 502, 503})


class ClassifiedError(msgspec.Struct, frozen=True):
    """Structured view of a failure with the retry decision attached."""

    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    action: RetryAction
    status_code: int | None = None
    network_code: NetworkErrorCode | None = None
    remediation: str | None = None
    details: dict | None = None
    timestamp: datetime = msgspec.field(
        default_factory=lambda: datetime.now().astimezone()
    )

    @property
    def is_credential_error(self) -> bool:
        return self.category == ErrorCategory.CREDENTIALS


class CareLinkError(Exception):
    """Base class for errors raised by carelinkbridge."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    severity: ErrorSeverity = ErrorSeverity.RECOVERABLE
    default_message: str = "CareLink request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class CredentialError(CareLinkError):
    """A failure that needs a manual login before fetching can resume."""

    category = ErrorCategory.CREDENTIALS
    severity = ErrorSeverity.FATAL


class NoCredentialsError(CredentialError):
    default_message = "No CareLink session found. Log in to CareLink first."


class RefreshExpiredError(CredentialError):
    default_message = "Refresh token expired. Log in to CareLink again."


class StrategyError(CareLinkError):
    """The role-specific request graph could not produce a snapshot."""

    category = ErrorCategory.STRATEGY


class NoLinkedPatientError(StrategyError):
    default_message = "No linked patients found for care partner account"


class MissingDataEndpointError(StrategyError):
    default_message = "Unable to retrieve data retrieval URL for care partner account"


class NoBleEndpointError(StrategyError):
    default_message = "No BLE endpoint found in country settings"


class EmptyBleResponseError(StrategyError):
    default_message = "BLE endpoint returned empty data"


class AllEndpointsFailedError(StrategyError):
    default_message = "All carepartner data endpoints failed"

    def __init__(self, tried: list[str], message: str | None = None) -> None:
        super().__init__(message)
        self.tried = list(tried)


class RequestCeilingExceededError(CareLinkError):
    category = ErrorCategory.REQUEST_CEILING
    severity = ErrorSeverity.FATAL
    default_message = "Request count exceeds the maximum in one fetch"

    def __init__(self, ceiling: int, message: str | None = None) -> None:
        super().__init__(message or f"{self.default_message} ({ceiling})")
        self.ceiling = ceiling
