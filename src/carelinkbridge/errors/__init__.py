"""Error handling for carelinkbridge."""

from carelinkbridge.errors.classify import (
    classify_exception,
    classify_http_status_error,
    extract_error_message,
)
from carelinkbridge.errors.messages import (
    CREDENTIAL_ERROR_TEMPLATES,
    get_credential_error_message,
    get_remediation,
)
from carelinkbridge.errors.network import (
    is_network_error,
    is_proxy_status,
    network_error_code,
)
from carelinkbridge.errors.types import (
    AllEndpointsFailedError,
    CareLinkError,
    ClassifiedError,
    CredentialError,
    EmptyBleResponseError,
    ErrorCategory,
    ErrorSeverity,
    MissingDataEndpointError,
    NetworkErrorCode,
    NoBleEndpointError,
    NoCredentialsError,
    NoLinkedPatientError,
    PROXY_STATUS_CODES,
    RefreshExpiredError,
    RequestCeilingExceededError,
    RetryAction,
    StrategyError,
)

__all__ = [
    # Core types
    "ErrorCategory",
    "ErrorSeverity",
    "RetryAction",
    "NetworkErrorCode",
    "ClassifiedError",
    "PROXY_STATUS_CODES",
    # Exceptions
    "CareLinkError",
    "CredentialError",
    "NoCredentialsError",
    "RefreshExpiredError",
    "StrategyError",
    "NoLinkedPatientError",
    "MissingDataEndpointError",
    "NoBleEndpointError",
    "EmptyBleResponseError",
    "AllEndpointsFailedError",
    "RequestCeilingExceededError",
    # Classification functions
    "classify_exception",
    "classify_http_status_error",
    "extract_error_message",
    "network_error_code",
    "is_network_error",
    "is_proxy_status",
    # Message templates
    "CREDENTIAL_ERROR_TEMPLATES",
    "get_credential_error_message",
    "get_remediation",
]
