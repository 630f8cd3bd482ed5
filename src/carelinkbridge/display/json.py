"""JSON output utilities for carelinkbridge."""

from __future__ import annotations

import json
import sys
from datetime import datetime

import msgspec

from carelinkbridge.errors.types import ClassifiedError

__all__ = [
    "ErrorResponse",
    "ErrorData",
    "create_error_response",
    "from_classified_error",
    "output_json",
    "output_json_pretty",
    "output_json_error",
    "encode_json",
]


class ErrorData(msgspec.Struct, frozen=True, omit_defaults=True):
    """Error data with category, severity, and remediation."""

    message: str
    category: str
    severity: str
    remediation: str | None = None
    status_code: int | None = None
    network_code: str | None = None
    details: dict | None = None
    timestamp: str = msgspec.field(
        default_factory=lambda: datetime.now().astimezone().isoformat()
    )


class ErrorResponse(msgspec.Struct, frozen=True):
    """Structured error response for JSON output."""

    error: ErrorData


def create_error_response(
    message: str,
    category: str,
    severity: str,
    remediation: str | None = None,
    details: dict | None = None,
) -> ErrorResponse:
    """Create an ErrorResponse from individual fields."""
    return ErrorResponse(
        error=ErrorData(
            message=message,
            category=category,
            severity=severity,
            remediation=remediation,
            details=details,
        )
    )


def from_classified_error(error: ClassifiedError) -> ErrorResponse:
    """Create an ErrorResponse from a classified fetch failure.

    Args:
        error: Result of classify_exception()

    Returns:
        ErrorResponse struct for JSON output
    """
    return ErrorResponse(
        error=ErrorData(
            message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            remediation=error.remediation,
            status_code=error.status_code,
            network_code=error.network_code.value if error.network_code else None,
            details=error.details,
            timestamp=error.timestamp.isoformat(),
        )
    )


def encode_json(data: object) -> bytes:
    return msgspec.json.encode(data)


def output_json(data: object) -> None:
    """Output data as compact JSON to stdout.

    Args:
        data: Any msgspec-serializable object (Struct, dict, list, etc.)
    """
    sys.stdout.buffer.write(msgspec.json.encode(data))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()


def output_json_pretty(data: object, indent: int = 2) -> None:
    """Output data as pretty-printed JSON to stdout."""
    # msgspec handles Structs and datetimes, json handles the indentation
    python_obj = msgspec.json.decode(msgspec.json.encode(data))
    sys.stdout.write(json.dumps(python_obj, indent=indent))
    sys.stdout.write("\n")


def output_json_error(error: ClassifiedError, indent: int = 2) -> None:
    """Output a classified error in the standard JSON error format."""
    output_json_pretty(from_classified_error(error), indent=indent)
