"""CareLink session management for carelinkbridge."""
from __future__ import annotations

from carelinkbridge.auth.session import CLOCK_SKEW
from carelinkbridge.auth.session import Session
from carelinkbridge.auth.session import SessionManager
from carelinkbridge.auth.session import SessionStoreProtocol
from carelinkbridge.auth.session import decode_jwt_payload

__all__ = [
    "CLOCK_SKEW",
    "Session",
    "SessionManager",
    "SessionStoreProtocol",
    "decode_jwt_payload",
]
