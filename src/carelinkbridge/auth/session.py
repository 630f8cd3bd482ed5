"""CareLink session tokens and the refresh lifecycle."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from typing import NoReturn
from typing import Protocol

import httpx
import msgspec

from carelinkbridge.errors.types import NoCredentialsError
from carelinkbridge.errors.types import RefreshExpiredError

logger = logging.getLogger(__name__)

# Treat the token as expired this long before its exp claim
CLOCK_SKEW: timedelta = timedelta(seconds=60)


def is_token_rejection(status_code: int) -> bool:
    """Whether a token endpoint status means the refresh token was refused.

    Proxy authentication (407) and server errors are transient, not a verdict
    on the token.
    """
    return 400 <= status_code < 500 and status_code != 407


class Session(msgspec.Struct, frozen=True, omit_defaults=True):
    """OAuth tokens produced by the CareLink login flow."""

    access_token: str
    refresh_token: str
    client_id: str
    token_url: str
    scope: str | None = None
    audience: str | None = None

    def expires_at(self) -> datetime | None:
        """Expiry from the access token's exp claim, if it can be decoded."""
        payload = decode_jwt_payload(self.access_token)
        if payload is None:
            return None
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            return None
        return datetime.fromtimestamp(exp, tz=UTC)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the access token needs a refresh.

        A token without a readable exp claim is treated as expired.
        """
        expires_at = self.expires_at()
        if expires_at is None:
            return True
        now = now or datetime.now(UTC)
        return now >= expires_at - CLOCK_SKEW

    def to_headers(self) -> dict[str, str]:
        """Return Authorization header."""
        return {"Authorization": f"Bearer {self.access_token}"}


def decode_jwt_payload(token: str) -> dict | None:
    """Decode the payload segment of a JWT without verifying it."""
    parts = token.split(".")
    if len(parts) != 3:
        return None

    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment))
    except (binascii.Error, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


class SessionStoreProtocol(Protocol):
    """Where sessions are persisted between runs."""

    def load(self) -> Session | None: ...

    def save(self, session: Session) -> None: ...

    def delete(self) -> None: ...


class SessionManager:
    """Hands out a non-expired session, refreshing it when needed."""

    def __init__(self, store: SessionStoreProtocol) -> None:
        self.store = store

    async def ensure_valid(self, client: httpx.AsyncClient) -> Session:
        """Load the persisted session and refresh it if expired.

        Raises:
            NoCredentialsError: No session has been persisted
            RefreshExpiredError: The refresh failed; the session was deleted
        """
        session = self.store.load()
        if session is None:
            raise NoCredentialsError()

        if not session.is_expired():
            logger.debug("Using token-based auth, token valid until %s", session.expires_at())
            return session

        logger.info("Access token expired, refreshing")
        try:
            session = await self.refresh(client, session)
        except httpx.TransportError:
            # Says nothing about the refresh token; the orchestrator swaps proxies
            raise
        except httpx.HTTPStatusError as e:
            if not is_token_rejection(e.response.status_code):
                raise
            self._invalidate(e)
        except ValueError as e:
            self._invalidate(e)

        self.store.save(session)
        logger.info("Token refreshed, valid until %s", session.expires_at())
        return session

    def _invalidate(self, error: Exception) -> NoReturn:
        logger.error("Token refresh rejected: %s", error)
        self.store.delete()
        raise RefreshExpiredError() from error

    async def refresh(self, client: httpx.AsyncClient, session: Session) -> Session:
        """Exchange the refresh token for a new access token."""
        response = await client.post(
            session.token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": session.client_id,
                "refresh_token": session.refresh_token,
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        if response.status_code != 200:
            raise ValueError(f"Token endpoint returned {response.status_code}")

        data = response.json()
        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise ValueError("Token response is missing access_token")

        # Refresh token rotation is optional for the token endpoint
        return msgspec.structs.replace(
            session,
            access_token=access_token,
            refresh_token=data.get("refresh_token") or session.refresh_token,
        )
