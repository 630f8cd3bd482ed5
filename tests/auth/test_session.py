"""Tests for CareLink sessions and token refresh."""

from __future__ import annotations

from datetime import UTC
from datetime import datetime
from datetime import timedelta

import httpx
import pytest
from helpers import MemorySessionStore
from helpers import make_jwt

from carelinkbridge.auth.session import CLOCK_SKEW
from carelinkbridge.auth.session import Session
from carelinkbridge.auth.session import SessionManager
from carelinkbridge.auth.session import decode_jwt_payload
from carelinkbridge.auth.session import is_token_rejection
from carelinkbridge.errors.types import NoCredentialsError
from carelinkbridge.errors.types import RefreshExpiredError


def _session(access_token: str) -> Session:
    return Session(
        access_token=access_token,
        refresh_token="refresh-1",
        client_id="client-1",
        token_url="https://mdtlogin.example.com/oauth/token",
    )


def _token_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestDecodeJwtPayload:
    def test_decodes_payload(self, utc_now):
        token = make_jwt(utc_now)
        assert decode_jwt_payload(token) == {"exp": int(utc_now.timestamp())}

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.!!!.c", "a.bm90IGpzb24.c"])
    def test_garbage_yields_none(self, token):
        assert decode_jwt_payload(token) is None


class TestSession:
    """Tests for Session expiry."""

    def test_expires_at_from_exp_claim(self, utc_now):
        assert _session(make_jwt(utc_now)).expires_at() == utc_now

    def test_not_expired_well_before_exp(self, utc_now):
        session = _session(make_jwt(utc_now + timedelta(hours=1)))
        assert not session.is_expired(now=utc_now)

    def test_expired_within_clock_skew(self, utc_now):
        session = _session(make_jwt(utc_now + CLOCK_SKEW - timedelta(seconds=1)))
        assert session.is_expired(now=utc_now)

    def test_unreadable_token_counts_as_expired(self):
        assert _session("opaque-token").is_expired()
        assert _session(make_jwt(None)).is_expired()

    def test_to_headers(self):
        assert _session("tok").to_headers() == {"Authorization": "Bearer tok"}


class TestSessionManager:
    """Tests for SessionManager.ensure_valid."""

    @pytest.mark.asyncio
    async def test_no_session(self):
        manager = SessionManager(MemorySessionStore())

        async with _token_client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(NoCredentialsError):
                await manager.ensure_valid(client)

    @pytest.mark.asyncio
    async def test_valid_session_used_as_is(self, valid_session):
        store = MemorySessionStore(valid_session)
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(500)

        async with _token_client(handler) as client:
            session = await SessionManager(store).ensure_valid(client)

        assert session is valid_session
        assert requests == []
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_refresh_posts_refresh_token(self, expired_session):
        new_token = make_jwt(datetime.now(UTC) + timedelta(hours=1))
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request.content.decode()
            return httpx.Response(200, json={"access_token": new_token})

        store = MemorySessionStore(expired_session)
        async with _token_client(handler) as client:
            session = await SessionManager(store).ensure_valid(client)

        assert seen["url"] == expired_session.token_url
        assert "grant_type=refresh_token" in seen["body"]
        assert "refresh_token=refresh-1" in seen["body"]
        assert "client_id=client-1" in seen["body"]
        assert session.access_token == new_token
        # Token endpoint did not rotate the refresh token
        assert session.refresh_token == "refresh-1"
        assert store.saved == [session]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(400, json={"error": "invalid_grant"}),
            httpx.Response(401, json={"error": "invalid_token"}),
            httpx.Response(200, json={"token_type": "Bearer"}),
            httpx.Response(200, text="<html>"),
        ],
    )
    async def test_failed_refresh_deletes_session(self, expired_session, response):
        store = MemorySessionStore(expired_session)

        async with _token_client(lambda request: response) as client:
            with pytest.raises(RefreshExpiredError):
                await SessionManager(store).ensure_valid(client)

        assert store.deleted
        assert store.session is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("Connection refused"),
            httpx.ReadTimeout("timed out"),
        ],
    )
    async def test_network_failure_during_refresh_keeps_session(self, expired_session, error):
        store = MemorySessionStore(expired_session)

        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        async with _token_client(handler) as client:
            with pytest.raises(type(error)):
                await SessionManager(store).ensure_valid(client)

        assert not store.deleted
        assert store.session is expired_session

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [407, 500, 502, 503])
    async def test_proxy_or_server_status_keeps_session(self, expired_session, status_code):
        store = MemorySessionStore(expired_session)

        async with _token_client(lambda request: httpx.Response(status_code)) as client:
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await SessionManager(store).ensure_valid(client)

        assert exc_info.value.response.status_code == status_code
        assert not store.deleted


class TestIsTokenRejection:
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(400, True), (401, True), (403, True), (407, False), (500, False), (503, False)],
    )
    def test_statuses(self, status_code, expected):
        assert is_token_rejection(status_code) is expected
