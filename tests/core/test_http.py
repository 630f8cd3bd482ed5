"""Tests for HTTP client setup."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from carelinkbridge.core.http import BROWSER_HEADERS
from carelinkbridge.core.http import create_http_client
from carelinkbridge.core.http import default_transport
from carelinkbridge.core.http import get_timeout_config
from carelinkbridge.core.proxy import ProxyCandidate


def _client_for(handler, **kwargs) -> httpx.AsyncClient:
    return create_http_client(
        transport_factory=lambda proxy: httpx.MockTransport(handler),
        **kwargs,
    )


class TestGetTimeoutConfig:
    def test_applies_to_every_phase(self):
        timeout = get_timeout_config(15.0)
        assert timeout.connect == 15.0
        assert timeout.read == 15.0


class TestDefaultTransport:
    def test_direct_transport(self):
        assert isinstance(default_transport(None), httpx.AsyncHTTPTransport)

    def test_proxied_transport(self):
        proxy = ProxyCandidate(host="10.0.0.1", port=8080)
        assert isinstance(default_transport(proxy), httpx.AsyncHTTPTransport)


class TestCreateHttpClient:
    """Tests for create_http_client."""

    @pytest.mark.asyncio
    async def test_sends_browser_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200)

        async with _client_for(handler) as client:
            await client.get("https://carelink.minimed.eu/patient/users/me")

        assert seen["user-agent"] == BROWSER_HEADERS["User-Agent"]
        assert seen["accept-language"] == BROWSER_HEADERS["Accept-Language"]

    @pytest.mark.asyncio
    async def test_redirects_are_not_followed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": "https://elsewhere.example.com/"})

        async with _client_for(handler) as client:
            response = await client.get("https://carelink.minimed.eu/")

        assert response.status_code == 302

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 503])
    async def test_error_statuses_raise(self, status):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"message": "nope"})

        async with _client_for(handler) as client:
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await client.get("https://carelink.minimed.eu/")

        assert exc_info.value.response.status_code == status

    @pytest.mark.asyncio
    async def test_request_hook_sees_every_request(self):
        hook = AsyncMock()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200)

        async with _client_for(handler, on_request=hook) as client:
            await client.get("https://carelink.minimed.eu/a")
            await client.post("https://carelink.minimed.eu/b")

        assert hook.await_count == 2

    @pytest.mark.asyncio
    async def test_failing_request_hook_stops_the_request(self):
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(200)

        async def refuse(request: httpx.Request) -> None:
            raise RuntimeError("refused")

        async with _client_for(handler, on_request=refuse) as client:
            with pytest.raises(RuntimeError):
                await client.get("https://carelink.minimed.eu/")

        assert sent == []

    def test_transport_factory_receives_proxy(self):
        received = []

        def factory(proxy):
            received.append(proxy)
            return httpx.MockTransport(lambda request: httpx.Response(200))

        proxy = ProxyCandidate(host="10.0.0.1", port=8080)
        create_http_client(proxy, transport_factory=factory)

        assert received == [proxy]
