"""Fakes shared by the carelinkbridge tests."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from datetime import datetime

import httpx

from carelinkbridge.auth.session import Session
from carelinkbridge.core.proxy import ProxyCandidate

SERVER = "carelink.minimed.eu"
BLE_ENDPOINT = "https://clcloud.minimed.eu/connect/carepartner/v6/display/message"


def make_jwt(exp: datetime | None) -> str:
    """Build an unsigned JWT carrying only an exp claim."""

    def segment(data: dict) -> str:
        raw = json.dumps(data).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    payload = {} if exp is None else {"exp": int(exp.timestamp())}
    return f"{segment({'alg': 'none'})}.{segment(payload)}.sig"


def reply(body: object = None, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    """Route that answers every request with a fresh JSON response."""

    def respond(request: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)

    return respond


class MemorySessionStore:
    """Session store kept in memory, recording what happened to it."""

    def __init__(self, session: Session | None = None) -> None:
        self.session = session
        self.saved: list[Session] = []
        self.deleted = False

    def load(self) -> Session | None:
        return self.session

    def save(self, session: Session) -> None:
        self.session = session
        self.saved.append(session)

    def delete(self) -> None:
        self.session = None
        self.deleted = True


class FakeCareLink:
    """Routes requests for httpx.MockTransport and records them.

    Routes map ``(method, path)`` to an exception to raise or a callable
    taking the request, such as the ones ``reply`` builds. Unknown routes
    answer 404.
    """

    def __init__(self, routes: dict[tuple[str, str], object] | None = None) -> None:
        self.routes: dict[tuple[str, str], object] = dict(routes or {})
        self.requests: list[httpx.Request] = []
        self.proxies: list[ProxyCandidate | None] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, BaseException):
            raise route
        return route(request)

    def transport_factory(self, proxy: ProxyCandidate | None) -> httpx.MockTransport:
        self.proxies.append(proxy)
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]
