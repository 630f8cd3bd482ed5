"""Authenticated calls against one CareLink server."""

from __future__ import annotations

from typing import Any

import httpx
import msgspec

from carelinkbridge.auth.session import Session
from carelinkbridge.core.http import JSON_HEADERS
from carelinkbridge.core.urls import CareLinkUrls
from carelinkbridge.models import CountrySettings
from carelinkbridge.models import PatientLink
from carelinkbridge.models import UserInfo


class CareLinkApi:
    """Thin wrapper adding the bearer token to every CareLink request.

    The client is shared with the orchestrator, so every request made here
    passes through its request counter and proxy binding.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        urls: CareLinkUrls,
        session: Session,
        username: str,
    ) -> None:
        self.client = client
        self.urls = urls
        self.session = session
        self.username = username

    async def get(self, url: str) -> httpx.Response:
        return await self.client.get(url, headers=self.session.to_headers())

    async def post_json(self, url: str, body: dict[str, Any]) -> httpx.Response:
        return await self.client.post(
            url,
            content=msgspec.json.encode(body),
            headers={**self.session.to_headers(), **JSON_HEADERS},
        )

    async def get_profile(self) -> UserInfo:
        response = await self.get(self.urls.me)
        return msgspec.json.decode(response.content, type=UserInfo)

    async def get_linked_patients(self) -> list[PatientLink]:
        response = await self.get(self.urls.linked_patients)
        return msgspec.json.decode(response.content, type=list[PatientLink])

    async def get_country_settings(self) -> CountrySettings:
        response = await self.get(self.urls.country_settings)
        return msgspec.json.decode(response.content, type=CountrySettings)
