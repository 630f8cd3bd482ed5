"""CareLink endpoint resolution."""

from __future__ import annotations

from urllib.parse import urlencode

import msgspec

EU_SERVER = "carelink.minimed.eu"
US_SERVER = "carelink.minimed.com"

SERVER_ALIASES: dict[str, str] = {
    "EU": EU_SERVER,
    "US": US_SERVER,
}


class CareLinkUrls(msgspec.Struct, frozen=True):
    """Named CareLink endpoints for one server and locale."""

    server_name: str
    me: str
    linked_patients: str
    monitor_data: str
    country_settings: str

    def connect_data(self, timestamp_ms: int) -> str:
        """Legacy last-24-hours endpoint, qualified by request time."""
        query = urlencode(
            {
                "cpSerialNumber": "NONE",
                "msgType": "last24hours",
                "requestTime": timestamp_ms,
            }
        )
        return f"https://{self.server_name}/patient/connect/data?{query}"


def resolve_server_name(server: str | None = None, server_name: str | None = None) -> str:
    """Pick the CareLink host.

    An explicit server name wins. Otherwise ``server`` is a region alias
    (EU, US) or a host name; nothing at all means the EU server.
    """
    if server_name:
        return server_name
    if not server:
        return EU_SERVER
    return SERVER_ALIASES.get(server.strip().upper(), server.strip())


def build_urls(server_name: str, country_code: str, language: str) -> CareLinkUrls:
    """Build every endpoint URL for a server and locale."""
    base = f"https://{server_name}"
    settings_query = urlencode({"countryCode": country_code, "language": language})
    return CareLinkUrls(
        server_name=server_name,
        me=f"{base}/patient/users/me",
        linked_patients=f"{base}/patient/m2m/links/patients",
        monitor_data=f"{base}/patient/monitor/data",
        country_settings=f"{base}/patient/countries/settings?{settings_query}",
    )


def resolve_urls(
    server: str | None,
    server_name: str | None,
    country_code: str,
    language: str,
) -> CareLinkUrls:
    """Resolve the host and build the endpoint set in one step."""
    return build_urls(resolve_server_name(server, server_name), country_code, language)
