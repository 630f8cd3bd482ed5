"""Forward proxy list loading and rotation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import quote
from urllib.parse import unquote
from urllib.parse import urlsplit

import msgspec

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOLS: tuple[str, ...] = ("http",)


class ProxyCandidate(msgspec.Struct, frozen=True):
    """A single forward proxy endpoint."""

    host: str
    port: int
    username: str | None = None
    password: str | None = None
    protocols: tuple[str, ...] = DEFAULT_PROTOCOLS

    @property
    def scheme(self) -> str:
        """URL scheme used to talk to the proxy itself."""
        for preferred in ("http", "https"):
            if preferred in self.protocols:
                return preferred
        return self.protocols[0] if self.protocols else "http"

    @property
    def url(self) -> str:
        """Proxy URL for httpx, credentials included."""
        auth = ""
        if self.username:
            auth = f"{quote(self.username, safe='')}:{quote(self.password or '', safe='')}@"
        return f"{self.scheme}://{auth}{self.host}:{self.port}"

    def __str__(self) -> str:
        suffix = " (authenticated)" if self.username else ""
        return f"{self.host}:{self.port}{suffix}"


def _parse_port(value: str) -> int:
    port = int(value)
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return port


def parse_proxy_line(line: str) -> ProxyCandidate:
    """Parse one proxy list entry.

    Accepted forms:
        host:port
        host:port:username:password
        scheme://[username:password@]host:port

    Raises:
        ValueError: If the entry cannot be parsed
    """
    entry = line.strip()

    if "://" in entry:
        parts = urlsplit(entry)
        if not parts.hostname or parts.port is None:
            raise ValueError(f"missing host or port in {entry!r}")
        return ProxyCandidate(
            host=parts.hostname,
            port=_parse_port(str(parts.port)),
            username=unquote(parts.username) if parts.username else None,
            password=unquote(parts.password) if parts.password else None,
            protocols=(parts.scheme.lower(),),
        )

    fields = entry.split(":")
    if len(fields) == 2:
        host, port = fields
        return ProxyCandidate(host=host, port=_parse_port(port))
    if len(fields) == 4:
        host, port, username, password = fields
        return ProxyCandidate(
            host=host,
            port=_parse_port(port),
            username=username or None,
            password=password or None,
        )

    raise ValueError(f"unrecognised proxy entry {entry!r}")


def load_proxy_list(path: Path) -> list[ProxyCandidate]:
    """Load proxies from a text file, one per line, keeping file order.

    Missing files yield an empty list. Malformed lines are skipped.
    """
    if not path.exists():
        logger.info("No proxy list at %s, connecting directly", path)
        return []

    proxies: list[ProxyCandidate] = []
    for number, line in enumerate(path.read_text().splitlines(), start=1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        try:
            proxies.append(parse_proxy_line(line))
        except ValueError as e:
            logger.warning("Skipping proxy on line %d of %s: %s", number, path, e)

    logger.info("Loaded %d proxies from %s", len(proxies), path)
    return proxies


class ProxyRotator:
    """Hands out proxies in load order and tracks which were tried.

    The candidate in use when a fetch cycle starts counts as tried, so a
    cycle can bind each proxy at most once before ``try_next`` reports
    exhaustion.
    """

    def __init__(self, proxies: Sequence[ProxyCandidate] = ()) -> None:
        self._proxies = tuple(proxies)
        self._index = 0
        self._tried: set[int] = set()

    def __len__(self) -> int:
        return len(self._proxies)

    @property
    def has_proxies(self) -> bool:
        return bool(self._proxies)

    @property
    def tried_count(self) -> int:
        return len(self._tried)

    def get_next(self) -> ProxyCandidate | None:
        """Return the current candidate for the initial binding."""
        if not self._proxies:
            return None
        self._tried.add(self._index)
        return self._proxies[self._index]

    def try_next(self) -> ProxyCandidate | None:
        """Advance to the next untried candidate.

        Returns:
            The next proxy, or None once every candidate has been tried
            in the current cycle
        """
        count = len(self._proxies)
        for step in range(1, count + 1):
            index = (self._index + step) % count
            if index not in self._tried:
                self._index = index
                self._tried.add(index)
                return self._proxies[index]
        return None

    def reset_retries(self) -> None:
        """Start a new cycle with only the current proxy marked as tried."""
        self._tried = {self._index} if self._proxies else set()
