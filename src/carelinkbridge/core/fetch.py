"""Fetch orchestration: sessions, strategies, proxy rotation and backoff."""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field

import httpx

from carelinkbridge.auth.session import SessionManager
from carelinkbridge.auth.session import SessionStoreProtocol
from carelinkbridge.config.credentials import SessionStore
from carelinkbridge.config.settings import Config
from carelinkbridge.core.api import CareLinkApi
from carelinkbridge.core.http import TransportFactory
from carelinkbridge.core.http import create_http_client
from carelinkbridge.core.http import default_transport
from carelinkbridge.core.proxy import ProxyCandidate
from carelinkbridge.core.proxy import ProxyRotator
from carelinkbridge.core.proxy import load_proxy_list
from carelinkbridge.core.retry import RetryConfig
from carelinkbridge.core.retry import calculate_retry_delay
from carelinkbridge.core.urls import resolve_urls
from carelinkbridge.errors.classify import classify_exception
from carelinkbridge.errors.types import RequestCeilingExceededError
from carelinkbridge.errors.types import RetryAction
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.strategies import fetch_connect_data

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchAttempt:
    """Record of a single attempt within a fetch cycle."""

    number: int
    proxy: str | None
    success: bool
    error: str | None = None
    action: RetryAction | None = None
    requests: int = 0
    duration_ms: float = 0


@dataclass
class FetchCycle:
    """Per-cycle counters, replaced at the start of every fetch."""

    request_ceiling: int
    request_count: int = 0
    proxy_swaps: int = 0
    attempts: list[FetchAttempt] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    def count_request(self) -> None:
        """Count an outbound request, refusing to send past the ceiling."""
        self.request_count += 1
        if self.request_count > self.request_ceiling:
            raise RequestCeilingExceededError(self.request_ceiling)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


class CareLinkClient:
    """Fetches the latest CareLink telemetry with proxy rotation and retries.

    One fetch cycle runs at a time; the proxy binding and request counter
    are cycle-scoped state owned by this object.
    """

    def __init__(
        self,
        config: Config,
        *,
        session_store: SessionStoreProtocol | None = None,
        proxies: Sequence[ProxyCandidate] | None = None,
        transport_factory: TransportFactory = default_transport,
    ) -> None:
        self.config = config
        carelink = config.carelink
        self.urls = resolve_urls(
            carelink.server,
            carelink.server_name,
            carelink.country_code,
            carelink.language,
        )
        self.sessions = SessionManager(
            session_store or SessionStore(config.session_path())
        )

        if proxies is None:
            proxies = load_proxy_list(config.proxy_path()) if config.proxy.enabled else []
        self.rotator = ProxyRotator(proxies)
        self.retry = RetryConfig.from_fetch_config(config.fetch)

        self._transport_factory = transport_factory
        self._http: httpx.AsyncClient | None = None
        self._bound_proxy: ProxyCandidate | None = self.rotator.get_next()
        self._cycle = FetchCycle(config.fetch.request_ceiling)
        self._lock = asyncio.Lock()

    @property
    def bound_proxy(self) -> ProxyCandidate | None:
        return self._bound_proxy

    @property
    def last_cycle(self) -> FetchCycle:
        """Counters of the most recent (or running) fetch cycle."""
        return self._cycle

    async def __aenter__(self) -> CareLinkClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _count_request(self, request: httpx.Request) -> None:
        self._cycle.count_request()

    async def _bind(self, proxy: ProxyCandidate | None) -> httpx.AsyncClient:
        """Replace the HTTP client with one routed through ``proxy``."""
        await self.aclose()
        self._http = create_http_client(
            proxy,
            timeout=self.config.fetch.timeout,
            on_request=self._count_request,
            transport_factory=self._transport_factory,
        )
        self._bound_proxy = proxy
        if proxy is not None:
            logger.info("Using proxy: %s", proxy)
        return self._http

    async def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            return await self._bind(self._bound_proxy)
        return self._http

    async def fetch(self) -> TelemetrySnapshot:
        """Run one fetch cycle.

        Returns:
            The raw telemetry snapshot

        Raises:
            NoCredentialsError, RefreshExpiredError: Immediately, never retried
            RequestCeilingExceededError: When one attempt sends too many requests
            Exception: The last attempt's error once retries or proxies run out
        """
        async with self._lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> TelemetrySnapshot:
        self._cycle = FetchCycle(self.config.fetch.request_ceiling)
        self.rotator.reset_retries()

        max_attempts = self.retry.attempts_allowed(self.rotator.has_proxies)
        logger.info("Starting fetch, max attempts: %d", max_attempts)

        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            self._cycle.request_count = 0
            start_time = time.monotonic()
            proxy_label = str(self._bound_proxy) if self._bound_proxy else None

            try:
                data = await self._attempt()
            except Exception as e:
                last_error = e
                classified = classify_exception(e)
                self._record(
                    attempt,
                    proxy_label,
                    start_time,
                    error=classified.message,
                    action=classified.action,
                )
                logger.warning("Attempt %d failed: %s", attempt, classified.message)

                if classified.action is RetryAction.RAISE:
                    raise

                if classified.action is RetryAction.SWAP_PROXY and self.rotator.has_proxies:
                    next_proxy = self.rotator.try_next()
                    if next_proxy is None:
                        logger.error("All %d proxies tried in this cycle", len(self.rotator))
                        raise
                    logger.info("Trying next proxy")
                    await self._bind(next_proxy)
                    self._cycle.proxy_swaps += 1
                    await asyncio.sleep(self.retry.proxy_swap_delay)
                    continue

                if attempt == max_attempts:
                    raise

                delay = calculate_retry_delay(attempt, self.retry)
                logger.info("Retrying in %.0fs", delay)
                await asyncio.sleep(delay)
                continue

            self._record(attempt, proxy_label, start_time)
            logger.info("Fetch succeeded on attempt %d", attempt)
            return data

        # Only reached when the final attempt ended with a proxy swap
        if last_error is not None:
            raise last_error
        raise RuntimeError("Unexpected state in fetch loop")

    async def _attempt(self) -> TelemetrySnapshot:
        client = await self._client()
        session = await self.sessions.ensure_valid(client)
        api = CareLinkApi(client, self.urls, session, self.config.carelink.username)
        return await fetch_connect_data(api, self.config.carelink.patient_id)

    def _record(
        self,
        attempt: int,
        proxy: str | None,
        start_time: float,
        *,
        error: str | None = None,
        action: RetryAction | None = None,
    ) -> None:
        self._cycle.attempts.append(
            FetchAttempt(
                number=attempt,
                proxy=proxy,
                success=error is None,
                error=error,
                action=action,
                requests=self._cycle.request_count,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        )
