"""Retry bounds and exponential backoff for the fetch cycle."""

from __future__ import annotations

from dataclasses import dataclass

from carelinkbridge.config.settings import FetchConfig


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 10  # only when proxies are configured
    proxy_swap_delay: float = 1.0  # seconds
    exponential_base: float = 2.0
    max_delay: float = 512.0  # seconds

    @classmethod
    def from_fetch_config(cls, fetch: FetchConfig) -> RetryConfig:
        return cls(
            max_attempts=fetch.max_attempts,
            proxy_swap_delay=fetch.proxy_swap_delay,
            max_delay=float(fetch.max_retry_duration),
        )

    def attempts_allowed(self, has_proxies: bool) -> int:
        """Direct connections get a single attempt; proxies get the full budget."""
        return self.max_attempts if has_proxies else 1


def calculate_retry_delay(
    attempt: int,
    config: RetryConfig,
) -> float:
    """Calculate delay before the next attempt using exponential backoff.

    Args:
        attempt: Which attempt just failed (1-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay = config.exponential_base**attempt
    return min(delay, config.max_delay)
