"""Polling loop for long-running hosts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Protocol

from carelinkbridge.errors.classify import classify_exception
from carelinkbridge.errors.types import ErrorCategory
from carelinkbridge.models import TelemetrySnapshot

logger = logging.getLogger(__name__)

FRESHNESS_FIELD = "lastMedicalDeviceDataUpdateServerTime"

SnapshotHandler = Callable[[TelemetrySnapshot], Awaitable[None] | None]


class SnapshotSource(Protocol):
    async def fetch(self) -> TelemetrySnapshot: ...


async def run_polling_loop(
    client: SnapshotSource,
    interval: float,
    on_snapshot: SnapshotHandler,
    *,
    max_cycles: int | None = None,
    stop_on_credential_error: bool = False,
) -> int:
    """Fetch a snapshot every ``interval`` seconds until stopped.

    Failures are logged and the loop carries on with the next cycle.
    Credential failures need a fresh login, so they are logged at critical
    level; with ``stop_on_credential_error`` they are re-raised instead.

    Args:
        client: Anything with an async ``fetch()``, normally a CareLinkClient
        interval: Seconds to sleep between cycles
        on_snapshot: Called with every successful snapshot; may be async
        max_cycles: Stop after this many cycles (forever when None)
        stop_on_credential_error: Re-raise credential failures

    Returns:
        Number of cycles that produced a snapshot
    """
    cycles = 0
    successes = 0

    while max_cycles is None or cycles < max_cycles:
        cycles += 1
        try:
            snapshot = await client.fetch()
        except Exception as e:
            classified = classify_exception(e)
            if classified.category == ErrorCategory.CREDENTIALS:
                logger.critical(
                    "Fetch failed: %s. %s", classified.message, classified.remediation
                )
                if stop_on_credential_error:
                    raise
            else:
                logger.error("Fetch failed: %s", classified.message)
        else:
            successes += 1
            if FRESHNESS_FIELD not in snapshot:
                logger.warning("Snapshot has no %s, data may be stale", FRESHNESS_FIELD)
            result = on_snapshot(snapshot)
            if asyncio.iscoroutine(result):
                await result

        if max_cycles is not None and cycles >= max_cycles:
            break
        logger.info("Next check in %d seconds", interval)
        await asyncio.sleep(interval)

    return successes
