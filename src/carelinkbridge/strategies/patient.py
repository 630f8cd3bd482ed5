"""Strategy for accounts that own the device."""

from __future__ import annotations

import logging
import time

import httpx

from carelinkbridge.core.api import CareLinkApi
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.models import device_family
from carelinkbridge.models import has_content
from carelinkbridge.models import is_ble_device
from carelinkbridge.strategies.base import FetchStrategy
from carelinkbridge.strategies.ble import BleStrategy

logger = logging.getLogger(__name__)


class PatientStrategy(FetchStrategy):
    """Fetch a patient's own data.

    Order:
    1. Monitor endpoint (7xxG pumps); BLE families hand over to BleStrategy
    2. Legacy connect endpoint when the monitor call fails or comes back empty
    """

    name = "patient"

    async def fetch(self, api: CareLinkApi) -> TelemetrySnapshot:
        monitor = await self._fetch_monitor_data(api)

        if is_ble_device(device_family(monitor)):
            logger.info("BLE device detected, using BLE endpoint")
            return await BleStrategy(role="patient").fetch(api)

        if has_content(monitor):
            logger.debug("GET data %s", api.urls.monitor_data)
            return monitor

        url = api.urls.connect_data(int(time.time() * 1000))
        response = await api.get(url)
        logger.debug("GET data %s", url)
        return response.json()

    async def _fetch_monitor_data(self, api: CareLinkApi) -> TelemetrySnapshot | None:
        """Returns None when the monitor endpoint fails; the legacy endpoint takes over."""
        try:
            response = await api.get(api.urls.monitor_data)
            if response.status_code != 200:
                return None
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Monitor endpoint failed, falling back to legacy endpoint: %s", e)
            return None
