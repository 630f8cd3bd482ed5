"""BLE periodic-data strategy for Bluetooth-relayed devices."""

from __future__ import annotations

import logging

from carelinkbridge.core.api import CareLinkApi
from carelinkbridge.errors.types import EmptyBleResponseError
from carelinkbridge.errors.types import NoBleEndpointError
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.strategies.base import FetchStrategy

logger = logging.getLogger(__name__)


class BleStrategy(FetchStrategy):
    """Fetch data for BLE devices (780G, Simplera) from the periodic endpoint."""

    name = "ble"

    def __init__(self, patient_id: str | None = None, role: str = "patient") -> None:
        self.patient_id = patient_id
        self.role = role

    async def fetch(self, api: CareLinkApi) -> TelemetrySnapshot:
        logger.debug("Fetching BLE device data")

        settings = await api.get_country_settings()
        endpoint = settings.ble_pereodic_data_endpoint
        if not endpoint:
            raise NoBleEndpointError()

        patient_id = self.patient_id
        if not patient_id:
            profile = await api.get_profile()
            patient_id = profile.id

        body = {"username": api.username, "role": self.role}
        if patient_id:
            body["patientId"] = patient_id

        response = await api.post_json(endpoint, body)
        data = response.json() if response.status_code == 200 and response.content else None
        if not data:
            raise EmptyBleResponseError()

        logger.debug("GET data (BLE) %s", endpoint)
        return data
