"""Strategy for care partner accounts following a linked patient."""

from __future__ import annotations

import logging

import httpx

from carelinkbridge.core.api import CareLinkApi
from carelinkbridge.errors.types import AllEndpointsFailedError
from carelinkbridge.errors.types import MissingDataEndpointError
from carelinkbridge.errors.types import NoLinkedPatientError
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.models import device_family
from carelinkbridge.models import is_ble_device
from carelinkbridge.strategies.base import FetchStrategy
from carelinkbridge.strategies.ble import BleStrategy

logger = logging.getLogger(__name__)

# (old, new) path segment swaps tried after the advertised endpoint, in order
VERSION_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("/v6/", "/v5/"),
    ("/v6/", "/v11/"),
    ("/v5/", "/v6/"),
    ("/v5/", "/v11/"),
)


def version_candidates(endpoint: str) -> list[str]:
    """Expand the advertised data endpoint into API version alternates.

    The advertised endpoint comes first. Substitutions that don't apply
    would repeat an earlier URL and are dropped.
    """
    candidates = [endpoint]
    for old, new in VERSION_SUBSTITUTIONS:
        candidate = endpoint.replace(old, new)
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


class CarePartnerStrategy(FetchStrategy):
    """Fetch a linked patient's data as a care partner."""

    name = "carepartner"
    ROLE = "carepartner"

    def __init__(self, patient_id: str | None = None) -> None:
        self.patient_id = patient_id

    async def fetch(self, api: CareLinkApi) -> TelemetrySnapshot:
        patient_id = await self._resolve_patient_id(api)

        if await self._patient_has_ble_device(api):
            logger.info("BLE device detected for carepartner, using BLE endpoint")
            return await BleStrategy(patient_id=patient_id, role=self.ROLE).fetch(api)

        logger.debug("Fetching country settings from %s", api.urls.country_settings)
        settings = await api.get_country_settings()
        endpoint = settings.ble_pereodic_data_endpoint
        if not endpoint:
            raise MissingDataEndpointError()

        logger.debug("Data retrieval URL: %s", endpoint)
        return await self._post_to_first_working(api, endpoint, patient_id)

    async def _resolve_patient_id(self, api: CareLinkApi) -> str:
        if self.patient_id:
            return self.patient_id

        patients = await api.get_linked_patients()
        if not patients:
            raise NoLinkedPatientError()

        patient_id = patients[0].username
        logger.info("Using linked patient: %s", patient_id)
        return patient_id

    async def _patient_has_ble_device(self, api: CareLinkApi) -> bool:
        """Probe monitor data; any failure here means 'not BLE'."""
        try:
            response = await api.get(api.urls.monitor_data)
            return is_ble_device(device_family(response.json()))
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Monitor probe failed, using standard carepartner flow: %s", e)
            return False

    async def _post_to_first_working(
        self,
        api: CareLinkApi,
        endpoint: str,
        patient_id: str,
    ) -> TelemetrySnapshot:
        body = {
            "username": api.username,
            "role": self.ROLE,
            "patientId": patient_id,
        }
        tried: list[str] = []

        for candidate in version_candidates(endpoint):
            tried.append(candidate)
            logger.debug("Trying carepartner endpoint: %s", candidate)
            try:
                response = await api.post_json(candidate, body)
                if response.status_code == 200:
                    logger.debug("GET data (as carepartner) %s", candidate)
                    return response.json()
                logger.info("Endpoint %s answered %d", candidate, response.status_code)
            except (httpx.HTTPError, ValueError) as e:
                logger.info("Endpoint failed: %s (%s)", candidate, e)

        raise AllEndpointsFailedError(tried)
