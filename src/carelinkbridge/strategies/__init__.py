"""Role-aware fetch strategies for carelinkbridge."""

from __future__ import annotations

import logging

from carelinkbridge.core.api import CareLinkApi
from carelinkbridge.models import TelemetrySnapshot
from carelinkbridge.strategies.base import FetchStrategy
from carelinkbridge.strategies.base import Role
from carelinkbridge.strategies.ble import BleStrategy
from carelinkbridge.strategies.carepartner import CarePartnerStrategy
from carelinkbridge.strategies.carepartner import version_candidates
from carelinkbridge.strategies.patient import PatientStrategy

logger = logging.getLogger(__name__)


def select_strategy(role: Role, patient_id: str | None = None) -> FetchStrategy:
    """Pick the entry strategy for a role."""
    if role.is_care_partner:
        return CarePartnerStrategy(patient_id=patient_id)
    return PatientStrategy()


async def fetch_connect_data(
    api: CareLinkApi,
    patient_id: str | None = None,
) -> TelemetrySnapshot:
    """Discover the account role and run the matching strategy.

    The role is looked up on every call since account links can change.
    """
    profile = await api.get_profile()
    role = Role.from_profile(profile.role)
    logger.debug("Current role: %s", role)

    return await select_strategy(role, patient_id).fetch(api)


__all__ = [
    "Role",
    "FetchStrategy",
    "PatientStrategy",
    "CarePartnerStrategy",
    "BleStrategy",
    "select_strategy",
    "fetch_connect_data",
    "version_candidates",
]
