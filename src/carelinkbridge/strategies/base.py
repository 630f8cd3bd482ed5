"""Fetch strategy base classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum

from carelinkbridge.core.api import CareLinkApi
from carelinkbridge.models import TelemetrySnapshot


class Role(StrEnum):
    """Account roles CareLink reports on the profile endpoint."""

    PATIENT = "PATIENT"
    CARE_PARTNER = "CARE_PARTNER"
    CARE_PARTNER_OUS = "CARE_PARTNER_OUS"

    @classmethod
    def from_profile(cls, role: str | None) -> Role:
        """Match the profile role case-insensitively; unknown roles are patients."""
        match (role or "").upper():
            case "CARE_PARTNER":
                return cls.CARE_PARTNER
            case "CARE_PARTNER_OUS":
                return cls.CARE_PARTNER_OUS
            case _:
                return cls.PATIENT

    @property
    def is_care_partner(self) -> bool:
        return self in (Role.CARE_PARTNER, Role.CARE_PARTNER_OUS)


class FetchStrategy(ABC):
    """One branch of the role-specific request graph.

    Strategies never retry on their own; retry and proxy decisions belong to
    the orchestrator.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier (e.g., 'patient', 'carepartner', 'ble')."""
        ...

    @abstractmethod
    async def fetch(self, api: CareLinkApi) -> TelemetrySnapshot:
        """
        Run the request graph for this branch.

        Returns the telemetry snapshot or raises a StrategyError.
        """
        ...
