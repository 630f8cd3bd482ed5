"""Data models for carelinkbridge.

CareLink telemetry is passed through as the raw JSON object so nothing the
downstream transform needs is lost. The structs here cover the handful of
small responses the fetch logic makes decisions on, plus a summary used for
display.
"""

from __future__ import annotations

from datetime import UTC
from datetime import datetime
from typing import Any

import msgspec

TelemetrySnapshot = dict[str, Any]

# Device families served by the BLE periodic-data endpoint
BLE_FAMILY_MARKERS: tuple[str, ...] = ("BLE", "SIMPLERA")


class UserInfo(msgspec.Struct, rename="camel"):
    """Profile returned by the ``users/me`` endpoint."""

    role: str | None = None
    id: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    country: str | None = None
    language: str | None = None


class PatientLink(msgspec.Struct):
    """One entry of a care partner's linked patient list."""

    username: str


class CountrySettings(msgspec.Struct, rename="camel"):
    """The part of the country settings response the fetch logic needs."""

    # Misspelling is CareLink's
    ble_pereodic_data_endpoint: str | None = None


def is_ble_device(device_family: str | None) -> bool:
    """Check if a device family needs the BLE periodic-data endpoint."""
    if not device_family:
        return False
    return any(marker in device_family for marker in BLE_FAMILY_MARKERS)


def device_family(snapshot: Any) -> str | None:
    """Extract ``medicalDeviceFamily`` from a response body, if present."""
    if not isinstance(snapshot, dict):
        return None
    family = snapshot.get("medicalDeviceFamily")
    return family if isinstance(family, str) else None


def has_content(snapshot: Any) -> bool:
    """A monitor response with a single field (or none) carries no data."""
    return isinstance(snapshot, dict) and len(snapshot) > 1


class SnapshotSummary(msgspec.Struct, frozen=True):
    """Headline values from a telemetry snapshot."""

    last_sg: int | None = None
    last_sg_time: str | None = None
    trend: str | None = None
    device_family: str | None = None
    pump_battery_percent: int | None = None
    conduit_battery_percent: int | None = None
    sensor_state: str | None = None
    sensor_duration_hours: int | None = None
    active_insulin: float | None = None
    last_alarm: str | None = None
    last_update: datetime | None = None
    sg_count: int = 0


def _number(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def summarize(snapshot: TelemetrySnapshot) -> SnapshotSummary:
    """Pull the headline values out of a raw snapshot."""
    last_sg = snapshot.get("lastSG") or {}
    active_insulin = snapshot.get("activeInsulin") or {}
    last_alarm = snapshot.get("lastAlarm") or {}
    sgs = snapshot.get("sgs")

    last_update = None
    if (server_time := _number(snapshot.get("lastMedicalDeviceDataUpdateServerTime"))):
        last_update = datetime.fromtimestamp(server_time / 1000, tz=UTC)

    amount = active_insulin.get("amount")

    return SnapshotSummary(
        last_sg=_number(last_sg.get("sg")),
        last_sg_time=last_sg.get("datetime"),
        trend=snapshot.get("lastSGTrend"),
        device_family=device_family(snapshot),
        pump_battery_percent=_number(snapshot.get("medicalDeviceBatteryLevelPercent")),
        conduit_battery_percent=_number(snapshot.get("conduitBatteryLevel")),
        sensor_state=snapshot.get("sensorState"),
        sensor_duration_hours=_number(snapshot.get("sensorDurationHours")),
        active_insulin=float(amount) if isinstance(amount, (int, float)) else None,
        last_alarm=last_alarm.get("type"),
        last_update=last_update,
        sg_count=len(sgs) if isinstance(sgs, list) else 0,
    )
