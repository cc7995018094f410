"""Normalized vehicle telemetry snapshot.

Built from the ``response`` member of ``/vehicles/{id}/vehicle_data``.
Only the fields the outcome log records are extracted; the full payload is
kept in ``raw``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from teslapoll._constants import miles_to_km
from teslapoll.models._base import Instant
from teslapoll.models.normalize import normalize_timestamp_seconds, safe_float, safe_int, safe_str


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


class VehicleSnapshot(BaseModel):
    """One normalized read of the vehicle."""

    model_config = ConfigDict(frozen=True)

    soc_percent: int | None = None
    """Battery state of charge in percent."""
    charging_state: str = ""
    """Provider charging state (e.g. ``"Charging"``, ``"Disconnected"``)."""
    range_km: float | None = None
    """Estimated battery range in km."""
    odometer_km: float | None = None
    """Odometer in km."""
    online_state: str = ""
    """Provider vehicle state (``"online"``, ``"asleep"``, ...)."""
    timestamp: Instant = Field(default_factory=lambda: datetime.now(UTC))
    """Time the data was sampled by the vehicle, else the time of the read."""
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def is_charging(self) -> bool:
        return self.charging_state.lower() == "charging"

    @property
    def online(self) -> bool:
        return self.online_state.lower() == "online"

    @classmethod
    def from_vehicle_data(cls, data: dict[str, Any], *, read_at: datetime | None = None) -> VehicleSnapshot:
        """Normalize a ``vehicle_data`` response payload."""
        charge = _section(data, "charge_state")
        vehicle_state = _section(data, "vehicle_state")

        sampled = normalize_timestamp_seconds(charge.get("timestamp"))
        timestamp = read_at or datetime.now(UTC)
        if sampled is not None:
            try:
                timestamp = datetime.fromtimestamp(sampled, tz=UTC)
            except (OverflowError, OSError, ValueError):
                pass

        return cls(
            soc_percent=safe_int(charge.get("battery_level")),
            charging_state=safe_str(charge.get("charging_state")) or "",
            range_km=miles_to_km(safe_float(charge.get("battery_range"))),
            odometer_km=miles_to_km(safe_float(vehicle_state.get("odometer"))),
            online_state=safe_str(data.get("state")) or "",
            timestamp=timestamp,
            raw=data,
        )
