"""
Purpose: Core data models for the drivers domain.
What it does:
Defines the minimal driver projection the dispatch core reads: identity,
availability status, last known location and push reachability.
The full driver profile (documents, vehicle, earnings) lives elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

LatLon = Tuple[float, float]


class DriverStatus(str, Enum):
    """
    Standardizes the state a driver can be in.
    Only ONLINE drivers are offered new jobs.
    """
    OFFLINE = "offline"
    ONLINE = "online"
    ON_RIDE = "on_ride"
    ON_BREAK = "on_break"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class Driver:
    """
    A purely stateless representation of a Driver at a specific point in time.
    """
    id: str
    location: LatLon
    status: DriverStatus

    # Push target; None means the driver cannot be notified.
    device_token: Optional[str] = None
    last_ping_at: Optional[datetime] = None

    @property
    def reachable(self) -> bool:
        return bool(self.device_token)

    @classmethod
    def new(
        cls,
        driver_id: str,
        lat: float,
        lon: float,
        status: str | DriverStatus = DriverStatus.OFFLINE,
        device_token: Optional[str] = None,
        last_ping_at: Optional[datetime] = None
    ) -> Driver:
        if isinstance(status, str):
            status = DriverStatus(status)

        return cls(
            id=driver_id,
            location=(lat, lon),
            status=status,
            device_token=device_token,
            last_ping_at=last_ping_at or datetime.now(timezone.utc)
        )


@dataclass(frozen=True)
class DriverSummary:
    """
    What the directory hands back from a proximity search.
    """
    id: str
    location: LatLon
    distance_km: float
    reachable: bool
