"""
Purpose: Driver Directory contract + an in-memory implementation.
What it does:

DriverDirectory is the read side the dispatch engine consumes:
- find_nearby(lat, lon, radius_km, limit) -> closest eligible drivers
- get_driver(driver_id) -> current projection, or None

InMemoryDriverDirectory keeps driver projections in a dict and lets
simulations/tests register drivers, move them and flip their status.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import Driver, DriverStatus, DriverSummary
from .policy import DriverPolicy, default_driver_policy
from .selection import filter_eligible_drivers, rank_nearby_drivers


class DriverDirectory(ABC):

    @abstractmethod
    def find_nearby(self, lat: float, lon: float, radius_km: float, limit: int) -> List[DriverSummary]:
        ...

    @abstractmethod
    def get_driver(self, driver_id: str) -> Optional[Driver]:
        ...


class InMemoryDriverDirectory(DriverDirectory):

    def __init__(self, drivers: Optional[Iterable[Driver]] = None, policy: Optional[DriverPolicy] = None):
        self.policy = policy or default_driver_policy()
        self._drivers: Dict[str, Driver] = {}
        self._lock = threading.Lock()
        for driver in drivers or []:
            self.register(driver)

    def register(self, driver: Driver) -> None:
        with self._lock:
            self._drivers[driver.id] = driver

    def update_location(self, driver_id: str, lat: float, lon: float, pinged_at: Optional[datetime] = None) -> Driver:
        with self._lock:
            driver = self._drivers[driver_id]
            updated = replace(
                driver,
                location=(lat, lon),
                last_ping_at=pinged_at or datetime.now(timezone.utc),
            )
            self._drivers[driver_id] = updated
            return updated

    def set_status(self, driver_id: str, status: DriverStatus) -> Driver:
        with self._lock:
            updated = replace(self._drivers[driver_id], status=status)
            self._drivers[driver_id] = updated
            return updated

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        with self._lock:
            return self._drivers.get(driver_id)

    def find_nearby(self, lat: float, lon: float, radius_km: float, limit: int) -> List[DriverSummary]:
        with self._lock:
            drivers = list(self._drivers.values())

        eligible = filter_eligible_drivers(drivers, policy=self.policy)
        return rank_nearby_drivers((lat, lon), eligible, radius_km, limit)
