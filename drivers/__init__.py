"""
Drivers domain package.

Public API:
- Domain models: Driver, DriverStatus, DriverSummary
- Search config: DriverPolicy, default_driver_policy
- Directory contract: DriverDirectory, InMemoryDriverDirectory
"""
from .models import Driver, DriverStatus, DriverSummary
from .policy import DriverPolicy, default_driver_policy
from .selection import filter_eligible_drivers, rank_nearby_drivers
from .directory import DriverDirectory, InMemoryDriverDirectory

__all__ = [
    "Driver",
    "DriverStatus",
    "DriverSummary",
    "DriverPolicy",
    "default_driver_policy",
    "filter_eligible_drivers",
    "rank_nearby_drivers",
    "DriverDirectory",
    "InMemoryDriverDirectory",
]
