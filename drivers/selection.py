"""
Purpose: Business rules and distance math for choosing nearby drivers.
What it does:
Accepts a pickup point and a pool of drivers, filters out ineligible drivers,
and ranks the remaining ones closest-first by great-circle distance.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from routing.geo import haversine_km
from .models import Driver, DriverStatus, DriverSummary
from .policy import DriverPolicy, default_driver_policy


def filter_eligible_drivers(
    drivers: List[Driver],
    policy: Optional[DriverPolicy] = None,
    now: Optional[datetime] = None,
) -> List[Driver]:
    """
    Returns only drivers who are online and, when the policy asks for it,
    have pinged recently enough.
    """
    policy = policy or default_driver_policy()
    now = now or datetime.now(timezone.utc)

    eligible = []

    for driver in drivers:
        if driver.status != DriverStatus.ONLINE:
            continue

        if policy.max_ping_age_seconds is not None and driver.last_ping_at is not None:
            age = (now - driver.last_ping_at).total_seconds()
            if age > policy.max_ping_age_seconds:
                continue

        eligible.append(driver)

    return eligible


def rank_nearby_drivers(
    pickup_location: Tuple[float, float],
    drivers: List[Driver],
    radius_km: float,
    limit: int,
) -> List[DriverSummary]:
    """
    Drivers within `radius_km` of the pickup, closest first, at most `limit`.
    Ties on distance fall back to driver ID so the order is stable.
    """
    if limit <= 0:
        return []

    ranked = []
    for driver in drivers:
        distance_km = haversine_km(pickup_location, driver.location)
        if distance_km > radius_km:
            continue
        ranked.append(
            DriverSummary(
                id=driver.id,
                location=driver.location,
                distance_km=distance_km,
                reachable=driver.reachable,
            )
        )

    ranked.sort(key=lambda s: (s.distance_km, s.id))
    return ranked[:limit]
