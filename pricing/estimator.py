"""
Purpose: Trip estimate + fare breakdown for a delivery job.
What it does:

Pure, deterministic functions (no I/O, no clock):
- estimate_trip: haversine distance + truncated urban duration
- calculate_pricing: itemized fare in a fixed order

    base -> distance -> time -> package surcharge -> priority surcharge
    subtotal = sum of the five
    service_fee = subtotal * rate, tax = subtotal * rate
    total = subtotal + service_fee + tax

The dispatch engine calls calculate_pricing both for stand-alone estimates and
while creating a job, so the two paths always agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from jobs.models import JobEstimateRequest, Location, Pricing
from pricing.policy import PricingPolicy, default_pricing_policy
from routing.geo import haversine_km, estimate_duration_min


@dataclass(frozen=True)
class TripEstimate:
    distance_km: float
    duration_min: int


def estimate_trip(pickup: Location, dropoff: Location, policy: Optional[PricingPolicy] = None) -> TripEstimate:
    policy = policy or default_pricing_policy()

    distance_km = haversine_km(pickup.coordinates, dropoff.coordinates)
    duration_min = estimate_duration_min(distance_km, policy.average_speed_kmh)

    return TripEstimate(distance_km=distance_km, duration_min=duration_min)


def calculate_pricing(
    request: JobEstimateRequest,
    policy: Optional[PricingPolicy] = None,
    trip: Optional[TripEstimate] = None,
) -> Pricing:
    """
    Itemized fare for `request` under `policy`.

    `trip` lets a caller that already estimated the trip reuse it; when omitted
    it is computed from the request's locations.
    """
    policy = policy or default_pricing_policy()
    trip = trip or estimate_trip(request.pickup, request.dropoff, policy)

    base_fare = policy.base_fares[request.priority]
    distance_fare = trip.distance_km * policy.per_km_rate
    time_fare = trip.duration_min * policy.per_minute_rate
    package_surcharge = policy.package_surcharges[request.package.package_type]
    priority_surcharge = policy.priority_surcharges[request.priority]

    subtotal = base_fare + distance_fare + time_fare + package_surcharge + priority_surcharge
    service_fee = subtotal * policy.service_fee_rate
    tax = subtotal * policy.tax_rate
    total = subtotal + service_fee + tax

    return Pricing(
        base_fare=base_fare,
        distance_fare=distance_fare,
        time_fare=time_fare,
        package_surcharge=package_surcharge,
        priority_surcharge=priority_surcharge,
        service_fee=service_fee,
        tax=tax,
        total=total,
        currency=policy.currency,
        estimated_cost=True,
    )
