"""
Purpose: Central configuration for fares and trip estimates.
What it does:

Stores all monetary constants and rates used by the estimator:

BASE_FARE = {standard: 15, express: 25, same_day: 40, emergency: 60}
PER_KM_RATE = 2.5
PER_MINUTE_RATE = 0.2
SERVICE_FEE_RATE = 0.10
TAX_RATE = 0.03

Optionally reads scalar overrides from the environment / .env:

PRICING_PER_KM_RATE=3.0
PRICING_CURRENCY=GHS

Rule: No logic here, just parameters so fares can be tuned without touching
the estimator or the dispatch state machine.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict

from dotenv import load_dotenv

from jobs.models import JobPriority, PackageType


def _default_base_fares() -> Dict[JobPriority, float]:
    return {
        JobPriority.STANDARD: 15.0,
        JobPriority.EXPRESS: 25.0,
        JobPriority.SAME_DAY: 40.0,
        JobPriority.EMERGENCY: 60.0,
    }


def _default_priority_surcharges() -> Dict[JobPriority, float]:
    return {
        JobPriority.STANDARD: 0.0,
        JobPriority.EXPRESS: 10.0,
        JobPriority.SAME_DAY: 25.0,
        JobPriority.EMERGENCY: 50.0,
    }


def _default_package_surcharges() -> Dict[PackageType, float]:
    return {
        PackageType.DOCUMENT: 0.0,
        PackageType.SMALL_PACKAGE: 5.0,
        PackageType.MEDIUM_PACKAGE: 10.0,
        PackageType.LARGE_PACKAGE: 20.0,
        PackageType.EXTRA_LARGE: 40.0,
        PackageType.FOOD: 8.0,
        PackageType.GROCERY: 15.0,
        PackageType.PHARMACY: 5.0,
        PackageType.ELECTRONICS: 15.0,
        PackageType.FRAGILE: 12.0,
    }


@dataclass(frozen=True)
class PricingPolicy:
    """
    Central configuration for job pricing.
    All amounts are in `currency`.
    """

    currency: str = "GHS"

    # --- Trip estimate ---
    # Straight-line distance is converted to minutes at this urban average.
    average_speed_kmh: float = 30.0

    # --- Variable fare ---
    per_km_rate: float = 2.5
    per_minute_rate: float = 0.2

    # --- Fees on top of the subtotal ---
    service_fee_rate: float = 0.10
    tax_rate: float = 0.03

    # --- Lookup tables ---
    base_fares: Dict[JobPriority, float] = field(default_factory=_default_base_fares)
    priority_surcharges: Dict[JobPriority, float] = field(default_factory=_default_priority_surcharges)
    package_surcharges: Dict[PackageType, float] = field(default_factory=_default_package_surcharges)

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.average_speed_kmh <= 0:
            raise ValueError("average_speed_kmh must be > 0")

        for name in ("per_km_rate", "per_minute_rate", "service_fee_rate", "tax_rate"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

        if set(self.base_fares) != set(JobPriority):
            raise ValueError("base_fares must cover every JobPriority")

        if set(self.priority_surcharges) != set(JobPriority):
            raise ValueError("priority_surcharges must cover every JobPriority")

        if set(self.package_surcharges) != set(PackageType):
            raise ValueError("package_surcharges must cover every PackageType")

        if not self.currency:
            raise ValueError("currency must be set")


def default_pricing_policy() -> PricingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = PricingPolicy()
    p.validate()
    return p


_ENV_FLOAT_FIELDS = {
    "PRICING_AVERAGE_SPEED_KMH": "average_speed_kmh",
    "PRICING_PER_KM_RATE": "per_km_rate",
    "PRICING_PER_MINUTE_RATE": "per_minute_rate",
    "PRICING_SERVICE_FEE_RATE": "service_fee_rate",
    "PRICING_TAX_RATE": "tax_rate",
}


def pricing_policy_from_env() -> PricingPolicy:
    """
    Default policy with scalar overrides from the environment (.env supported).
    Lookup tables are not overridable from the environment.
    """
    load_dotenv()

    overrides = {}
    for env_name, field_name in _ENV_FLOAT_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[field_name] = float(raw)
        except ValueError as e:
            raise ValueError(f"{env_name} must be a number, got {raw!r}") from e

    currency = os.getenv("PRICING_CURRENCY")
    if currency:
        overrides["currency"] = currency

    p = replace(PricingPolicy(), **overrides)
    p.validate()
    return p
