"""
Pricing package.

Public API:
- PricingPolicy, default_pricing_policy, pricing_policy_from_env
- TripEstimate, estimate_trip, calculate_pricing
"""
from .policy import PricingPolicy, default_pricing_policy, pricing_policy_from_env
from .estimator import TripEstimate, estimate_trip, calculate_pricing

__all__ = [
    "PricingPolicy",
    "default_pricing_policy",
    "pricing_policy_from_env",
    "TripEstimate",
    "estimate_trip",
    "calculate_pricing",
]
