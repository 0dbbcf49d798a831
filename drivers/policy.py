"""
Purpose: Central configuration for driver search.
What it does:

Stores the tunable bounds for finding drivers around a pickup point:

SEARCH_RADIUS_KM = 10
MAX_CANDIDATES = 10

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class DriverPolicy:
    """
    Central configuration for driver search thresholds.
    """

    # --- Geofencing ---
    # Great-circle radius around the pickup point, in kilometers.
    search_radius_km: float = 10.0

    # --- Candidate control ---
    # Cap on how many drivers a single search returns (closest first).
    max_candidates: int = 10

    # Drivers whose last ping is older than this are treated as gone.
    # None disables the staleness check.
    max_ping_age_seconds: int | None = None

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.search_radius_km <= 0:
            raise ValueError("search_radius_km must be > 0")

        if self.max_candidates <= 0:
            raise ValueError("max_candidates must be > 0")

        if self.max_ping_age_seconds is not None and self.max_ping_age_seconds <= 0:
            raise ValueError("max_ping_age_seconds must be > 0 when set")


def default_driver_policy() -> DriverPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DriverPolicy()
    p.validate()
    return p
