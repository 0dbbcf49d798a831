"""
Purpose: Central configuration for the job lifecycle.
What it does:

Stores the tunable lifecycle parameters:

ACCEPTANCE_WINDOW_MINUTES = 120   (expires_at = created_at + window)
TRACKING_CODE_PREFIX = "GH"

Driver search bounds live in drivers.policy.DriverPolicy.

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class DispatchPolicy:
    """
    Central configuration for job creation and expiry.
    """

    # --- Expiry ---
    # A job nobody picked up within this window may be expired by the sweeper.
    acceptance_window_minutes: int = 120

    # --- Customer-facing codes ---
    tracking_code_prefix: str = "GH"

    @property
    def acceptance_window(self) -> timedelta:
        return timedelta(minutes=self.acceptance_window_minutes)

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.acceptance_window_minutes <= 0:
            raise ValueError("acceptance_window_minutes must be > 0")

        if not self.tracking_code_prefix:
            raise ValueError("tracking_code_prefix must be set")


def default_dispatch_policy() -> DispatchPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DispatchPolicy()
    p.validate()
    return p
