"""
Purpose: Notification Capability contract.
What it does:

The dispatch engine calls these hooks at lifecycle milestones:
- notify_driver_assigned(job, driver_id)
- notify_status_milestone(job, milestone)
- notify_delivery_completed(job)

Each returns True/False. A failure never undoes the lifecycle transition that
triggered it; the engine logs it and moves on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict

from jobs.models import Job, JobStatus


class NotificationError(Exception):
    """May be raised by a notifier that cannot deliver; treated like a False result."""
    pass


@dataclass(frozen=True)
class NotificationMessage:
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)


_MILESTONE_TEXT: Dict[JobStatus, str] = {
    JobStatus.DRIVER_EN_ROUTE: "Your driver is on the way to the pickup point",
    JobStatus.ARRIVED_AT_PICKUP: "Your driver has arrived at the pickup point",
    JobStatus.PACKAGE_PICKED_UP: "Your package has been picked up",
    JobStatus.IN_TRANSIT: "Your package is on its way",
    JobStatus.ARRIVED_AT_DROPOFF: "Your driver has arrived at the dropoff point",
    JobStatus.DELIVERY_COMPLETED: "Your package has been delivered",
    JobStatus.CANCELLED: "Your delivery has been cancelled",
    JobStatus.FAILED: "Your delivery could not be completed",
    JobStatus.EXPIRED: "No driver was found for your delivery",
}


def driver_assigned_message(job: Job, driver_id: str) -> NotificationMessage:
    return NotificationMessage(
        title="New delivery assigned",
        body=f"Pickup at {job.pickup_location.address or 'the pickup point'}",
        data={"job_id": job.id, "driver_id": driver_id, "type": "driver_assigned"},
    )


def status_milestone_message(job: Job, milestone: JobStatus) -> NotificationMessage:
    return NotificationMessage(
        title=f"Delivery {job.tracking_code}",
        body=_MILESTONE_TEXT.get(milestone, f"Status changed to {milestone.value}"),
        data={"job_id": job.id, "status": milestone.value, "type": "status_update"},
    )


def delivery_completed_message(job: Job) -> NotificationMessage:
    return NotificationMessage(
        title=f"Delivery {job.tracking_code} completed",
        body=f"Total charged: {job.pricing.currency} {job.pricing.total:.2f}",
        data={"job_id": job.id, "type": "delivery_completed"},
    )


class NotificationService(ABC):

    @abstractmethod
    def notify_driver_assigned(self, job: Job, driver_id: str) -> bool:
        ...

    @abstractmethod
    def notify_status_milestone(self, job: Job, milestone: JobStatus) -> bool:
        ...

    @abstractmethod
    def notify_delivery_completed(self, job: Job) -> bool:
        ...


class NullNotificationService(NotificationService):
    """Accepts every notification and sends nothing."""

    def notify_driver_assigned(self, job: Job, driver_id: str) -> bool:
        return True

    def notify_status_milestone(self, job: Job, milestone: JobStatus) -> bool:
        return True

    def notify_delivery_completed(self, job: Job) -> bool:
        return True
