from datetime import datetime
from typing import Dict, FrozenSet

from jobs.models import Job, JobStatus, PaymentStatus
from dispatch.errors import InvalidTransitionError

TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset({
    JobStatus.DELIVERY_COMPLETED,
    JobStatus.CANCELLED,
    JobStatus.FAILED,
    JobStatus.EXPIRED,
})

# Once a driver holds the job it only moves one step at a time down this chain.
DELIVERY_SEQUENCE = (
    JobStatus.DRIVER_ASSIGNED,
    JobStatus.DRIVER_EN_ROUTE,
    JobStatus.ARRIVED_AT_PICKUP,
    JobStatus.PACKAGE_PICKED_UP,
    JobStatus.IN_TRANSIT,
    JobStatus.ARRIVED_AT_DROPOFF,
    JobStatus.DELIVERY_COMPLETED,
)

# Reachable from every non-terminal status.
EXIT_STATUSES: FrozenSet[JobStatus] = frozenset({
    JobStatus.CANCELLED,
    JobStatus.FAILED,
    JobStatus.EXPIRED,
})


def _build_transitions() -> Dict[JobStatus, FrozenSet[JobStatus]]:
    forward: Dict[JobStatus, set] = {
        JobStatus.PENDING: {JobStatus.SEARCHING, JobStatus.DRIVER_ASSIGNED},
        JobStatus.SEARCHING: {JobStatus.DRIVER_ASSIGNED},
    }
    for current, following in zip(DELIVERY_SEQUENCE, DELIVERY_SEQUENCE[1:]):
        forward.setdefault(current, set()).add(following)

    transitions = {}
    for status in JobStatus:
        if status in TERMINAL_STATUSES:
            transitions[status] = frozenset()
        else:
            transitions[status] = frozenset(forward.get(status, set()) | EXIT_STATUSES)
    return transitions


ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = _build_transitions()


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(job: Job, target: JobStatus) -> None:
    """
    Raises InvalidTransitionError (no mutation) if `target` is not reachable
    from the job's current status.
    """
    if is_terminal(job.status):
        raise InvalidTransitionError(
            f"Job {job.id} is already {job.status.value} and cannot move to {target.value}",
            details={"job_id": job.id, "current_status": job.status.value, "requested_status": target.value},
        )

    if not can_transition(job.status, target):
        raise InvalidTransitionError(
            f"Cannot move job {job.id} from {job.status.value} to {target.value}",
            details={"job_id": job.id, "current_status": job.status.value, "requested_status": target.value},
        )


def apply_status(job: Job, target: JobStatus, now: datetime) -> Job:
    """
    Move `job` to `target` in place and stamp the matching timestamp.
    Milestone timestamps are only ever set the first time.
    """
    ensure_transition(job, target)

    job.status = target

    if target == JobStatus.DRIVER_ASSIGNED and job.accepted_at is None:
        job.accepted_at = now
    elif target == JobStatus.PACKAGE_PICKED_UP and job.pickup_time is None:
        job.pickup_time = now
    elif target == JobStatus.DELIVERY_COMPLETED:
        if job.dropoff_time is None:
            job.dropoff_time = now
        job.payment_status = PaymentStatus.PAID
    elif target == JobStatus.CANCELLED and job.cancelled_at is None:
        job.cancelled_at = now

    job.updated_at = now
    return job
