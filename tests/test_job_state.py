import pytest
from datetime import datetime, timedelta, timezone

from dispatch.errors import ConflictError, InvalidTransitionError
from dispatch.state_machines.job_state import (
    ALLOWED_TRANSITIONS,
    DELIVERY_SEQUENCE,
    TERMINAL_STATUSES,
    apply_status,
    can_transition,
)
from jobs import Job, JobPriority, JobStatus, Location, PackageDetails, PackageType, PaymentStatus, Pricing

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def job():
    return Job(
        id="job-240101-abc12",
        tracking_code="GH240101-abc12",
        customer_id="usr-240101-c0ffe",
        priority=JobPriority.STANDARD,
        pickup_location=Location(latitude=5.6037, longitude=-0.1870),
        dropoff_location=Location(latitude=5.5600, longitude=-0.2057),
        package=PackageDetails(package_type=PackageType.DOCUMENT),
        estimated_distance_km=5.28,
        estimated_duration_min=10,
        pricing=Pricing(15.0, 13.2, 2.0, 0.0, 0.0, 3.02, 0.906, 34.126),
        created_at=T0,
        expires_at=T0 + timedelta(hours=2),
        updated_at=T0,
    )


def test_terminal_statuses_have_no_exits():
    for status in TERMINAL_STATUSES:
        assert ALLOWED_TRANSITIONS[status] == frozenset()


def test_every_non_terminal_status_can_cancel_fail_or_expire():
    for status in JobStatus:
        if status in TERMINAL_STATUSES:
            continue
        for exit_status in (JobStatus.CANCELLED, JobStatus.FAILED, JobStatus.EXPIRED):
            assert can_transition(status, exit_status)


def test_delivery_sequence_moves_one_step_at_a_time():
    for i, status in enumerate(DELIVERY_SEQUENCE[:-1]):
        assert can_transition(status, DELIVERY_SEQUENCE[i + 1])
        for skipped in DELIVERY_SEQUENCE[i + 2:]:
            assert not can_transition(status, skipped)
        for earlier in DELIVERY_SEQUENCE[:i + 1]:
            assert not can_transition(status, earlier)


def test_pending_cannot_jump_to_completion(job):
    with pytest.raises(InvalidTransitionError) as exc:
        apply_status(job, JobStatus.DELIVERY_COMPLETED, T0)
    assert isinstance(exc.value, ConflictError)
    assert job.status == JobStatus.PENDING
    assert job.updated_at == T0


def test_walks_full_sequence_and_stamps_timestamps(job):
    apply_status(job, JobStatus.DRIVER_ASSIGNED, T0 + timedelta(minutes=1))
    assert job.accepted_at == T0 + timedelta(minutes=1)

    for minute, status in enumerate(DELIVERY_SEQUENCE[1:], start=2):
        apply_status(job, status, T0 + timedelta(minutes=minute))

    assert job.status == JobStatus.DELIVERY_COMPLETED
    assert job.pickup_time == T0 + timedelta(minutes=4)
    assert job.dropoff_time == T0 + timedelta(minutes=7)
    assert job.payment_status == PaymentStatus.PAID
    assert job.updated_at == T0 + timedelta(minutes=7)


def test_no_mutation_after_terminal(job):
    apply_status(job, JobStatus.CANCELLED, T0)
    assert job.cancelled_at == T0

    with pytest.raises(InvalidTransitionError):
        apply_status(job, JobStatus.SEARCHING, T0 + timedelta(minutes=5))
    assert job.status == JobStatus.CANCELLED
    assert job.updated_at == T0
