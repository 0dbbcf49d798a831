"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Owns the job lifecycle. Every public call:
1. checks the shape of the IDs it was given (no repository hit for junk IDs)
2. re-reads the job from the repository
3. runs the state machine
4. writes the full record back with a version check
5. fires the matching notification (best-effort)

The engine keeps no cache of jobs between calls; the repository is the
source of truth and concurrent callers are expected.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from drivers.directory import DriverDirectory
from drivers.models import DriverStatus
from drivers.policy import DriverPolicy, default_driver_policy
from identifiers import IdType, generate_id, validate_id
from jobs.models import (
    Job,
    JobEstimateRequest,
    JobEventType,
    JobRequest,
    JobStatus,
    Location,
    Pricing,
    job_id_from_tracking_code,
    tracking_code_for,
)
from jobs.repository import JobRepository, RepositoryError, VersionConflictError
from notifications.service import NotificationService, NullNotificationService
from pricing.estimator import calculate_pricing, estimate_trip
from pricing.policy import PricingPolicy, default_pricing_policy

from .errors import (
    ConcurrentModificationError,
    ConflictError,
    DriverAlreadyAssignedError,
    DriverNotAvailableError,
    InvalidTransitionError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from .policy import DispatchPolicy, default_dispatch_policy
from .state_machines.job_state import apply_status, ensure_transition, is_terminal

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

SEARCHABLE_STATUSES = (JobStatus.PENDING, JobStatus.SEARCHING)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DispatchEngine:
    """
    Coordinates a Job from request to terminal state.

    Collaborators are injected so tests and simulations can swap in the
    in-memory repository/directory and a recording notifier.
    """
    def __init__(
        self,
        repository: JobRepository,
        driver_directory: DriverDirectory,
        notification_service: Optional[NotificationService] = None,
        pricing_policy: Optional[PricingPolicy] = None,
        policy: Optional[DispatchPolicy] = None,
        driver_policy: Optional[DriverPolicy] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.driver_directory = driver_directory
        self.notification_service = notification_service or NullNotificationService()
        self.pricing_policy = pricing_policy or default_pricing_policy()
        self.policy = policy or default_dispatch_policy()
        self.driver_policy = driver_policy or default_driver_policy()
        self.clock = clock or _utc_now

    # ----------------
    # Configuration
    # ----------------
    def set_pricing_policy(self, pricing_policy: PricingPolicy) -> None:
        """Swap fare configuration at runtime. Existing jobs keep their price."""
        pricing_policy.validate()
        self.pricing_policy = pricing_policy
        logger.info("Pricing policy replaced (currency=%s)", pricing_policy.currency)

    # ----------------
    # Creation + estimates
    # ----------------
    def calculate_estimate(self, request: JobEstimateRequest) -> Pricing:
        self._validate_locations(request.pickup, request.dropoff)
        return calculate_pricing(request, self.pricing_policy)

    def create_job(self, request: JobRequest) -> Job:
        self._require_id(request.customer_id, IdType.USER, "customer_id")
        self._validate_locations(request.pickup, request.dropoff)
        self._validate_package(request)

        now = self.clock()
        pricing_policy = self.pricing_policy

        trip = estimate_trip(request.pickup, request.dropoff, pricing_policy)
        pricing = calculate_pricing(request.to_estimate_request(), pricing_policy, trip)

        job_id = generate_id(IdType.JOB, now)

        job = Job(
            id=job_id,
            tracking_code=tracking_code_for(job_id, self.policy.tracking_code_prefix),
            customer_id=request.customer_id,
            priority=request.priority,
            pickup_location=request.pickup,
            dropoff_location=request.dropoff,
            package=request.package,
            estimated_distance_km=trip.distance_km,
            estimated_duration_min=trip.duration_min,
            pricing=pricing,
            created_at=now,
            expires_at=now + self.policy.acceptance_window,
            updated_at=now,
            payment_method_id=request.payment_method_id,
            notes=request.notes,
            desired_pickup_time=request.desired_pickup_time,
        )
        job.record_event(JobEventType.JOB_CREATED, now, actor_id=request.customer_id)

        # Index first: a dangling index entry is skipped on read, an unindexed job is lost
        self._repo("index customer job", self.repository.add_job_to_customer_index, request.customer_id, job.id)
        # expected_version=0: a freshly minted ID must not already be stored
        self._save(job, expected_version=0)

        logger.info(
            "Created job %s for %s: %.2f km, %d min, %s %.2f",
            job.id, job.customer_id, trip.distance_km, trip.duration_min, pricing.currency, pricing.total,
        )
        return job

    # ----------------
    # Reads
    # ----------------
    def get_job(self, job_id: str) -> Optional[Job]:
        if not validate_id(job_id, IdType.JOB):
            return None
        return self._repo("get job", self.repository.get_job, job_id)

    def track_job(self, tracking_code: str) -> Optional[Job]:
        job_id = job_id_from_tracking_code(tracking_code, self.policy.tracking_code_prefix)
        if job_id is None:
            return None
        job = self.get_job(job_id)
        if job is None or job.tracking_code != tracking_code:
            return None
        return job

    def get_jobs_by_customer(self, customer_id: str) -> List[Job]:
        self._require_id(customer_id, IdType.USER, "customer_id")
        job_ids = self._repo("list customer jobs", self.repository.list_job_ids_for_customer, customer_id)
        return self._load_many(job_ids)

    def get_jobs_by_driver(self, driver_id: str) -> List[Job]:
        self._require_id(driver_id, IdType.DRIVER, "driver_id")
        job_ids = self._repo("list driver jobs", self.repository.list_job_ids_for_driver, driver_id)
        return self._load_many(job_ids)

    def find_available_drivers(self, job_id: str) -> List[str]:
        """
        Closest online drivers around the pickup point who have not declined
        this job. Read-only with respect to the job.
        """
        self._require_id(job_id, IdType.JOB, "job_id")
        job = self._load(job_id)

        if job.status not in SEARCHABLE_STATUSES:
            raise InvalidTransitionError(
                f"Job {job.id} is {job.status.value}; driver search needs pending or searching",
                details={"job_id": job.id, "current_status": job.status.value},
            )

        limit = self.driver_policy.max_candidates
        rejected = set(job.rejected_by_drivers)

        # Over-fetch by the number of decliners so filtering them out cannot starve the list
        candidates = self._directory(
            "find nearby drivers",
            self.driver_directory.find_nearby,
            job.pickup_location.latitude,
            job.pickup_location.longitude,
            self.driver_policy.search_radius_km,
            limit + len(rejected),
        )

        driver_ids = [c.id for c in candidates if c.id not in rejected]
        return driver_ids[:limit]

    # ----------------
    # Offers
    # ----------------
    def offer_job(self, job_id: str, driver_ids: Iterable[str]) -> Job:
        self._require_id(job_id, IdType.JOB, "job_id")
        driver_ids = list(driver_ids)
        for driver_id in driver_ids:
            self._require_id(driver_id, IdType.DRIVER, "driver_ids")

        job = self._load(job_id)
        if job.status not in SEARCHABLE_STATUSES:
            raise InvalidTransitionError(
                f"Job {job.id} is {job.status.value} and can no longer be offered",
                details={"job_id": job.id, "current_status": job.status.value},
            )

        new_offers = []
        for driver_id in driver_ids:
            if driver_id in job.rejected_by_drivers or driver_id in job.offered_to_drivers:
                continue
            if driver_id not in new_offers:
                new_offers.append(driver_id)

        if not new_offers and job.status == JobStatus.SEARCHING:
            return job

        expected = job.version
        now = self.clock()

        if job.status == JobStatus.PENDING:
            apply_status(job, JobStatus.SEARCHING, now)

        job.offered_to_drivers.extend(new_offers)
        job.updated_at = now
        job.record_event(JobEventType.JOB_OFFERED, now, notes=",".join(new_offers) or None)

        self._save(job, expected)
        logger.info("Offered job %s to %d driver(s)", job.id, len(new_offers))
        return job

    def reject_job(self, job_id: str, driver_id: str, reason: Optional[str] = None) -> Job:
        self._require_id(job_id, IdType.JOB, "job_id")
        self._require_id(driver_id, IdType.DRIVER, "driver_id")

        job = self._load(job_id)
        if driver_id in job.rejected_by_drivers:
            return job

        if job.status not in SEARCHABLE_STATUSES:
            raise InvalidTransitionError(
                f"Job {job.id} is {job.status.value}; offers can only be declined while searching",
                details={"job_id": job.id, "current_status": job.status.value},
            )

        expected = job.version
        now = self.clock()

        job.rejected_by_drivers.append(driver_id)
        job.updated_at = now
        job.record_event(JobEventType.JOB_REJECTED, now, actor_id=driver_id, notes=reason)

        self._save(job, expected)
        logger.info("Driver %s declined job %s", driver_id, job.id)
        return job

    # ----------------
    # Assignment
    # ----------------
    def assign_driver(self, job_id: str, driver_id: str, reassign: bool = False) -> Job:
        """
        Hand the job to `driver_id`.

        Assigning the driver who already holds the job is a safe retry: the
        record is left alone and the driver index is re-written. Replacing a
        different driver requires `reassign=True` and is only possible before
        the driver sets off.
        """
        self._require_id(job_id, IdType.JOB, "job_id")
        self._require_id(driver_id, IdType.DRIVER, "driver_id")

        job = self._load(job_id)

        if job.driver_id == driver_id and not is_terminal(job.status):
            self._repo("index driver job", self.repository.add_job_to_driver_index, driver_id, job.id)
            logger.debug("Job %s already assigned to %s; re-entry", job.id, driver_id)
            return job

        previous_driver_id = job.driver_id

        if previous_driver_id is not None:
            if is_terminal(job.status):
                ensure_transition(job, JobStatus.DRIVER_ASSIGNED)
            if not reassign:
                raise DriverAlreadyAssignedError(
                    f"Job {job.id} is already assigned to driver {previous_driver_id}",
                    details={"job_id": job.id, "driver_id": previous_driver_id},
                )
            if job.status != JobStatus.DRIVER_ASSIGNED:
                raise InvalidTransitionError(
                    f"Job {job.id} is {job.status.value}; drivers can only be swapped before departure",
                    details={"job_id": job.id, "current_status": job.status.value},
                )
        else:
            ensure_transition(job, JobStatus.DRIVER_ASSIGNED)

        if driver_id in job.rejected_by_drivers:
            raise DriverNotAvailableError(
                f"Driver {driver_id} declined job {job.id}",
                details={"job_id": job.id, "driver_id": driver_id},
            )

        driver = self._directory("get driver", self.driver_directory.get_driver, driver_id)
        if driver is None:
            raise NotFoundError(f"Driver {driver_id} not found", details={"driver_id": driver_id})
        if driver.status != DriverStatus.ONLINE:
            raise DriverNotAvailableError(
                f"Driver {driver_id} is {driver.status.value}",
                details={"driver_id": driver_id, "driver_status": driver.status.value},
            )

        expected = job.version
        now = self.clock()

        if previous_driver_id is None:
            apply_status(job, JobStatus.DRIVER_ASSIGNED, now)
            job.driver_id = driver_id
            job.record_event(JobEventType.DRIVER_ASSIGNED, now, actor_id=driver_id)
        else:
            job.driver_id = driver_id
            job.updated_at = now
            job.record_event(
                JobEventType.DRIVER_REASSIGNED, now, actor_id=driver_id,
                notes=f"replaced {previous_driver_id}",
            )

        self._save(job, expected)

        if previous_driver_id is not None:
            self._repo("unindex driver job", self.repository.remove_job_from_driver_index, previous_driver_id, job.id)
        self._repo("index driver job", self.repository.add_job_to_driver_index, driver_id, job.id)

        logger.info("Assigned job %s to driver %s", job.id, driver_id)
        self._notify("driver_assigned", self.notification_service.notify_driver_assigned, job, driver_id)
        return job

    # ----------------
    # Status changes
    # ----------------
    def update_status(self, job_id: str, new_status: JobStatus | str, driver_id: Optional[str] = None) -> Job:
        """
        Move the job one step along its delivery sequence.

        When `driver_id` is given it must be the driver holding the job.
        Statuses with their own operation (assignment, completion, cancel,
        fail, expire) are routed there.
        """
        self._require_id(job_id, IdType.JOB, "job_id")
        if driver_id is not None:
            self._require_id(driver_id, IdType.DRIVER, "driver_id")

        target = self._coerce_status(new_status)

        if target == JobStatus.DRIVER_ASSIGNED:
            if driver_id is None:
                raise ValidationError("driver_id is required to assign a driver", field="driver_id")
            return self.assign_driver(job_id, driver_id)
        if target == JobStatus.DELIVERY_COMPLETED:
            return self.complete_job(job_id, driver_id=driver_id)
        if target == JobStatus.CANCELLED:
            return self.cancel_job(job_id)
        if target == JobStatus.FAILED:
            return self.fail_job(job_id)
        if target == JobStatus.EXPIRED:
            return self.expire_job(job_id)

        job = self._load(job_id)
        if job.status == target:
            return job

        self._check_actor(job, driver_id)

        expected = job.version
        now = self.clock()
        apply_status(job, target, now)
        job.record_event(JobEventType.STATUS_CHANGED, now, actor_id=driver_id)

        self._save(job, expected)
        logger.info("Job %s -> %s", job.id, target.value)

        if target != JobStatus.SEARCHING:
            self._notify("status_milestone", self.notification_service.notify_status_milestone, job, target)
        return job

    def complete_job(self, job_id: str, driver_id: Optional[str] = None) -> Job:
        self._require_id(job_id, IdType.JOB, "job_id")
        if driver_id is not None:
            self._require_id(driver_id, IdType.DRIVER, "driver_id")

        job = self._load(job_id)
        if job.status == JobStatus.DELIVERY_COMPLETED:
            return job

        self._check_actor(job, driver_id)

        expected = job.version
        now = self.clock()
        apply_status(job, JobStatus.DELIVERY_COMPLETED, now)
        job.record_event(JobEventType.JOB_COMPLETED, now, actor_id=driver_id or job.driver_id)

        self._save(job, expected)
        logger.info("Job %s delivered by %s", job.id, job.driver_id)

        self._notify("delivery_completed", self.notification_service.notify_delivery_completed, job)
        return job

    def cancel_job(self, job_id: str, reason: Optional[str] = None) -> Job:
        """
        Cancel from any non-terminal status.

        The driver index entry is dropped only after the record is written.
        Cancelling an already-cancelled job drops it again, so a retry after
        a failed unindex still converges.
        """
        self._require_id(job_id, IdType.JOB, "job_id")

        job = self._load(job_id)

        if job.status == JobStatus.CANCELLED:
            if job.driver_id:
                self._repo("unindex driver job", self.repository.remove_job_from_driver_index, job.driver_id, job.id)
            return job

        ensure_transition(job, JobStatus.CANCELLED)

        expected = job.version
        now = self.clock()
        apply_status(job, JobStatus.CANCELLED, now)
        job.cancellation_reason = reason
        job.record_event(JobEventType.JOB_CANCELLED, now, notes=reason)

        self._save(job, expected)
        if job.driver_id:
            self._repo("unindex driver job", self.repository.remove_job_from_driver_index, job.driver_id, job.id)
        logger.info("Job %s cancelled (%s)", job.id, reason or "no reason given")

        self._notify("status_milestone", self.notification_service.notify_status_milestone, job, JobStatus.CANCELLED)
        return job

    def fail_job(self, job_id: str, reason: Optional[str] = None) -> Job:
        self._require_id(job_id, IdType.JOB, "job_id")

        job = self._load(job_id)
        if job.status == JobStatus.FAILED:
            return job

        expected = job.version
        now = self.clock()
        apply_status(job, JobStatus.FAILED, now)
        job.failure_reason = reason
        job.record_event(JobEventType.JOB_FAILED, now, actor_id=job.driver_id, notes=reason)

        self._save(job, expected)
        logger.warning("Job %s failed (%s)", job.id, reason or "no reason given")

        self._notify("status_milestone", self.notification_service.notify_status_milestone, job, JobStatus.FAILED)
        return job

    def expire_job(self, job_id: str) -> Job:
        """
        Expire a job that found no driver before `expires_at`.
        Called by an external sweeper; the engine runs no timers.
        """
        self._require_id(job_id, IdType.JOB, "job_id")

        job = self._load(job_id)
        if job.status == JobStatus.EXPIRED:
            return job

        ensure_transition(job, JobStatus.EXPIRED)

        if job.driver_id is not None:
            raise InvalidTransitionError(
                f"Job {job.id} already has driver {job.driver_id} and cannot expire",
                details={"job_id": job.id, "driver_id": job.driver_id},
            )

        now = self.clock()
        if now < job.expires_at:
            raise InvalidTransitionError(
                f"Job {job.id} is not due to expire until {job.expires_at.isoformat()}",
                details={"job_id": job.id, "expires_at": job.expires_at.isoformat()},
            )

        expected = job.version
        apply_status(job, JobStatus.EXPIRED, now)
        job.record_event(JobEventType.JOB_EXPIRED, now)

        self._save(job, expected)
        logger.info("Job %s expired without a driver", job.id)

        self._notify("status_milestone", self.notification_service.notify_status_milestone, job, JobStatus.EXPIRED)
        return job

    # ----------------
    # Internal helpers
    # ----------------
    def _require_id(self, value: str, id_type: IdType, field: str) -> None:
        if not validate_id(value, id_type):
            raise ValidationError(
                f"Invalid {id_type.name.lower()} id: {value!r}",
                field=field,
            )

    def _validate_locations(self, pickup: Location, dropoff: Location) -> None:
        for field, location in (("pickup", pickup), ("dropoff", dropoff)):
            if not -90.0 <= location.latitude <= 90.0:
                raise ValidationError(f"{field} latitude out of range: {location.latitude}", field=field)
            if not -180.0 <= location.longitude <= 180.0:
                raise ValidationError(f"{field} longitude out of range: {location.longitude}", field=field)

    def _validate_package(self, request: JobRequest) -> None:
        package = request.package
        if package.weight_kg is None:
            return
        if package.weight_kg <= 0:
            raise ValidationError("package weight must be > 0", field="package.weight_kg")
        limit = package.package_type.base_weight_limit
        if package.weight_kg > limit:
            raise ValidationError(
                f"{package.package_type.value} packages are limited to {limit} kg",
                field="package.weight_kg",
                details={"weight_kg": package.weight_kg, "limit_kg": limit},
            )

    def _coerce_status(self, value: JobStatus | str) -> JobStatus:
        if isinstance(value, JobStatus):
            return value
        try:
            return JobStatus(value)
        except ValueError as e:
            raise ValidationError(f"Unknown job status: {value!r}", field="status") from e

    def _check_actor(self, job: Job, driver_id: Optional[str]) -> None:
        if driver_id is not None and job.driver_id != driver_id:
            raise ConflictError(
                f"Driver {driver_id} is not assigned to job {job.id}",
                details={"job_id": job.id, "driver_id": driver_id},
            )

    def _repo(self, operation: str, fn, *args):
        try:
            return fn(*args)
        except VersionConflictError as e:
            raise ConcurrentModificationError(
                f"Job {e.job_id} was modified by another request; re-fetch and retry",
                details={"job_id": e.job_id},
            ) from e
        except RepositoryError as e:
            logger.error("Repository failure during %s: %s", operation, e)
            raise ServiceUnavailableError(str(e)) from e

    def _directory(self, operation: str, fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            logger.error("Driver directory failure during %s: %s", operation, e)
            raise ServiceUnavailableError(f"driver directory: {e}") from e

    def _load(self, job_id: str) -> Job:
        job = self._repo("get job", self.repository.get_job, job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found", details={"job_id": job_id})
        return job

    def _load_many(self, job_ids: Iterable[str]) -> List[Job]:
        jobs = []
        for job_id in job_ids:
            job = self._repo("get job", self.repository.get_job, job_id)
            if job is not None:
                jobs.append(job)
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return jobs

    def _save(self, job: Job, expected_version: int) -> None:
        self._repo("put job", self.repository.put_job, job, expected_version)

    def _notify(self, kind: str, send, *args) -> bool:
        """
        Fire a notification. Failures are logged and reported as False, never raised:
        the transition that triggered it is already persisted.
        """
        try:
            delivered = send(*args)
        except Exception:
            logger.warning("Notification %s raised for job %s", kind, args[0].id, exc_info=True)
            return False

        if not delivered:
            logger.warning("Notification %s was not delivered for job %s", kind, args[0].id)
            return False
        return True
