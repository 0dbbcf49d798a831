"""
Jobs domain package.

Public API:
- Domain models: Job, JobStatus, JobPriority, Location, PackageDetails,
  Dimensions, PackageType, Pricing, PaymentStatus, JobEvent, JobEventType
- Inbound shapes: JobRequest, JobEstimateRequest
- Persistence contract: JobRepository (+ in-memory and SQLite backends)
"""
from .models import (
    Job,
    JobStatus,
    JobPriority,
    Location,
    PackageDetails,
    Dimensions,
    PackageType,
    Pricing,
    PaymentStatus,
    JobEvent,
    JobEventType,
    JobRequest,
    JobEstimateRequest,
    tracking_code_for,
    job_id_from_tracking_code,
)
from .repository import (
    JobRepository,
    InMemoryJobRepository,
    RepositoryError,
    VersionConflictError,
)
from .sqlite_repository import SqliteJobRepository

__all__ = [
    "Job",
    "JobStatus",
    "JobPriority",
    "Location",
    "PackageDetails",
    "Dimensions",
    "PackageType",
    "Pricing",
    "PaymentStatus",
    "JobEvent",
    "JobEventType",
    "JobRequest",
    "JobEstimateRequest",
    "tracking_code_for",
    "job_id_from_tracking_code",
    "JobRepository",
    "InMemoryJobRepository",
    "SqliteJobRepository",
    "RepositoryError",
    "VersionConflictError",
]
