"""
Purpose: Domain models for the Jobs capability.
What it does:
- Defines core data structures:
- Job (id, tracking code, parties, status, locations, package, estimates,
  pricing, timestamps, payment status, offer/rejection history, event log)
- Location, PackageDetails, Dimensions, Pricing
- JobRequest / JobEstimateRequest (inbound shapes)
- JobEvent (append-only lifecycle log entry)

Defines enums/constants:
- JobStatus = PENDING | SEARCHING | DRIVER_ASSIGNED | ... | EXPIRED
- JobPriority = STANDARD | EXPRESS | SAME_DAY | EMERGENCY
- PackageType, PaymentStatus, JobEventType

Rule: No pricing math, no transition rules, no storage. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class JobStatus(str, Enum):
    PENDING = "pending"
    SEARCHING = "searching"
    DRIVER_ASSIGNED = "driver_assigned"
    DRIVER_EN_ROUTE = "driver_en_route"
    ARRIVED_AT_PICKUP = "arrived_at_pickup"
    PACKAGE_PICKED_UP = "package_picked_up"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_DROPOFF = "arrived_at_dropoff"
    DELIVERY_COMPLETED = "delivery_completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    EXPIRED = "expired"


class JobPriority(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    SAME_DAY = "same_day"
    EMERGENCY = "emergency"


class PackageType(str, Enum):
    DOCUMENT = "document"
    SMALL_PACKAGE = "small_package"
    MEDIUM_PACKAGE = "medium_package"
    LARGE_PACKAGE = "large_package"
    EXTRA_LARGE = "extra_large"
    FOOD = "food"
    GROCERY = "grocery"
    PHARMACY = "pharmacy"
    ELECTRONICS = "electronics"
    FRAGILE = "fragile"

    @property
    def base_weight_limit(self) -> float:
        """Max weight in kg a courier accepts for this package class."""
        return _WEIGHT_LIMITS_KG[self]


_WEIGHT_LIMITS_KG: Dict[PackageType, float] = {
    PackageType.DOCUMENT: 0.5,
    PackageType.SMALL_PACKAGE: 5.0,
    PackageType.MEDIUM_PACKAGE: 15.0,
    PackageType.LARGE_PACKAGE: 30.0,
    PackageType.EXTRA_LARGE: 100.0,
    PackageType.FOOD: 10.0,
    PackageType.GROCERY: 20.0,
    PackageType.PHARMACY: 5.0,
    PackageType.ELECTRONICS: 15.0,
    PackageType.FRAGILE: 10.0,
}


class PaymentStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class JobEventType(str, Enum):
    JOB_CREATED = "job_created"
    JOB_OFFERED = "job_offered"
    JOB_REJECTED = "job_rejected"
    DRIVER_ASSIGNED = "driver_assigned"
    DRIVER_REASSIGNED = "driver_reassigned"
    STATUS_CHANGED = "status_changed"
    JOB_COMPLETED = "job_completed"
    JOB_CANCELLED = "job_cancelled"
    JOB_FAILED = "job_failed"
    JOB_EXPIRED = "job_expired"


@dataclass(frozen=True)
class Location:
    """
    A pickup or dropoff point. Coordinates drive pricing; the rest is
    handed to the courier as-is.
    """
    latitude: float
    longitude: float
    address: str = ""
    city: Optional[str] = None
    region: Optional[str] = None
    country: str = "Ghana"
    postal_code: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    instructions: Optional[str] = None

    @property
    def coordinates(self):
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Dimensions:
    length_cm: float
    width_cm: float
    height_cm: float

    def volume(self) -> float:
        return self.length_cm * self.width_cm * self.height_cm


@dataclass(frozen=True)
class PackageDetails:
    package_type: PackageType
    description: str = ""
    weight_kg: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    estimated_value: Optional[float] = None
    is_fragile: bool = False
    requires_signature: bool = False
    contains: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Pricing:
    """
    Itemized fare breakdown. Computed once; never recomputed after creation.
    """
    base_fare: float
    distance_fare: float
    time_fare: float
    package_surcharge: float
    priority_surcharge: float
    service_fee: float
    tax: float
    total: float
    currency: str = "GHS"
    estimated_cost: bool = True

    @property
    def subtotal(self) -> float:
        return (
            self.base_fare
            + self.distance_fare
            + self.time_fare
            + self.package_surcharge
            + self.priority_surcharge
        )


@dataclass(frozen=True)
class JobEstimateRequest:
    pickup: Location
    dropoff: Location
    package: PackageDetails
    priority: JobPriority = JobPriority.STANDARD


@dataclass(frozen=True)
class JobRequest:
    customer_id: str
    pickup: Location
    dropoff: Location
    package: PackageDetails
    priority: JobPriority = JobPriority.STANDARD
    payment_method_id: Optional[str] = None
    notes: Optional[str] = None
    desired_pickup_time: Optional[datetime] = None

    def to_estimate_request(self) -> JobEstimateRequest:
        return JobEstimateRequest(
            pickup=self.pickup,
            dropoff=self.dropoff,
            package=self.package,
            priority=self.priority,
        )


@dataclass(frozen=True)
class JobEvent:
    event_type: JobEventType
    timestamp: datetime
    actor_id: Optional[str] = None
    status: Optional[JobStatus] = None
    notes: Optional[str] = None


@dataclass
class Job:
    """
    One delivery order from creation to terminal state.

    Mutable on purpose: the dispatch engine re-reads it from the repository,
    mutates it through the state machine and writes the full record back.
    """
    id: str
    tracking_code: str
    customer_id: str
    priority: JobPriority
    pickup_location: Location
    dropoff_location: Location
    package: PackageDetails
    estimated_distance_km: float
    estimated_duration_min: int
    pricing: Pricing
    created_at: datetime
    expires_at: datetime
    updated_at: datetime

    status: JobStatus = JobStatus.PENDING
    driver_id: Optional[str] = None

    accepted_at: Optional[datetime] = None
    pickup_time: Optional[datetime] = None
    dropoff_time: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    payment_method_id: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING

    notes: Optional[str] = None
    desired_pickup_time: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    failure_reason: Optional[str] = None

    # Append-only histories
    offered_to_drivers: List[str] = field(default_factory=list)
    rejected_by_drivers: List[str] = field(default_factory=list)
    events: List[JobEvent] = field(default_factory=list)

    # Optimistic-concurrency stamp, bumped by the repository on every write
    version: int = 0

    def record_event(
        self,
        event_type: JobEventType,
        timestamp: datetime,
        actor_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        self.events.append(
            JobEvent(
                event_type=event_type,
                timestamp=timestamp,
                actor_id=actor_id,
                status=self.status,
                notes=notes,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return _encode(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Job:
        package = dict(data["package"])
        dims = package.get("dimensions")
        package["dimensions"] = Dimensions(**dims) if dims else None
        package["package_type"] = PackageType(package["package_type"])

        events = [
            JobEvent(
                event_type=JobEventType(e["event_type"]),
                timestamp=_parse_dt(e["timestamp"]),
                actor_id=e.get("actor_id"),
                status=JobStatus(e["status"]) if e.get("status") else None,
                notes=e.get("notes"),
            )
            for e in data.get("events", [])
        ]

        return cls(
            id=data["id"],
            tracking_code=data["tracking_code"],
            customer_id=data["customer_id"],
            priority=JobPriority(data["priority"]),
            pickup_location=Location(**data["pickup_location"]),
            dropoff_location=Location(**data["dropoff_location"]),
            package=PackageDetails(**package),
            estimated_distance_km=data["estimated_distance_km"],
            estimated_duration_min=data["estimated_duration_min"],
            pricing=Pricing(**data["pricing"]),
            created_at=_parse_dt(data["created_at"]),
            expires_at=_parse_dt(data["expires_at"]),
            updated_at=_parse_dt(data["updated_at"]),
            status=JobStatus(data["status"]),
            driver_id=data.get("driver_id"),
            accepted_at=_parse_dt(data.get("accepted_at")),
            pickup_time=_parse_dt(data.get("pickup_time")),
            dropoff_time=_parse_dt(data.get("dropoff_time")),
            cancelled_at=_parse_dt(data.get("cancelled_at")),
            payment_method_id=data.get("payment_method_id"),
            payment_status=PaymentStatus(data.get("payment_status", PaymentStatus.PENDING.value)),
            notes=data.get("notes"),
            desired_pickup_time=_parse_dt(data.get("desired_pickup_time")),
            cancellation_reason=data.get("cancellation_reason"),
            failure_reason=data.get("failure_reason"),
            offered_to_drivers=list(data.get("offered_to_drivers", [])),
            rejected_by_drivers=list(data.get("rejected_by_drivers", [])),
            events=events,
            version=data.get("version", 0),
        )


def _encode(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def tracking_code_for(job_id: str, prefix: str = "GH") -> str:
    """
    Customer-facing code derived from the job ID: `job-240101-a1b2c` -> `GH240101-a1b2c`.
    """
    return prefix + job_id[len("job-"):] if job_id.startswith("job-") else prefix + job_id


def job_id_from_tracking_code(tracking_code: str, prefix: str = "GH") -> Optional[str]:
    if not tracking_code or not tracking_code.startswith(prefix):
        return None
    return "job-" + tracking_code[len(prefix):]
