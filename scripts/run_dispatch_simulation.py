import os
import random
from typing import List, Optional

import pandas as pd

from dispatch import DispatchEngine, DispatchError
from dispatch.logging_config import setup_logging
from drivers import Driver, DriverStatus, InMemoryDriverDirectory
from identifiers import IdType, generate_id
from jobs import (
    InMemoryJobRepository,
    JobPriority,
    JobRequest,
    JobStatus,
    Location,
    PackageDetails,
    PackageType,
)
from notifications import NotificationService, NullNotificationService


BASE_LAT = 5.6037
BASE_LON = -0.1870

DELIVERY_STEPS = [
    JobStatus.DRIVER_EN_ROUTE,
    JobStatus.ARRIVED_AT_PICKUP,
    JobStatus.PACKAGE_PICKED_UP,
    JobStatus.IN_TRANSIT,
    JobStatus.ARRIVED_AT_DROPOFF,
]


def load_drivers(filepath="mock_drivers_100.csv") -> List[Driver]:
    # Resolve relative paths against the repo root so the script runs from anywhere.
    if not os.path.isabs(filepath):
        base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        filepath = os.path.join(base_dir, filepath)

    df = pd.read_csv(filepath, dtype={"driver_id": str, "device_token": str})
    df["device_token"] = df["device_token"].fillna("")

    drivers = []
    for _, row in df.iterrows():
        drivers.append(
            Driver.new(
                row["driver_id"],
                float(row["lat"]),
                float(row["lon"]),
                row["status"],
                device_token=row["device_token"] or None,
            )
        )
    return drivers


def build_engine(drivers: List[Driver], notification_service: Optional[NotificationService] = None) -> DispatchEngine:
    return DispatchEngine(
        repository=InMemoryJobRepository(),
        driver_directory=InMemoryDriverDirectory(drivers),
        notification_service=notification_service or NullNotificationService(),
    )


def _random_location(rng: random.Random, spread: float = 0.1) -> Location:
    return Location(
        latitude=BASE_LAT + (rng.random() - 0.5) * spread,
        longitude=BASE_LON + (rng.random() - 0.5) * spread,
        address="Simulated address",
        city="Accra",
        region="Greater Accra",
    )


def run_simulation(
    engine: DispatchEngine,
    job_count: int = 20,
    decline_probability: float = 0.2,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """
    Push `job_count` random Accra jobs through the full lifecycle and return
    one row per job describing how it went.
    """
    rng = random.Random(seed)
    directory = engine.driver_directory
    rows = []

    for _ in range(job_count):
        request = JobRequest(
            customer_id=generate_id(IdType.USER),
            pickup=_random_location(rng),
            dropoff=_random_location(rng),
            package=PackageDetails(package_type=rng.choice(list(PackageType))),
            priority=rng.choice(list(JobPriority)),
        )
        job = engine.create_job(request)

        candidates = engine.find_available_drivers(job.id)
        if candidates:
            engine.offer_job(job.id, candidates)

        winner = None
        for driver_id in candidates:
            if rng.random() < decline_probability:
                engine.reject_job(job.id, driver_id, reason="simulated decline")
                continue
            try:
                job = engine.assign_driver(job.id, driver_id)
            except DispatchError as e:
                print(f"[SKIP] {driver_id} could not take {job.id}: {e.message}")
                continue
            winner = driver_id
            break

        if winner is None:
            job = engine.get_job(job.id)
            print(f"[FAILED] Job {job.tracking_code} -> no driver accepted ({len(candidates)} candidates)")
        else:
            if isinstance(directory, InMemoryDriverDirectory):
                directory.set_status(winner, DriverStatus.ON_RIDE)

            for step in DELIVERY_STEPS:
                job = engine.update_status(job.id, step, driver_id=winner)
            job = engine.complete_job(job.id, driver_id=winner)

            if isinstance(directory, InMemoryDriverDirectory):
                directory.set_status(winner, DriverStatus.ONLINE)

            print(f"[SUCCESS] Job {job.tracking_code} -> delivered by {winner} ({job.pricing.currency} {job.pricing.total:.2f})")

        rows.append({
            "job_id": job.id,
            "tracking_code": job.tracking_code,
            "priority": job.priority.value,
            "package_type": job.package.package_type.value,
            "distance_km": round(job.estimated_distance_km, 3),
            "duration_min": job.estimated_duration_min,
            "total": round(job.pricing.total, 2),
            "candidates": len(candidates),
            "declined": len(job.rejected_by_drivers),
            "driver_id": job.driver_id,
            "status": job.status.value,
        })

    return pd.DataFrame(rows)


def main():
    setup_logging()
    print("=== STARTING END-TO-END DISPATCH SIMULATION ===")

    drivers = load_drivers("mock_drivers_100.csv")
    print(f"Loaded {len(drivers)} Drivers.\n")

    engine = build_engine(drivers)
    results = run_simulation(engine, job_count=30)

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "dispatch_results.csv")
    results.to_csv(output_path, index=False)

    delivered = (results["status"] == JobStatus.DELIVERY_COMPLETED.value).sum()
    print("\n=== SIMULATION COMPLETE ===")
    print(f"Jobs Delivered: {delivered} / {len(results)}")
    print(f"Revenue: {results['total'].sum():.2f}")
    print(f"Results written to '{output_path}'.")


if __name__ == "__main__":
    main()
