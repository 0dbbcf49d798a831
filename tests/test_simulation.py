import pandas as pd

from scripts.generate_mock_drivers import generate_mock_drivers
from scripts.run_dispatch_simulation import build_engine, load_drivers, run_simulation
from identifiers import IdType, validate_id
from jobs import JobStatus
from tests.conftest import RecordingNotificationService


def test_mock_driver_file_loads(tmp_path):
    path = tmp_path / "drivers.csv"
    generate_mock_drivers(str(path), count=40)

    df = pd.read_csv(path)
    assert len(df) == 40
    assert set(df.columns) == {"driver_id", "lat", "lon", "status", "device_token"}

    drivers = load_drivers(str(path))
    assert len(drivers) == 40
    assert all(validate_id(d.id, IdType.DRIVER) for d in drivers)


def test_end_to_end_simulation(tmp_path):
    path = tmp_path / "drivers.csv"
    generate_mock_drivers(str(path), count=60)

    notifier = RecordingNotificationService()
    engine = build_engine(load_drivers(str(path)), notification_service=notifier)
    results = run_simulation(engine, job_count=15, decline_probability=0.3, seed=42)

    assert len(results) == 15
    assert (results["total"] > 0).all()

    allowed = {JobStatus.DELIVERY_COMPLETED.value, JobStatus.PENDING.value, JobStatus.SEARCHING.value}
    assert set(results["status"]) <= allowed

    delivered = results[results["status"] == JobStatus.DELIVERY_COMPLETED.value]
    assert delivered["driver_id"].notna().all()

    completed_pushes = [c for c in notifier.calls if c[0] == "delivery_completed"]
    assert len(completed_pushes) == len(delivered)

    for job_id in results["job_id"]:
        job = engine.get_job(job_id)
        assert job.tracking_code.startswith("GH")


def test_setup_logging_configures_core_loggers():
    import logging
    from dispatch.logging_config import setup_logging

    setup_logging()
    for name in ("dispatch", "jobs", "notifications"):
        logger = logging.getLogger(name)
        assert logger.handlers
        assert logger.propagate is False
