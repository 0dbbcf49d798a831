import json
import pytest

from dispatch.errors import (
    ConflictError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from jobs import (
    Dimensions,
    Job,
    PackageDetails,
    PackageType,
    job_id_from_tracking_code,
    tracking_code_for,
)
from tests.conftest import DRIVER_ID


def test_tracking_code_round_trip():
    assert tracking_code_for("job-240101-a1b2c") == "GH240101-a1b2c"
    assert job_id_from_tracking_code("GH240101-a1b2c") == "job-240101-a1b2c"
    assert job_id_from_tracking_code("ZZ240101-a1b2c") is None
    assert job_id_from_tracking_code("") is None


def test_package_weight_limits():
    assert PackageType.DOCUMENT.base_weight_limit == 0.5
    assert PackageType.EXTRA_LARGE.base_weight_limit == 100.0
    assert all(t.base_weight_limit > 0 for t in PackageType)


def test_dimensions_volume():
    assert Dimensions(10, 20, 30).volume() == 6000


def test_job_dict_is_json_safe_and_restores(engine, accra_request):
    job = engine.create_job(accra_request)
    job = engine.assign_driver(job.id, DRIVER_ID)

    payload = json.loads(json.dumps(job.to_dict()))
    assert payload["status"] == "driver_assigned"
    assert payload["pricing"]["currency"] == "GHS"

    restored = Job.from_dict(payload)
    assert restored == job


def test_job_dict_keeps_package_dimensions(engine, accra_request):
    from dataclasses import replace
    package = PackageDetails(
        package_type=PackageType.ELECTRONICS,
        weight_kg=3.0,
        dimensions=Dimensions(40, 30, 10),
        is_fragile=True,
        contains=["laptop"],
    )
    job = engine.create_job(replace(accra_request, package=package))
    restored = Job.from_dict(json.loads(json.dumps(job.to_dict())))
    assert restored.package == package


@pytest.mark.parametrize("error, category, status", [
    (ValidationError("bad id", field="job_id"), "validation_failed", 400),
    (NotFoundError("missing"), "not_found", 404),
    (ConflictError("nope"), "conflict", 409),
    (ServiceUnavailableError("redis timeout"), "service_unavailable", 503),
])
def test_error_payloads(error, category, status):
    body = error.to_dict()
    assert body["error"] == category
    assert error.status_code == status
    assert "redis" not in body["message"]
