import pytest

from dispatch import DispatchEngine
from jobs import (
    InMemoryJobRepository,
    JobStatus,
    SqliteJobRepository,
    VersionConflictError,
)
from tests.conftest import CUSTOMER_ID, DRIVER_ID


@pytest.fixture(params=["memory", "sqlite"])
def any_repository(request, tmp_path):
    if request.param == "memory":
        return InMemoryJobRepository()
    return SqliteJobRepository(str(tmp_path / "jobs.db"))


@pytest.fixture
def stored_job(any_repository, directory, clock, accra_request):
    engine = DispatchEngine(any_repository, directory, clock=clock)
    return engine.create_job(accra_request)


def test_put_then_get_returns_equal_record(any_repository, stored_job):
    loaded = any_repository.get_job(stored_job.id)
    assert loaded == stored_job
    assert loaded is not stored_job


def test_missing_job_is_none(any_repository):
    assert any_repository.get_job("job-240101-zzzzz") is None


def test_version_bumps_on_every_write(any_repository, stored_job):
    assert stored_job.version == 1

    job = any_repository.get_job(stored_job.id)
    job.notes = "ring the bell"
    any_repository.put_job(job, expected_version=1)
    assert job.version == 2
    assert any_repository.get_job(job.id).version == 2


def test_conditional_write_rejects_stale_version(any_repository, stored_job):
    first = any_repository.get_job(stored_job.id)
    second = any_repository.get_job(stored_job.id)

    first.status = JobStatus.SEARCHING
    any_repository.put_job(first, expected_version=first.version)

    second.status = JobStatus.CANCELLED
    with pytest.raises(VersionConflictError):
        any_repository.put_job(second, expected_version=second.version)

    assert any_repository.get_job(stored_job.id).status == JobStatus.SEARCHING


def test_unconditional_write_is_last_writer_wins(any_repository, stored_job):
    job = any_repository.get_job(stored_job.id)
    job.status = JobStatus.SEARCHING
    any_repository.put_job(job)
    assert any_repository.get_job(job.id).status == JobStatus.SEARCHING


def test_indices_have_set_semantics(any_repository, stored_job):
    assert any_repository.list_job_ids_for_customer(CUSTOMER_ID) == {stored_job.id}

    any_repository.add_job_to_driver_index(DRIVER_ID, stored_job.id)
    any_repository.add_job_to_driver_index(DRIVER_ID, stored_job.id)
    assert any_repository.list_job_ids_for_driver(DRIVER_ID) == {stored_job.id}

    any_repository.remove_job_from_driver_index(DRIVER_ID, stored_job.id)
    any_repository.remove_job_from_driver_index(DRIVER_ID, stored_job.id)
    assert any_repository.list_job_ids_for_driver(DRIVER_ID) == set()


def test_in_memory_store_is_isolated_from_callers(stored_job):
    repository = InMemoryJobRepository()
    repository.put_job(stored_job)
    stored_job.offered_to_drivers.append(DRIVER_ID)
    assert repository.get_job(stored_job.id).offered_to_drivers == []


def test_sqlite_survives_reopen(tmp_path, directory, clock, accra_request):
    path = str(tmp_path / "jobs.db")
    engine = DispatchEngine(SqliteJobRepository(path), directory, clock=clock)
    job = engine.create_job(accra_request)
    job = engine.assign_driver(job.id, DRIVER_ID)

    reopened = SqliteJobRepository(path)
    loaded = reopened.get_job(job.id)
    assert loaded == job
    assert loaded.accepted_at == clock.now
    assert reopened.list_job_ids_for_driver(DRIVER_ID) == {job.id}
