"""
Purpose: Persistence contract for Job records + an in-memory reference backend.
What it does:

JobRepository is the abstract key-value store the dispatch engine depends on:
- full-record reads/writes keyed by job ID
- set-semantics secondary indices (jobs per customer, jobs per driver)

Writes are compare-and-set when the caller passes `expected_version`:
the stored record's version must still match, otherwise VersionConflictError.
Every successful write bumps `job.version`.

Rule: No lifecycle rules here. Backends store what they are given.
"""

from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional, Set

from jobs.models import Job


class RepositoryError(Exception):
    """Raised when the backing store cannot be read or written."""
    pass


class VersionConflictError(RepositoryError):
    """Raised when a conditional write finds the record was changed underneath it."""

    def __init__(self, job_id: str, expected_version: int, actual_version: Optional[int]):
        super().__init__(
            f"Job {job_id} version mismatch: expected {expected_version}, found {actual_version}"
        )
        self.job_id = job_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class JobRepository(ABC):

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Job]:
        ...

    @abstractmethod
    def put_job(self, job: Job, expected_version: Optional[int] = None) -> None:
        """
        Overwrite the full record. With `expected_version`, only succeed if the
        stored version equals it (a missing record counts as version 0).
        On success `job.version` is advanced to the stored version.
        """
        ...

    @abstractmethod
    def list_job_ids_for_customer(self, customer_id: str) -> Set[str]:
        ...

    @abstractmethod
    def list_job_ids_for_driver(self, driver_id: str) -> Set[str]:
        ...

    @abstractmethod
    def add_job_to_customer_index(self, customer_id: str, job_id: str) -> None:
        ...

    @abstractmethod
    def add_job_to_driver_index(self, driver_id: str, job_id: str) -> None:
        ...

    @abstractmethod
    def remove_job_from_driver_index(self, driver_id: str, job_id: str) -> None:
        ...


class InMemoryJobRepository(JobRepository):
    """
    Process-local backend for tests and simulations.
    Stores deep copies so callers can never mutate the stored record in place.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._customer_index: Dict[str, Set[str]] = {}
        self._driver_index: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job is not None else None

    def put_job(self, job: Job, expected_version: Optional[int] = None) -> None:
        with self._lock:
            stored = self._jobs.get(job.id)
            current_version = stored.version if stored is not None else 0

            if expected_version is not None and current_version != expected_version:
                raise VersionConflictError(job.id, expected_version, current_version)

            job.version = current_version + 1
            self._jobs[job.id] = copy.deepcopy(job)

    def list_job_ids_for_customer(self, customer_id: str) -> Set[str]:
        with self._lock:
            return set(self._customer_index.get(customer_id, set()))

    def list_job_ids_for_driver(self, driver_id: str) -> Set[str]:
        with self._lock:
            return set(self._driver_index.get(driver_id, set()))

    def add_job_to_customer_index(self, customer_id: str, job_id: str) -> None:
        with self._lock:
            self._customer_index.setdefault(customer_id, set()).add(job_id)

    def add_job_to_driver_index(self, driver_id: str, job_id: str) -> None:
        with self._lock:
            self._driver_index.setdefault(driver_id, set()).add(job_id)

    def remove_job_from_driver_index(self, driver_id: str, job_id: str) -> None:
        with self._lock:
            self._driver_index.get(driver_id, set()).discard(job_id)
