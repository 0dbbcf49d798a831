"""
Purpose: Durable JobRepository backed by SQLite.
What it does:

- jobs(id, version, payload): full Job record serialized as JSON
- job_index(kind, owner_id, job_id): customer/driver secondary indices with
  set semantics (primary key makes re-adds no-ops)

Conditional writes use `UPDATE ... WHERE version = ?` so two writers racing on
the same job cannot both succeed.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from jobs.models import Job
from jobs.repository import JobRepository, RepositoryError, VersionConflictError

logger = logging.getLogger(__name__)

CUSTOMER_INDEX = "customer"
DRIVER_INDEX = "driver"


class SqliteJobRepository(JobRepository):

    def __init__(self, db_path: str = "dispatch.db"):
        self.db_path = db_path
        self.init_db()

    def get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_connection()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Initialize database with schema"""
        try:
            with self._session() as conn:
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS jobs (
                        id TEXT PRIMARY KEY,
                        version INTEGER NOT NULL,
                        payload TEXT NOT NULL
                    )
                ''')
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS job_index (
                        kind TEXT NOT NULL,
                        owner_id TEXT NOT NULL,
                        job_id TEXT NOT NULL,
                        PRIMARY KEY (kind, owner_id, job_id)
                    )
                ''')
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to initialize job store at {self.db_path}: {e}") from e

    def get_job(self, job_id: str) -> Optional[Job]:
        try:
            with self._session() as conn:
                row = conn.execute(
                    'SELECT version, payload FROM jobs WHERE id = ?', (job_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to read job {job_id}: {e}") from e

        if row is None:
            return None

        job = Job.from_dict(json.loads(row['payload']))
        job.version = row['version']
        return job

    def put_job(self, job: Job, expected_version: Optional[int] = None) -> None:
        try:
            conn = self.get_connection()
            try:
                # Take the write lock up front so the version check and write are atomic
                conn.execute('BEGIN IMMEDIATE')
                row = conn.execute(
                    'SELECT version FROM jobs WHERE id = ?', (job.id,)
                ).fetchone()
                current_version = row['version'] if row is not None else 0

                if expected_version is not None and current_version != expected_version:
                    conn.rollback()
                    raise VersionConflictError(job.id, expected_version, current_version)

                new_version = current_version + 1
                payload = job.to_dict()
                payload['version'] = new_version

                if row is None:
                    conn.execute(
                        'INSERT INTO jobs (id, version, payload) VALUES (?, ?, ?)',
                        (job.id, new_version, json.dumps(payload)),
                    )
                else:
                    conn.execute(
                        'UPDATE jobs SET version = ?, payload = ? WHERE id = ? AND version = ?',
                        (new_version, json.dumps(payload), job.id, current_version),
                    )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to write job {job.id}: {e}") from e

        job.version = new_version

    def _list_index(self, kind: str, owner_id: str) -> Set[str]:
        try:
            with self._session() as conn:
                rows = conn.execute(
                    'SELECT job_id FROM job_index WHERE kind = ? AND owner_id = ?',
                    (kind, owner_id),
                ).fetchall()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to read {kind} index for {owner_id}: {e}") from e
        return {row['job_id'] for row in rows}

    def _add_to_index(self, kind: str, owner_id: str, job_id: str) -> None:
        try:
            with self._session() as conn:
                conn.execute(
                    'INSERT OR IGNORE INTO job_index (kind, owner_id, job_id) VALUES (?, ?, ?)',
                    (kind, owner_id, job_id),
                )
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to index job {job_id} for {owner_id}: {e}") from e

    def list_job_ids_for_customer(self, customer_id: str) -> Set[str]:
        return self._list_index(CUSTOMER_INDEX, customer_id)

    def list_job_ids_for_driver(self, driver_id: str) -> Set[str]:
        return self._list_index(DRIVER_INDEX, driver_id)

    def add_job_to_customer_index(self, customer_id: str, job_id: str) -> None:
        self._add_to_index(CUSTOMER_INDEX, customer_id, job_id)

    def add_job_to_driver_index(self, driver_id: str, job_id: str) -> None:
        self._add_to_index(DRIVER_INDEX, driver_id, job_id)

    def remove_job_from_driver_index(self, driver_id: str, job_id: str) -> None:
        try:
            with self._session() as conn:
                conn.execute(
                    'DELETE FROM job_index WHERE kind = ? AND owner_id = ? AND job_id = ?',
                    (DRIVER_INDEX, driver_id, job_id),
                )
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to unindex job {job_id} for {driver_id}: {e}") from e
        logger.debug("Removed job %s from driver %s index", job_id, driver_id)
