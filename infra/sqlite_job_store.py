import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from core.errors import NotFoundError, StorageError
from core.job import Job, JobPatch, format_ts
from infra.db import connect, transaction
from infra.job_store import JobStore
from infra.migrations import migrate

logger = logging.getLogger(__name__)

COLUMNS = (
    "id",
    "title",
    "company",
    "url",
    "source",
    "notes",
    "status",
    "createdAt",
    "appliedAt",
    "hiddenAt",
)


def _row_params(job: Job) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "url": job.url,
        "source": job.source,
        "notes": job.notes,
        "status": job.status.value,
        "createdAt": format_ts(job.created_at),
        "appliedAt": format_ts(job.applied_at),
        "hiddenAt": format_ts(job.hidden_at),
    }


class SQLiteJobStore(JobStore):
    """
    SQLite-backed JobStore.

    Properties:
    - one connection, opened here and released by `close()`
    - schema brought up to date on open
    - every operation is one transaction, serialized by the store lock
    """

    def __init__(self, db_path: str = "jobs.db"):
        super().__init__()
        self.db_path = str(db_path)

        try:
            self._conn = connect(self.db_path)
            version = migrate(self._conn)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open job database {self.db_path}: {e}") from e

        logger.info(f"Opened job database {self.db_path} (schema v{version})")

    @contextmanager
    def _tx(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with transaction(self._conn) as conn:
                    yield conn
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def create(self, job: Job) -> None:
        placeholders = ", ".join(f":{c}" for c in COLUMNS)

        with self._tx() as conn:
            try:
                conn.execute(
                    f"INSERT INTO jobs ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    _row_params(job),
                )
            except sqlite3.IntegrityError:
                raise StorageError(f"Job {job.id} already exists")

    def get(self, job_id: str) -> Optional[Job]:
        with self._tx() as conn:
            row = conn.execute(
                "SELECT * FROM jobs WHERE id = ?",
                (job_id,),
            ).fetchone()

        if not row:
            return None

        return Job.from_dict(row)

    def update(self, job: Job) -> None:
        # createdAt is deliberately absent: it never changes
        with self._tx() as conn:
            cur = conn.execute(
                """
                UPDATE jobs SET
                    title = :title,
                    company = :company,
                    url = :url,
                    source = :source,
                    notes = :notes,
                    status = :status,
                    appliedAt = :appliedAt,
                    hiddenAt = :hiddenAt
                WHERE id = :id
                """,
                _row_params(job),
            )

            if cur.rowcount == 0:
                raise NotFoundError(job.id)

    def patch(
        self,
        job_id: str,
        patch: JobPatch,
        now: Optional[datetime] = None,
    ) -> Job:
        # hold one transaction across the read and the write
        with self._tx():
            return super().patch(job_id, patch, now)

    def delete(self, job_id: str) -> None:
        with self._tx() as conn:
            conn.execute("DELETE FROM jobs WHERE id = ?", (job_id,))

    def list(self) -> List[Job]:
        with self._tx() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM jobs
                ORDER BY createdAt DESC, rowid DESC
                """
            ).fetchall()

        return [Job.from_dict(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
