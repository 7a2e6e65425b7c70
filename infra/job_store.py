import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from datetime import datetime

from core.errors import NotFoundError, StorageError
from core.job import Job, JobPatch
from core.lifecycle import apply_patch


class JobStore(ABC):
    """
    Abstract persistence interface for Jobs.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def create(self, job: Job) -> None:
        """Persist a newly created job."""
        raise NotImplementedError

    @abstractmethod
    def get(self, job_id: str) -> Optional[Job]:
        raise NotImplementedError

    @abstractmethod
    def update(self, job: Job) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, job_id: str) -> None:
        """Remove the job if present. Unknown ids are not an error."""
        raise NotImplementedError

    @abstractmethod
    def list(self) -> List[Job]:
        """All jobs, newest `created_at` first."""
        raise NotImplementedError

    def patch(
        self,
        job_id: str,
        patch: JobPatch,
        now: Optional[datetime] = None,
    ) -> Job:
        """
        Read-modify-write a single job.

        Raises NotFoundError when the id is unknown; nothing is written
        in that case.
        """
        with self._lock:
            previous = self.get(job_id)
            if previous is None:
                raise NotFoundError(job_id)

            if patch.is_empty():
                return previous

            job = apply_patch(previous, patch, now)
            self.update(job)
            return job

    def close(self) -> None:
        pass


class InMemoryJobStore(JobStore):
    """
    In-memory JobStore.

    Not persistent. Same contract as the SQLite store.
    """

    def __init__(self):
        super().__init__()
        self._jobs: Dict[str, Job] = {}
        self._seq: Dict[str, int] = {}
        self._counter = 0

    def create(self, job: Job) -> None:
        with self._lock:
            if job.id in self._jobs:
                raise StorageError(f"Job {job.id} already exists")

            self._counter += 1
            self._jobs[job.id] = job
            self._seq[job.id] = self._counter

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def update(self, job: Job) -> None:
        with self._lock:
            if job.id not in self._jobs:
                raise NotFoundError(job.id)

            self._jobs[job.id] = job

    def delete(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)
            self._seq.pop(job_id, None)

    def list(self) -> List[Job]:
        return sorted(
            self._jobs.values(),
            key=lambda j: (j.created_at, self._seq[j.id]),
            reverse=True,
        )
