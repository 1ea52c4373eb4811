# src/jobs/base_job_store.py — v1
"""Abstract batch job store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from docworker.core.models import BatchJob, Document, JobState, ResultQuery, SearchResultRow


class BaseJobStore(ABC):
    """Durable storage for batch jobs, their queries and their results.

    Operations touching several tables (save, delete, delete_all) are
    transactional. save_results and set_state touch one job each and are
    safe to retry.
    """

    @abstractmethod
    async def save(self, owner: str, job: BatchJob) -> bool:
        """Insert a job with its queries. True if at least one query was written."""

    @abstractmethod
    async def save_results(
        self, job_id: str, query: str, documents: Sequence[Document]
    ) -> bool:
        """Store one result row per document, positioned from 0.

        Raises JobNotFoundError when the job has no such query.
        """

    @abstractmethod
    async def set_state(self, job_id: str, state: JobState) -> bool:
        """Move a job to ``state``. False if the job does not exist."""

    @abstractmethod
    async def delete(self, owner: str, job_id: str) -> bool:
        """Delete one job owned by ``owner`` with its queries and results."""

    @abstractmethod
    async def delete_all(self, owner: str) -> bool:
        """Delete every job owned by ``owner``."""

    @abstractmethod
    async def get_jobs(self, owner: str) -> list[BatchJob]:
        """Jobs owned by ``owner`` plus published jobs, newest first."""

    @abstractmethod
    async def get_job(self, owner: str, job_id: str) -> BatchJob | None:
        """One job visible to ``owner``, or None."""

    @abstractmethod
    async def get_queued(self) -> list[BatchJob]:
        """Jobs waiting for the executor, newest first."""

    @abstractmethod
    async def get_results(
        self, owner: str, job_id: str, query: ResultQuery | None = None
    ) -> list[SearchResultRow]:
        """Result rows of a job, checked against ``owner``."""

    def close(self) -> None:
        """Release storage resources."""
