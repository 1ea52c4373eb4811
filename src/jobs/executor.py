# src/jobs/executor.py — v1
"""Batch executor — run queued batch jobs against the document index.

For each QUEUED job: move it to RUNNING, run its queries in insertion
order, store each query's results, then finish in SUCCESS. A query that
still fails after its retries, or any store error, finishes the job in
FAILURE. Jobs only ever move forward through the state machine.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docworker.core.models import BatchJob, JobState
from docworker.jobs.errors import (
    InvalidStateTransitionError,
    JobNotFoundError,
    JobStoreError,
)
from docworker.jobs.retry import RetryConfig, with_retry
from docworker.logging.context import set_job_context

if TYPE_CHECKING:
    from docworker.config.settings import Settings
    from docworker.index.base_index import BaseDocumentIndex
    from docworker.jobs.base_job_store import BaseJobStore

logger = logging.getLogger(__name__)

DEFAULT_RESULTS_PER_QUERY = 100


@dataclass
class JobRun:
    """Outcome of one executed batch job."""

    job_id: str
    state: JobState
    queries_run: int = 0
    results: int = 0
    duration_ms: int = 0
    error: str | None = None


class BatchExecutor:
    """Drive queued batch jobs through RUNNING to SUCCESS or FAILURE.

    Args:
        job_store: Store providing queued jobs and persisting results.
        index: Document index the queries run against.
        results_per_query: Max documents stored per query.
        retry: Retry policy for transient index failures.
    """

    def __init__(
        self,
        job_store: BaseJobStore,
        index: BaseDocumentIndex,
        results_per_query: int = DEFAULT_RESULTS_PER_QUERY,
        retry: RetryConfig | None = None,
    ) -> None:
        self._store = job_store
        self._index = index
        self._results_per_query = results_per_query
        self._retry = retry or RetryConfig()

    @classmethod
    def from_settings(
        cls, settings: Settings, job_store: BaseJobStore, index: BaseDocumentIndex
    ) -> BatchExecutor:
        return cls(
            job_store,
            index,
            results_per_query=settings.batch_results_per_query,
            retry=RetryConfig(
                max_retries=settings.batch_query_max_retries,
                base_delay_s=settings.batch_query_retry_delay_s,
            ),
        )

    async def run_queued(self) -> list[JobRun]:
        """Execute every job currently queued, newest first."""
        jobs = await self._store.get_queued()
        if jobs:
            logger.info("Found %d queued batch jobs", len(jobs))
        return [await self.execute(job) for job in jobs]

    async def execute(self, job: BatchJob) -> JobRun:
        """Run one job to a terminal state."""
        set_job_context(job.id)
        start = time.monotonic()
        run = JobRun(job_id=job.id, state="RUNNING")
        try:
            started = await self._store.set_state(job.id, "RUNNING")
        except JobStoreError as e:
            logger.warning("Cannot start batch job %s: %s", job.id, e)
            set_job_context(None)
            return JobRun(job_id=job.id, state=job.state, error=str(e))
        if not started:
            logger.warning("Batch job %s was deleted before it started", job.id)
            set_job_context(None)
            return JobRun(job_id=job.id, state=job.state, error="job not found")

        try:
            logger.info(
                "Running batch job %s (%d queries) on %s",
                job.id, len(job.queries), job.project,
            )
            for query in job.queries:
                documents = await with_retry(
                    self._index.search,
                    job.project,
                    query,
                    self._results_per_query,
                    query=query,
                    config=self._retry,
                )
                await self._store.save_results(job.id, query, documents)
                run.queries_run += 1
                run.results += len(documents)
            run.state = "SUCCESS"
        except JobNotFoundError as e:
            logger.warning("Batch job %s was deleted while running: %s", job.id, e)
            run.state = "FAILURE"
            run.error = str(e)
        except Exception as e:
            logger.error("Batch job %s failed", job.id, exc_info=True)
            run.state = "FAILURE"
            run.error = str(e)
        finally:
            set_job_context(None)

        await self._finish(run)
        run.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Batch job %s finished %s: %d queries, %d results in %d ms",
            job.id, run.state, run.queries_run, run.results, run.duration_ms,
        )
        return run

    async def _finish(self, run: JobRun) -> None:
        """Store the final state of ``run``; never raises a store error."""
        try:
            finished = await self._store.set_state(run.job_id, run.state)
        except InvalidStateTransitionError as e:
            logger.warning(
                "Batch job %s moved to %s while running, keeping it",
                run.job_id, e.current,
            )
            run.state = e.current
            run.error = run.error or str(e)
            return
        except JobStoreError as e:
            logger.error("Cannot finish batch job %s as %s: %s", run.job_id, run.state, e)
            run.error = run.error or str(e)
            return
        if not finished:
            run.error = run.error or "job not found"

    async def run_forever(
        self, stop: asyncio.Event, poll_interval_s: float = 5.0
    ) -> None:
        """Poll for queued jobs until ``stop`` is set."""
        logger.info("Batch executor started (poll every %.1fs)", poll_interval_s)
        while not stop.is_set():
            try:
                await self.run_queued()
            except JobStoreError:
                logger.error("Batch executor poll failed", exc_info=True)
            try:
                await asyncio.wait_for(stop.wait(), timeout=poll_interval_s)
            except asyncio.TimeoutError:
                continue
        logger.info("Batch executor stopped")
