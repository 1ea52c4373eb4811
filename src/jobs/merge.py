# src/jobs/merge.py — v1
"""Rebuild logical batch jobs from flat storage rows.

Storage holds one row per (job, query). Job-level fields repeat on every
row of a job, so any row of a group can stand for the job. Query keys are
folded in row order; a repeated key in one group is data corruption and
aborts the merge instead of overwriting.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from docworker.core.models import BatchJob
from docworker.jobs.errors import DuplicateQueryError


def fold_query(
    job_id: str, queries: dict[str, int | None], query: str, count: int | None
) -> dict[str, int | None]:
    """Add one query to an ordered mapping, raising on collision."""
    if query in queries:
        raise DuplicateQueryError(job_id, query)
    queries[query] = count
    return queries


def merge_job_rows(rows: Iterable[Mapping[str, Any]]) -> list[BatchJob]:
    """Group rows by job id and fold their queries into BatchJob objects.

    Each row needs ``id``, ``query`` and ``result_count`` plus the job-level
    fields of BatchJob (``project``, ``name``, ``description``,
    ``created_at``, ``state``, ``total_result_count``, ``published``,
    ``owner``).

    Returns:
        Jobs sorted by creation date, newest first. Jobs sharing a date keep
        the order in which their first row appeared.

    Raises:
        DuplicateQueryError: If one job has the same query on two rows.
    """
    groups: dict[str, list[Mapping[str, Any]]] = {}
    for row in rows:
        groups.setdefault(row["id"], []).append(row)

    jobs: list[BatchJob] = []
    for job_id, group in groups.items():
        head = group[0]
        queries: dict[str, int | None] = {}
        for row in group:
            fold_query(job_id, queries, row["query"], row["result_count"])
        jobs.append(
            BatchJob(
                id=job_id,
                project=head["project"],
                name=head["name"],
                description=head["description"],
                queries=queries,
                created_at=head["created_at"],
                state=head["state"],
                total_result_count=head["total_result_count"],
                published=bool(head["published"]),
                owner=head["owner"],
            )
        )

    jobs.sort(key=lambda job: job.created_at, reverse=True)
    return jobs
