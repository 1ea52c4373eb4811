# src/jobs/errors.py — v1
"""Errors raised by the job store and the batch executor."""

from __future__ import annotations


class JobStoreError(Exception):
    """A job store operation failed; multi-table writes were rolled back."""


class DuplicateQueryError(JobStoreError):
    """Two storage rows of the same job carry the same query."""

    def __init__(self, job_id: str, query: str) -> None:
        self.job_id = job_id
        self.query = query
        super().__init__(f"Duplicate query {query!r} in batch job {job_id}")


class UnauthorizedUserError(JobStoreError):
    """A user asked for results of a job they cannot see."""

    def __init__(self, job_id: str, owner: str, requester: str) -> None:
        self.job_id = job_id
        self.owner = owner
        self.requester = requester
        super().__init__(
            f"user {requester} requested results for batch job {job_id} "
            f"that belongs to user {owner}"
        )


class InvalidStateTransitionError(JobStoreError):
    """A job was asked to move backward or out of a terminal state."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"batch job {job_id} cannot move from {current} to {requested}"
        )


class JobNotFoundError(JobStoreError):
    """The job, or the query within it, no longer exists."""

    def __init__(self, job_id: str, query: str) -> None:
        self.job_id = job_id
        self.query = query
        super().__init__(f"batch job {job_id} has no query {query!r}")
