# src/logging/context.py — v1
"""Contextual logging support — attach job_id, document_id, worker to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Read by the formatters on every record.
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_worker: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    job_id: str | None = None
    document_id: str | None = None
    worker: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        job_id=_job_id.get(),
        document_id=_document_id.get(),
        worker=_worker.get(),
    )


def set_job_context(job_id: str | None) -> None:
    """Set job-level context (called once per executed batch job)."""
    _job_id.set(job_id)


def set_document_context(document_id: str | None) -> None:
    """Set document-level context (called once per processed document)."""
    _document_id.set(document_id)


def set_worker_context(worker: str | None) -> None:
    """Name the worker loop owning the current task."""
    _worker.set(worker)


def clear_context() -> None:
    """Reset all context variables."""
    _job_id.set(None)
    _document_id.set(None)
    _worker.set(None)
