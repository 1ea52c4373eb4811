# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides an in-memory job store, index and queue registry plus sample
documents and jobs. No external services; Redis, Qdrant and Neo4j are mocked
where they appear.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from docworker.core.models import BatchJob, Document
from docworker.index.memory_index import MemoryDocumentIndex
from docworker.jobs.sqlite_store import SqliteJobStore
from docworker.logging.context import clear_context
from docworker.queue.memory_queue import MemoryQueueRegistry

PROJECT = "local-datashare"


def make_document(doc_id: str, path: str | None = None, content: str = "", **overrides) -> Document:
    """Document in the default project."""
    fields = dict(
        id=doc_id,
        path=path or f"/data/{doc_id}.txt",
        project=PROJECT,
        content=content,
        content_type="text/plain",
        content_length=len(content),
        creation_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Document(**fields)


def make_job(*queries: str, minutes_ago: int = 0, **overrides) -> BatchJob:
    """QUEUED job created ``minutes_ago`` before a fixed instant."""
    created = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago)
    job = BatchJob.create(PROJECT, list(queries), **overrides)
    return job.model_copy(update={"created_at": created})


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
    logging.getLogger("docworker").handlers.clear()


@pytest.fixture
def job_store(tmp_path):
    store = SqliteJobStore(tmp_path / "jobs.db")
    yield store
    store.close()


@pytest.fixture
def memory_index() -> MemoryDocumentIndex:
    return MemoryDocumentIndex()


@pytest.fixture
def queue_registry() -> MemoryQueueRegistry:
    return MemoryQueueRegistry()
