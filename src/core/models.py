# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Literal

from pydantic import BaseModel, Field

# === BATCH JOBS ===

JobState = Literal["QUEUED", "RUNNING", "SUCCESS", "FAILURE"]

SortOrder = Literal["asc", "desc"]


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


class BatchJob(BaseModel):
    """A batch of search queries run against one project index."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project: str
    name: str | None = None
    description: str | None = None
    # query -> result count; None until results were stored for the query
    queries: dict[str, int | None] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    state: JobState = "QUEUED"
    total_result_count: int = 0
    published: bool = False
    owner: str | None = None

    @classmethod
    def create(
        cls,
        project: str,
        queries: list[str],
        name: str | None = None,
        description: str | None = None,
        published: bool = False,
        owner: str | None = None,
    ) -> BatchJob:
        """New QUEUED job; repeated query strings keep their first position."""
        return cls(
            project=project,
            name=name,
            description=description,
            queries={q: None for q in queries},
            published=published,
            owner=owner,
        )


class SearchResultRow(BaseModel):
    """One document returned for one query of a batch job."""

    query: str
    document_id: str
    root_id: str
    document_name: str
    creation_date: datetime | None = None
    content_type: str | None = None
    content_length: int | None = None
    position: int


class ResultQuery(BaseModel):
    """Paging, sorting and query filtering for batch job results.

    ``size = 0`` means no limit. Without ``sort`` results come back by query
    text then position.
    """

    queries: list[str] | None = None
    sort: str | None = None
    order: SortOrder = "asc"
    from_: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)

    @property
    def has_filtered_queries(self) -> bool:
        return bool(self.queries)

    @property
    def is_sorted(self) -> bool:
        return self.sort is not None


# === DOCUMENTS & ENTITIES ===


class Document(BaseModel):
    """A document as stored in the index."""

    id: str
    path: str
    project: str
    content: str = ""
    language: str = "ENGLISH"
    root_id: str | None = None
    content_type: str | None = None
    content_length: int | None = None
    creation_date: datetime | None = None

    @property
    def name(self) -> str:
        return PurePath(self.path).name

    @property
    def root(self) -> str:
        """Root document id; a top-level document is its own root."""
        return self.root_id or self.id


EntityCategory = Literal["PERSON", "ORGANIZATION", "LOCATION", "EMAIL"]


class Annotation(BaseModel):
    """Character span tagged by a pipeline, ``end`` exclusive."""

    begin: int = Field(ge=0)
    end: int
    category: EntityCategory


class Annotations(BaseModel):
    """Structured output of one pipeline run over one document."""

    document_id: str
    language: str
    pipeline: str
    items: list[Annotation] = Field(default_factory=list)

    def add(self, begin: int, end: int, category: EntityCategory) -> None:
        self.items.append(Annotation(begin=begin, end=end, category=category))


class NamedEntity(BaseModel):
    """An entity mention extracted from a document."""

    id: str
    mention: str
    mention_norm: str
    offset: int
    category: EntityCategory
    extractor: str
    document_id: str
    root_id: str
    language: str

    @staticmethod
    def entity_id(
        document_id: str, offset: int, mention_norm: str, category: str
    ) -> str:
        """Stable id so re-extracting a document overwrites, not duplicates."""
        raw = f"{document_id}|{offset}|{mention_norm}|{category}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()
