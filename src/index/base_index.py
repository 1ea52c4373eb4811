# src/index/base_index.py — v1
"""Abstract document index interface.

The index holds documents (by project) and the named entities extracted
from them. Workers read documents and write entities through it, the queue
filter asks it which paths are already indexed, and the batch executor runs
search queries against it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from docworker.core.models import Document, NamedEntity


class DocumentIndexError(Exception):
    """The index could not serve a request."""


class BaseDocumentIndex(ABC):
    """Unified interface for document index backends."""

    @abstractmethod
    async def add(self, index: str, document: Document) -> None:
        """Insert or replace a document."""

    @abstractmethod
    async def get(
        self, index: str, doc_id: str, routing: str | None = None
    ) -> Document | None:
        """Fetch a document by id.

        ``routing`` is the root document id; when given, a document stored
        under another root is not found.
        """

    @abstractmethod
    async def bulk_add(
        self,
        index: str,
        pipeline_type: str,
        entities: Sequence[NamedEntity],
        parent: Document,
    ) -> None:
        """Store entities extracted by ``pipeline_type`` from ``parent``."""

    @abstractmethod
    async def search(self, index: str, query: str, size: int) -> list[Document]:
        """Documents whose content matches ``query``, at most ``size``."""

    @abstractmethod
    async def extracted_paths(self, index: str, paths: Sequence[str]) -> set[str]:
        """Subset of ``paths`` already present in the index."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (memory, qdrant)."""

    def close(self) -> None:
        """Release client resources."""
