# src/index/memory_index.py — v1
"""In-process document index (INDEX_BACKEND=memory).

Keeps documents and entities in dictionaries. Suitable for tests and
single-process runs; nothing survives a restart.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from docworker.core.models import Document, NamedEntity
from docworker.index.base_index import BaseDocumentIndex

logger = logging.getLogger(__name__)


class MemoryDocumentIndex(BaseDocumentIndex):
    """Dictionary-backed document index."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Document]] = {}
        self._entities: dict[str, dict[str, NamedEntity]] = {}

    async def add(self, index: str, document: Document) -> None:
        self._documents.setdefault(index, {})[document.id] = document

    async def get(
        self, index: str, doc_id: str, routing: str | None = None
    ) -> Document | None:
        doc = self._documents.get(index, {}).get(doc_id)
        if doc is None:
            return None
        if routing is not None and doc.root != routing:
            return None
        return doc

    async def bulk_add(
        self,
        index: str,
        pipeline_type: str,
        entities: Sequence[NamedEntity],
        parent: Document,
    ) -> None:
        stored = self._entities.setdefault(index, {})
        for entity in entities:
            stored[entity.id] = entity
        logger.debug(
            "Stored %d %s entities for document %s",
            len(entities), pipeline_type, parent.id,
        )

    async def search(self, index: str, query: str, size: int) -> list[Document]:
        needle = query.lower()
        hits = [
            doc for doc in self._documents.get(index, {}).values()
            if needle in doc.content.lower()
        ]
        return hits[:size] if size > 0 else hits

    async def extracted_paths(self, index: str, paths: Sequence[str]) -> set[str]:
        known = {doc.path for doc in self._documents.get(index, {}).values()}
        return {p for p in paths if p in known}

    def entities(self, index: str, document_id: str | None = None) -> list[NamedEntity]:
        """Entities stored in ``index``, optionally for one document."""
        found = list(self._entities.get(index, {}).values())
        if document_id is not None:
            found = [e for e in found if e.document_id == document_id]
        return found

    @property
    def provider_name(self) -> str:
        return "memory"
