# src/index/index_factory.py — v1
"""Factory: instantiate the document index from configuration."""

from __future__ import annotations

import logging

from docworker.config.settings import Settings
from docworker.index.base_index import BaseDocumentIndex

logger = logging.getLogger(__name__)


class UnsupportedIndexError(ValueError):
    """Raised when an index backend is not supported."""


def create_document_index(settings: Settings | None = None) -> BaseDocumentIndex:
    """Instantiate the configured document index.

    Args:
        settings: Application settings (INDEX_BACKEND). Defaults to memory.

    Raises:
        UnsupportedIndexError: If the backend is not supported.
    """
    backend = "memory" if settings is None else settings.index_backend

    if backend == "memory":
        from docworker.index.memory_index import MemoryDocumentIndex
        return MemoryDocumentIndex()

    if backend == "qdrant" and settings is not None:
        from docworker.index.qdrant_index import QdrantDocumentIndex
        if settings.index_url:
            return QdrantDocumentIndex(
                url=settings.index_url, api_key=settings.index_api_key or None
            )
        return QdrantDocumentIndex(path=str(settings.index_path.expanduser()))

    raise UnsupportedIndexError(
        f"Unsupported index backend: {backend!r}. Available: memory, qdrant"
    )
