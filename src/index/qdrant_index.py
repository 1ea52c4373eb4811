# src/index/qdrant_index.py — v1
"""Qdrant document index adapter (INDEX_BACKEND=qdrant).

Documents and entities live as payload-only points: one collection per
project for documents, one ``<project>_entities`` collection for entities.
Requires: pip install qdrant-client.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from docworker.core.models import Document, NamedEntity
from docworker.index.base_index import BaseDocumentIndex, DocumentIndexError

logger = logging.getLogger(__name__)

_SCROLL_PAGE = 256


def point_id(key: str) -> str:
    """Qdrant requires UUID or int ids; use a deterministic UUID from the key."""
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, key))


def entity_collection(index: str) -> str:
    return f"{index}_entities"


class QdrantDocumentIndex(BaseDocumentIndex):
    """Document index backed by Qdrant."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ) -> None:
        try:
            from qdrant_client import QdrantClient, models
        except ImportError as e:
            raise ImportError(
                "qdrant-client package required: pip install qdrant-client"
            ) from e

        self._models = models
        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            self._client = QdrantClient(":memory:")
        self._known_collections: set[str] = set()

    def _ensure_collection(self, collection: str) -> None:
        if collection in self._known_collections:
            return
        if not self._client.collection_exists(collection_name=collection):
            self._client.create_collection(collection_name=collection, vectors_config={})
            logger.info("Created Qdrant collection %s", collection)
        self._known_collections.add(collection)

    def _scroll(
        self, collection: str, scroll_filter: Any, limit: int | None, payload: Any = True
    ) -> list[Any]:
        """Scroll matching points page by page, up to ``limit`` (None = all)."""
        records: list[Any] = []
        offset = None
        while True:
            page_size = _SCROLL_PAGE if limit is None else min(_SCROLL_PAGE, limit - len(records))
            if page_size <= 0:
                break
            page, offset = self._client.scroll(
                collection_name=collection,
                scroll_filter=scroll_filter,
                limit=page_size,
                offset=offset,
                with_payload=payload,
                with_vectors=False,
            )
            records.extend(page)
            if offset is None:
                break
        return records

    async def add(self, index: str, document: Document) -> None:
        point = self._models.PointStruct(
            id=point_id(document.id),
            vector={},
            payload=document.model_dump(mode="json"),
        )
        try:
            self._ensure_collection(index)
            self._client.upsert(collection_name=index, points=[point])
        except Exception as e:
            raise DocumentIndexError(f"Cannot add document {document.id} to {index}: {e}") from e

    async def get(
        self, index: str, doc_id: str, routing: str | None = None
    ) -> Document | None:
        try:
            if not self._client.collection_exists(collection_name=index):
                return None
            records = self._client.retrieve(
                collection_name=index, ids=[point_id(doc_id)], with_payload=True
            )
        except Exception as e:
            raise DocumentIndexError(f"Cannot get document {doc_id} from {index}: {e}") from e
        if not records:
            return None
        doc = Document(**records[0].payload)
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
        if not entities:
            return
        collection = entity_collection(index)
        points = []
        for entity in entities:
            payload = entity.model_dump(mode="json")
            payload["pipeline"] = pipeline_type
            points.append(
                self._models.PointStruct(id=point_id(entity.id), vector={}, payload=payload)
            )
        try:
            self._ensure_collection(collection)
            self._client.upsert(collection_name=collection, points=points)
        except Exception as e:
            raise DocumentIndexError(
                f"Cannot store entities of document {parent.id} in {collection}: {e}"
            ) from e

    async def search(self, index: str, query: str, size: int) -> list[Document]:
        m = self._models
        content_filter = m.Filter(
            must=[m.FieldCondition(key="content", match=m.MatchText(text=query))]
        )
        try:
            if not self._client.collection_exists(collection_name=index):
                return []
            records = self._scroll(index, content_filter, size if size > 0 else None)
        except Exception as e:
            raise DocumentIndexError(f"Search {query!r} failed on {index}: {e}") from e
        return [Document(**record.payload) for record in records]

    async def extracted_paths(self, index: str, paths: Sequence[str]) -> set[str]:
        if not paths:
            return set()
        m = self._models
        path_filter = m.Filter(
            must=[m.FieldCondition(key="path", match=m.MatchAny(any=list(paths)))]
        )
        try:
            if not self._client.collection_exists(collection_name=index):
                return set()
            records = self._scroll(index, path_filter, None, payload=["path"])
        except Exception as e:
            raise DocumentIndexError(f"Path lookup failed on {index}: {e}") from e
        return {record.payload["path"] for record in records}

    @property
    def provider_name(self) -> str:
        return "qdrant"

    def close(self) -> None:
        """Close the Qdrant client."""
        self._client.close()
