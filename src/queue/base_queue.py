# src/queue/base_queue.py — v1
"""Abstract pending-document queue interface.

A queue is a named, durable FIFO of document paths. Its name is its
identity: readers find it by name, and the queue filter replaces a queue by
publishing a staging queue under the original name.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Path form used as queue identity for deduplication."""
    return os.path.normpath(os.fspath(path))


class BaseDocumentQueue(ABC):
    """Unified interface for document queue backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Current identity of the queue."""

    @abstractmethod
    async def size(self) -> int:
        """Number of queued paths."""

    @abstractmethod
    async def push(self, *paths: str | os.PathLike[str]) -> int:
        """Append normalized paths at the tail. Returns the new size."""

    @abstractmethod
    async def pop(self) -> str | None:
        """Remove and return the head path, None when empty."""

    @abstractmethod
    def iter_batches(self, batch_size: int) -> AsyncIterator[list[str]]:
        """Yield queued paths in order, ``batch_size`` at a time, without removing them."""

    @abstractmethod
    async def remove_duplicate_paths(self) -> int:
        """Keep the first occurrence of every path. Returns the number removed."""

    @abstractmethod
    def staging(self) -> BaseDocumentQueue:
        """New empty queue in the same backend under a fresh temporary name."""

    @abstractmethod
    async def publish_to(self, target: BaseDocumentQueue) -> None:
        """Atomically replace ``target`` with this queue's content.

        Readers of ``target.name`` see either the old content or the new
        one. An empty queue publishes as a deleted (empty) target. Afterwards
        this object carries ``target.name``.
        """

    @abstractmethod
    async def delete(self) -> None:
        """Remove every queued path."""

    @abstractmethod
    async def rename(self, new_name: str) -> None:
        """Move the queue to ``new_name``, replacing any queue there."""

    def close(self) -> None:
        """Release backend resources."""
