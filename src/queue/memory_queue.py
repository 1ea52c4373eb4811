# src/queue/memory_queue.py — v1
"""In-process document queues (QUEUE_BACKEND=memory).

Queues sharing a MemoryQueueRegistry see each other by name, so rename and
publish behave as they do on a shared server.
"""

from __future__ import annotations

import os
import threading
import uuid
from collections.abc import AsyncIterator

from docworker.queue.base_queue import BaseDocumentQueue, normalize_path


class MemoryQueueRegistry:
    """Named lists guarded by one lock."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.lists: dict[str, list[str]] = {}

    def names(self) -> list[str]:
        with self.lock:
            return [name for name, items in self.lists.items() if items]


_DEFAULT_REGISTRY = MemoryQueueRegistry()


class MemoryDocumentQueue(BaseDocumentQueue):
    """List-backed document queue."""

    def __init__(self, name: str, registry: MemoryQueueRegistry | None = None) -> None:
        self._name = name
        self._registry = registry or _DEFAULT_REGISTRY

    @property
    def name(self) -> str:
        return self._name

    async def size(self) -> int:
        with self._registry.lock:
            return len(self._registry.lists.get(self._name, []))

    async def push(self, *paths: str | os.PathLike[str]) -> int:
        with self._registry.lock:
            items = self._registry.lists.setdefault(self._name, [])
            items.extend(normalize_path(p) for p in paths)
            return len(items)

    async def pop(self) -> str | None:
        with self._registry.lock:
            items = self._registry.lists.get(self._name)
            if not items:
                return None
            path = items.pop(0)
            if not items:
                del self._registry.lists[self._name]
            return path

    async def iter_batches(self, batch_size: int) -> AsyncIterator[list[str]]:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        offset = 0
        while True:
            with self._registry.lock:
                batch = self._registry.lists.get(self._name, [])[offset:offset + batch_size]
            if not batch:
                return
            yield batch
            offset += len(batch)

    async def remove_duplicate_paths(self) -> int:
        with self._registry.lock:
            items = self._registry.lists.get(self._name, [])
            unique = list(dict.fromkeys(items))
            removed = len(items) - len(unique)
            if removed:
                self._registry.lists[self._name] = unique
            return removed

    def staging(self) -> MemoryDocumentQueue:
        return MemoryDocumentQueue(
            f"{self._name}:staging:{uuid.uuid4().hex}", self._registry
        )

    async def publish_to(self, target: BaseDocumentQueue) -> None:
        with self._registry.lock:
            lists = self._registry.lists
            lists.pop(target.name, None)
            items = lists.pop(self._name, None)
            if items:
                lists[target.name] = items
        self._name = target.name

    async def delete(self) -> None:
        with self._registry.lock:
            self._registry.lists.pop(self._name, None)

    async def rename(self, new_name: str) -> None:
        with self._registry.lock:
            lists = self._registry.lists
            lists.pop(new_name, None)
            items = lists.pop(self._name, None)
            if items:
                lists[new_name] = items
        self._name = new_name
