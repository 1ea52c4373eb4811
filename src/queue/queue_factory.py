# src/queue/queue_factory.py — v1
"""Factory for document queue instantiation."""

from __future__ import annotations

from docworker.config.settings import Settings
from docworker.queue.base_queue import BaseDocumentQueue


class UnsupportedQueueError(ValueError):
    """Raised when a queue backend is not supported."""


def create_document_queue(
    name: str, settings: Settings | None = None
) -> BaseDocumentQueue:
    """Open the queue called ``name`` on the configured backend.

    Args:
        name: Queue name, usually ``settings.user_queue_name(user)``.
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseDocumentQueue implementation.

    Raises:
        UnsupportedQueueError: If QUEUE_BACKEND is not supported.
    """
    backend = "memory" if settings is None else settings.queue_backend

    if backend == "memory":
        from docworker.queue.memory_queue import MemoryDocumentQueue
        return MemoryDocumentQueue(name)

    if backend == "redis" and settings is not None:
        from docworker.queue.redis_queue import RedisDocumentQueue
        return RedisDocumentQueue(name, redis_url=settings.queue_redis_url)

    raise UnsupportedQueueError(
        f"Unsupported queue backend: {backend!r}. Available: memory, redis"
    )
