# src/queue/filter.py — v1
"""Queue filter — drop duplicate and already-indexed paths from a queue.

Runs in three steps: structural dedup of the queue itself, a streamed
lookup of every remaining path in the document index, then an atomic swap
of the filtered copy into the original queue's identity. Until the swap,
readers of the queue see the original content unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from docworker.index.base_index import BaseDocumentIndex
from docworker.queue.base_queue import BaseDocumentQueue

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


@dataclass
class FilterReport:
    """Counts produced by one filter run."""

    queue: str
    duplicates: int = 0
    already_indexed: int = 0
    remaining: int = 0

    @property
    def total(self) -> int:
        """Number of paths removed from the queue."""
        return self.duplicates + self.already_indexed


class QueueFilter:
    """Remove duplicate and already-indexed paths from document queues.

    Args:
        index: Index used to look up extracted paths.
        project: Index (project) name the paths are checked against.
        batch_size: Paths sent per index lookup.
    """

    def __init__(
        self,
        index: BaseDocumentIndex,
        project: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._index = index
        self._project = project
        self._batch_size = batch_size

    async def filter(self, queue: BaseDocumentQueue) -> FilterReport:
        """Filter ``queue`` in place.

        Raises:
            DocumentIndexError: If an index lookup fails. The queue keeps its
                content (already deduplicated).
        """
        report = FilterReport(queue=queue.name)
        if await queue.size() == 0:
            logger.info("Queue %s is empty, nothing to filter", queue.name)
            return report

        report.duplicates = await queue.remove_duplicate_paths()
        logger.info("Removed %d duplicate paths from %s", report.duplicates, queue.name)

        staging = queue.staging()
        try:
            async for batch in queue.iter_batches(self._batch_size):
                known = await self._index.extracted_paths(self._project, batch)
                kept = [path for path in batch if path not in known]
                report.already_indexed += len(batch) - len(kept)
                if kept:
                    await staging.push(*kept)
            report.remaining = await staging.size()
            await staging.publish_to(queue)
        except Exception:
            logger.error("Filtering %s failed, queue left unfiltered", queue.name)
            await staging.delete()
            raise
        finally:
            staging.close()

        logger.info(
            "Removed %d already indexed paths from %s (%d remaining)",
            report.already_indexed, queue.name, report.remaining,
        )
        return report


async def filter_queue(
    queue: BaseDocumentQueue,
    index: BaseDocumentIndex,
    project: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Filter ``queue`` and return the number of paths removed."""
    report = await QueueFilter(index, project, batch_size).filter(queue)
    return report.total
