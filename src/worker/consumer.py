# src/worker/consumer.py — v1
"""Extraction worker — message-driven entity extraction loop.

The worker polls an asyncio queue of messages. EXTRACT_NLP messages run the
pipeline over one indexed document and write the entities back to the
index, then mirror them into the graph store when one is configured. A
SHUTDOWN message stops the loop once the current message is done; messages
queued behind it are left unprocessed.

The index write is authoritative. Graph mirror failures are logged and
never fail the document.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from docworker.core.models import NamedEntity
from docworker.index.base_index import DocumentIndexError
from docworker.logging.context import set_document_context, set_worker_context
from docworker.nlp.entities import named_entities_from
from docworker.worker.messages import EXTRACT_NLP, SHUTDOWN, Message

if TYPE_CHECKING:
    from docworker.graph.base_graph_store import BaseEntityGraphStore
    from docworker.index.base_index import BaseDocumentIndex
    from docworker.nlp.base_pipeline import BasePipeline

logger = logging.getLogger(__name__)

WorkerState = Literal["RUNNING", "STOPPED"]

DEFAULT_POLL_TIMEOUT_S = 30.0


@dataclass
class GraphMirrorResult:
    """Outcome of mirroring one document's entities into the graph store."""

    attempted: int = 0
    written: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ExtractionWorker:
    """Consume extraction messages until told to shut down.

    Args:
        pipeline: Entity extraction pipeline.
        index: Document index read from and written to.
        messages: Queue of Message objects.
        graph_store: Optional advisory entity mirror.
        poll_timeout_s: Max wait for a message before polling again.
        name: Worker name attached to log records.
    """

    def __init__(
        self,
        pipeline: BasePipeline,
        index: BaseDocumentIndex,
        messages: asyncio.Queue[Message],
        graph_store: BaseEntityGraphStore | None = None,
        poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
        name: str = "nlp-worker",
    ) -> None:
        self._pipeline = pipeline
        self._index = index
        self._messages = messages
        self._graph_store = graph_store
        self._poll_timeout_s = poll_timeout_s
        self._name = name
        self._state: WorkerState = "STOPPED"
        self._busy = False
        self._drained = asyncio.Condition()

    @property
    def state(self) -> WorkerState:
        return self._state

    async def run(self) -> None:
        """Process messages until a SHUTDOWN message is consumed."""
        set_worker_context(self._name)
        self._state = "RUNNING"
        logger.info("Worker %s started (%s pipeline)", self._name, self._pipeline.pipeline_type)
        try:
            while self._state == "RUNNING":
                try:
                    message = await asyncio.wait_for(
                        self._messages.get(), timeout=self._poll_timeout_s
                    )
                except asyncio.TimeoutError:
                    continue

                self._busy = True
                try:
                    await self._handle(message)
                except Exception:
                    logger.warning("Error in worker main loop", exc_info=True)
                finally:
                    self._busy = False
                    self._messages.task_done()
                    await self._notify_if_drained()
        finally:
            self._state = "STOPPED"
            logger.info("Worker %s exiting main loop", self._name)
            set_worker_context(None)

    async def wait_until_drained(self) -> None:
        """Block until the message queue is empty and no message is in flight."""
        async with self._drained:
            await self._drained.wait_for(self._is_drained)

    def _is_drained(self) -> bool:
        return self._messages.empty() and not self._busy

    async def _notify_if_drained(self) -> None:
        async with self._drained:
            if self._is_drained():
                self._drained.notify_all()

    async def _handle(self, message: Message) -> None:
        if message.type == EXTRACT_NLP:
            if not message.index or not message.doc_id:
                logger.warning("Ignoring incomplete %s message: %s", EXTRACT_NLP, message)
                return
            await self.find_named_entities(
                message.index, message.doc_id, message.routing_id
            )
        elif message.type == SHUTDOWN:
            logger.info("Worker %s received shutdown", self._name)
            self._state = "STOPPED"
        else:
            logger.info("Ignoring message %s", message)

    async def find_named_entities(
        self, index: str, doc_id: str, routing: str | None = None
    ) -> int:
        """Extract and store entities of one document.

        Returns:
            Number of entities added; 0 when the document is missing, its
            language is not supported, or the index failed.
        """
        set_document_context(doc_id)
        try:
            doc = await self._index.get(index, doc_id, routing)
            if doc is None:
                logger.warning("No document found in index %s with id %s", index, doc_id)
                return 0

            pipeline_type = self._pipeline.pipeline_type
            if not await self._pipeline.initialize(doc.language):
                logger.info(
                    "%s pipeline cannot handle %s, skipping document %s",
                    pipeline_type, doc.language, doc.id,
                )
                return 0

            logger.info("Extracting %s entities for document %s", pipeline_type, doc.id)
            try:
                annotations = await self._pipeline.process(doc.content, doc.id, doc.language)
                entities = named_entities_from(doc, annotations)
                await self._index.bulk_add(index, pipeline_type, entities, doc)

                mirror = await self._mirror(entities)
                if not mirror.ok:
                    logger.error(
                        "Graph mirror failed for document %s after %d/%d entities: %s",
                        doc.id, mirror.written, mirror.attempted, mirror.error,
                    )

                logger.info("Added %d named entities to document %s", len(entities), doc.id)
                return len(entities)
            finally:
                await self._pipeline.terminate(doc.language)
        except (DocumentIndexError, OSError):
            logger.error("Cannot extract entities of document %s", doc_id, exc_info=True)
            return 0
        finally:
            set_document_context(None)

    async def _mirror(self, entities: list[NamedEntity]) -> GraphMirrorResult:
        result = GraphMirrorResult()
        if self._graph_store is None:
            return result
        for entity in entities:
            result.attempted += 1
            try:
                await self._graph_store.create(entity)
            except Exception as e:
                result.error = f"{type(e).__name__}: {e}"
                break
            result.written += 1
        return result
