# src/worker/messages.py — v1
"""Messages consumed by the extraction worker."""

from __future__ import annotations

from pydantic import BaseModel

EXTRACT_NLP = "EXTRACT_NLP"
SHUTDOWN = "SHUTDOWN"


class Message(BaseModel):
    """Work request on the worker's message queue.

    ``type`` is free text: unknown types are accepted here and ignored by
    the worker.
    """

    type: str
    index: str | None = None
    doc_id: str | None = None
    routing_id: str | None = None

    @classmethod
    def extract_nlp(
        cls, index: str, doc_id: str, routing_id: str | None = None
    ) -> Message:
        """Request entity extraction for one document."""
        return cls(type=EXTRACT_NLP, index=index, doc_id=doc_id, routing_id=routing_id)

    @classmethod
    def shutdown(cls) -> Message:
        """Ask the worker to stop after the messages before this one."""
        return cls(type=SHUTDOWN)
