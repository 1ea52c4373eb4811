# src/nlp/base_pipeline.py — v1
"""Abstract extraction pipeline interface.

A pipeline tags entity spans in document text. The worker calls
``initialize`` once per document; a False return means the pipeline cannot
handle that language and the document is skipped. ``terminate`` is always
called after an initialized run, whatever its outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docworker.core.models import Annotations


class BasePipeline(ABC):
    """Unified interface for entity extraction pipelines."""

    @property
    @abstractmethod
    def pipeline_type(self) -> str:
        """Pipeline identifier stored on extracted entities (e.g. 'EMAIL')."""

    @abstractmethod
    async def initialize(self, language: str) -> bool:
        """Prepare models for ``language``. False if unsupported."""

    @abstractmethod
    async def process(self, content: str, doc_id: str, language: str) -> Annotations:
        """Tag entity spans in ``content``."""

    async def terminate(self, language: str) -> None:
        """Release what ``initialize`` acquired."""
