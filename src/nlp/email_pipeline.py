# src/nlp/email_pipeline.py — v1
"""Pattern pipeline tagging e-mail addresses.

Language independent unless restricted with ``languages``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from docworker.core.models import Annotations
from docworker.nlp.base_pipeline import BasePipeline

logger = logging.getLogger(__name__)

_EMAIL = re.compile(
    r"(?<![\w.+-])[\w.+-]+@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)+"
)


class EmailPipeline(BasePipeline):
    """Tag e-mail addresses with the EMAIL category.

    Args:
        languages: Languages accepted by ``initialize``; None accepts all.
    """

    def __init__(self, languages: Iterable[str] | None = None) -> None:
        self._languages = {lang.upper() for lang in languages} if languages else None

    @property
    def pipeline_type(self) -> str:
        return "EMAIL"

    async def initialize(self, language: str) -> bool:
        if self._languages is not None and language.upper() not in self._languages:
            logger.info("EMAIL pipeline does not support %s", language)
            return False
        return True

    async def process(self, content: str, doc_id: str, language: str) -> Annotations:
        annotations = Annotations(
            document_id=doc_id, language=language, pipeline=self.pipeline_type
        )
        for match in _EMAIL.finditer(content):
            annotations.add(match.start(), match.end(), "EMAIL")
        return annotations
