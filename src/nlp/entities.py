# src/nlp/entities.py — v1
"""Derive named entities from pipeline annotations."""

from __future__ import annotations

import logging
import re
import unicodedata

from docworker.core.models import Annotations, Document, NamedEntity

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_mention(mention: str) -> str:
    """Case- and accent-insensitive form of a mention.

    >>> normalize_mention("  José  MARTÍ ")
    'jose marti'
    """
    decomposed = unicodedata.normalize("NFKD", mention)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _WHITESPACE.sub(" ", stripped).strip().casefold()


def named_entities_from(document: Document, annotations: Annotations) -> list[NamedEntity]:
    """One entity per annotated span of ``document``'s content.

    Spans outside the content or covering only whitespace are dropped.
    """
    content = document.content
    entities: list[NamedEntity] = []
    for item in annotations.items:
        if item.end > len(content) or item.end <= item.begin:
            logger.debug(
                "Dropping span [%d, %d) outside document %s",
                item.begin, item.end, document.id,
            )
            continue
        mention = content[item.begin:item.end]
        norm = normalize_mention(mention)
        if not norm:
            continue
        entities.append(
            NamedEntity(
                id=NamedEntity.entity_id(document.id, item.begin, norm, item.category),
                mention=mention,
                mention_norm=norm,
                offset=item.begin,
                category=item.category,
                extractor=annotations.pipeline,
                document_id=document.id,
                root_id=document.root,
                language=annotations.language,
            )
        )
    return entities
