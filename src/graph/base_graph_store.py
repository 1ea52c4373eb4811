# src/graph/base_graph_store.py — v1
"""Abstract entity graph store interface.

The graph store mirrors extracted entities as Document and NamedEntity
nodes linked by MENTIONS edges. The document index stays authoritative:
callers treat graph writes as best effort.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docworker.core.models import NamedEntity


class BaseEntityGraphStore(ABC):
    """Unified interface for entity graph backends."""

    @abstractmethod
    async def create(self, entity: NamedEntity) -> None:
        """Insert or update ``entity`` and link it to its document (merge by id)."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (neo4j)."""

    def close(self) -> None:
        """Release driver resources."""
