# src/graph/graph_store_factory.py — v1
"""Factory: instantiate the entity graph store from configuration."""

from __future__ import annotations

import logging

from docworker.config.settings import Settings
from docworker.graph.base_graph_store import BaseEntityGraphStore

logger = logging.getLogger(__name__)


class UnsupportedGraphStoreError(ValueError):
    """Raised when a graph store type is not supported."""


def create_graph_store(settings: Settings) -> BaseEntityGraphStore | None:
    """Instantiate the configured graph store.

    Args:
        settings: Application settings (GRAPH_DB_TYPE).

    Returns:
        Configured store, or None when GRAPH_DB_TYPE is 'none' (no mirror).

    Raises:
        UnsupportedGraphStoreError: If type is not supported.
    """
    db_type = settings.graph_db_type

    if db_type == "none":
        logger.debug("No graph database configured, entity mirror disabled")
        return None

    if db_type == "neo4j":
        from docworker.graph.neo4j_store import Neo4jEntityGraphStore
        return Neo4jEntityGraphStore(
            uri=settings.graph_db_uri,
            user=settings.graph_db_user,
            password=settings.graph_db_password,
            database=settings.graph_db_database,
        )

    raise UnsupportedGraphStoreError(
        f"Unsupported graph store type: {db_type!r}. Available: none, neo4j"
    )
