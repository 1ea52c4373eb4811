# src/graph/neo4j_store.py — v1
"""Neo4j entity graph store.

Uses the neo4j Python driver.
Requires: pip install neo4j.
"""

from __future__ import annotations

import logging

from docworker.core.models import NamedEntity
from docworker.graph.base_graph_store import BaseEntityGraphStore

logger = logging.getLogger(__name__)

_CREATE_ENTITY = """
MERGE (d:Document {id: $document_id})
  SET d.root_id = $root_id
MERGE (e:NamedEntity {id: $id})
  SET e.mention = $mention,
      e.mention_norm = $mention_norm,
      e.category = $category,
      e.extractor = $extractor,
      e.language = $language
MERGE (d)-[r:MENTIONS {offset: $offset}]->(e)
"""


class Neo4jEntityGraphStore(BaseEntityGraphStore):
    """Entity graph backed by Neo4j."""

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        user: str = "",
        password: str = "",
        database: str = "neo4j",
    ) -> None:
        try:
            from neo4j import GraphDatabase
        except ImportError as e:
            raise ImportError(
                "neo4j package required: pip install neo4j"
            ) from e

        auth = (user, password) if user else None
        self._driver = GraphDatabase.driver(uri, auth=auth)
        self._database = database

    def _run(self, query: str, **params) -> list[dict]:
        """Execute a Cypher query and return results as list of dicts."""
        with self._driver.session(database=self._database) as session:
            result = session.run(query, **params)
            return [record.data() for record in result]

    async def create(self, entity: NamedEntity) -> None:
        self._run(_CREATE_ENTITY, **entity.model_dump())
        logger.debug("Mirrored entity %s of document %s", entity.id, entity.document_id)

    @property
    def provider_name(self) -> str:
        return "neo4j"

    def close(self) -> None:
        """Close the driver connection."""
        self._driver.close()
