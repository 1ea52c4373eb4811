# src/jobs/sqlite_store.py — v1
"""SQLite-based batch job store.

Uses stdlib sqlite3, no external dependency. Three normalized tables:
one header row per job, one row per (job, query) with its insertion
number, one row per (job, query, result position).
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from docworker.core.models import (
    BatchJob,
    Document,
    JobState,
    ResultQuery,
    SearchResultRow,
)
from docworker.jobs.base_job_store import BaseJobStore
from docworker.jobs.errors import (
    InvalidStateTransitionError,
    JobNotFoundError,
    JobStoreError,
    UnauthorizedUserError,
)
from docworker.jobs.merge import merge_job_rows
from docworker.jobs.state import can_transition

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS batch_job (
    uuid TEXT PRIMARY KEY,
    name TEXT,
    description TEXT,
    user_id TEXT NOT NULL,
    prj_id TEXT NOT NULL,
    batch_date TEXT NOT NULL,
    state TEXT NOT NULL,
    published INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_batch_job_user ON batch_job(user_id);
CREATE INDEX IF NOT EXISTS idx_batch_job_state ON batch_job(state);

CREATE TABLE IF NOT EXISTS batch_job_query (
    job_uuid TEXT NOT NULL,
    query TEXT NOT NULL,
    query_number INTEGER NOT NULL,
    result_count INTEGER,
    PRIMARY KEY (job_uuid, query_number)
);

CREATE TABLE IF NOT EXISTS batch_job_result (
    job_uuid TEXT NOT NULL,
    query TEXT NOT NULL,
    position INTEGER NOT NULL,
    doc_id TEXT NOT NULL,
    root_id TEXT NOT NULL,
    doc_name TEXT NOT NULL,
    creation_date TEXT,
    content_type TEXT,
    content_length INTEGER,
    PRIMARY KEY (job_uuid, query, position)
);
"""

_JOB_SELECT = """
SELECT j.uuid AS id, j.name, j.description, j.user_id AS owner,
       j.prj_id AS project, j.batch_date AS created_at, j.state, j.published,
       q.query, q.query_number, q.result_count,
       (SELECT COUNT(*) FROM batch_job_result r
         WHERE r.job_uuid = j.uuid) AS total_result_count
FROM batch_job j
JOIN batch_job_query q ON q.job_uuid = j.uuid
"""

_JOB_ORDER = " ORDER BY j.batch_date DESC, q.query_number ASC"

# Public sort names -> result table columns
_SORT_COLUMNS: dict[str, str] = {
    "query": "query",
    "position": "position",
    "doc_nb": "position",
    "document_id": "doc_id",
    "root_id": "root_id",
    "document_name": "doc_name",
    "creation_date": "creation_date",
    "content_type": "content_type",
    "content_length": "content_length",
}


def _to_db_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_date(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqliteJobStore(BaseJobStore):
    """SQLite-backed batch job store."""

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            self._db_path: Path | None = None
            self._conn = sqlite3.connect(":memory:")
        else:
            self._db_path = Path(db_path).expanduser()
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)

    # --- Writes ---

    async def save(self, owner: str, job: BatchJob) -> bool:
        """Insert header and query rows in one transaction."""
        if not job.queries:
            logger.warning("Batch job %s has no queries, not saved", job.id)
            return False

        query_rows = [
            (job.id, query, number, count)
            for number, (query, count) in enumerate(job.queries.items())
        ]
        try:
            with self._conn:
                self._conn.execute(
                    """INSERT INTO batch_job
                       (uuid, name, description, user_id, prj_id, batch_date, state, published)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        job.id,
                        job.name,
                        job.description,
                        owner,
                        job.project,
                        _to_db_date(job.created_at),
                        job.state,
                        1 if job.published else 0,
                    ),
                )
                cursor = self._conn.executemany(
                    """INSERT INTO batch_job_query
                       (job_uuid, query, query_number, result_count)
                       VALUES (?, ?, ?, ?)""",
                    query_rows,
                )
                if cursor.rowcount <= 0:
                    raise JobStoreError(f"No query row written for batch job {job.id}")
        except sqlite3.Error as e:
            raise JobStoreError(f"Cannot save batch job {job.id}: {e}") from e

        logger.info(
            "Saved batch job %s for %s with %d queries", job.id, owner, len(query_rows)
        )
        return True

    async def save_results(
        self, job_id: str, query: str, documents: Sequence[Document]
    ) -> bool:
        """Replace the result rows of one query of a job.

        Rewriting a position replaces the previous row and positions past
        the end of ``documents`` are dropped, so a retry leaves exactly the
        rows of its last attempt.

        Raises:
            JobNotFoundError: If the job has no such query, e.g. because it
                was deleted while running. Nothing is written.
        """
        rows = [
            (
                job_id,
                query,
                position,
                doc.id,
                doc.root,
                doc.name,
                _to_db_date(doc.creation_date) if doc.creation_date else None,
                doc.content_type,
                doc.content_length,
            )
            for position, doc in enumerate(documents)
        ]
        try:
            with self._conn:
                cursor = self._conn.execute(
                    """UPDATE batch_job_query SET result_count = ?
                       WHERE job_uuid = ? AND query = ?""",
                    (len(rows), job_id, query),
                )
                if cursor.rowcount == 0:
                    raise JobNotFoundError(job_id, query)
                self._conn.execute(
                    """DELETE FROM batch_job_result
                       WHERE job_uuid = ? AND query = ? AND position >= ?""",
                    (job_id, query, len(rows)),
                )
                if rows:
                    self._conn.executemany(
                        """INSERT OR REPLACE INTO batch_job_result
                           (job_uuid, query, position, doc_id, root_id, doc_name,
                            creation_date, content_type, content_length)
                           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        rows,
                    )
        except sqlite3.Error as e:
            raise JobStoreError(
                f"Cannot save results of {query!r} for batch job {job_id}: {e}"
            ) from e
        return len(rows) > 0

    async def set_state(self, job_id: str, state: JobState) -> bool:
        """Compare-and-set the job state along the state machine."""
        try:
            with self._conn:
                row = self._conn.execute(
                    "SELECT state FROM batch_job WHERE uuid = ?", (job_id,)
                ).fetchone()
                if row is None:
                    return False
                current = row["state"]
                if current == state:
                    return True
                if not can_transition(current, state):
                    raise InvalidStateTransitionError(job_id, current, state)
                cursor = self._conn.execute(
                    "UPDATE batch_job SET state = ? WHERE uuid = ? AND state = ?",
                    (state, job_id, current),
                )
                if cursor.rowcount == 0:
                    raise JobStoreError(
                        f"batch job {job_id} changed state while moving to {state}"
                    )
        except sqlite3.Error as e:
            raise JobStoreError(f"Cannot set state of batch job {job_id}: {e}") from e

        logger.debug("Batch job %s: %s -> %s", job_id, current, state)
        return True

    async def delete(self, owner: str, job_id: str) -> bool:
        """Cascade delete of one job, scoped to its owner."""
        return self._cascade_delete(
            "uuid = ? AND user_id = ?", (job_id, owner), f"batch job {job_id}"
        )

    async def delete_all(self, owner: str) -> bool:
        """Cascade delete of every job of ``owner``."""
        return self._cascade_delete(
            "user_id = ?", (owner,), f"batch jobs of {owner}"
        )

    def _cascade_delete(self, where: str, params: tuple[Any, ...], what: str) -> bool:
        owned = f"SELECT uuid FROM batch_job WHERE {where}"
        try:
            with self._conn:
                self._conn.execute(
                    f"DELETE FROM batch_job_query WHERE job_uuid IN ({owned})", params
                )
                self._conn.execute(
                    f"DELETE FROM batch_job_result WHERE job_uuid IN ({owned})", params
                )
                cursor = self._conn.execute(
                    f"DELETE FROM batch_job WHERE {where}", params
                )
        except sqlite3.Error as e:
            raise JobStoreError(f"Cannot delete {what}: {e}") from e
        return cursor.rowcount > 0

    # --- Reads ---

    async def get_jobs(self, owner: str) -> list[BatchJob]:
        return self._fetch_jobs(
            "WHERE j.user_id = ? OR j.published > 0", (owner,)
        )

    async def get_job(self, owner: str, job_id: str) -> BatchJob | None:
        jobs = self._fetch_jobs(
            "WHERE j.uuid = ? AND (j.user_id = ? OR j.published > 0)",
            (job_id, owner),
        )
        return jobs[0] if jobs else None

    async def get_queued(self) -> list[BatchJob]:
        return self._fetch_jobs("WHERE j.state = ?", ("QUEUED",))

    async def get_results(
        self, owner: str, job_id: str, query: ResultQuery | None = None
    ) -> list[SearchResultRow]:
        """Result rows of a job.

        Raises:
            UnauthorizedUserError: If the job is neither owned by ``owner``
                nor published.
            ValueError: If the sort field is unknown.
        """
        query = query or ResultQuery()
        head = self._conn.execute(
            "SELECT user_id, published FROM batch_job WHERE uuid = ?", (job_id,)
        ).fetchone()
        if head is None:
            return []
        if head["user_id"] != owner and not head["published"]:
            raise UnauthorizedUserError(job_id, head["user_id"], owner)

        sql = "SELECT * FROM batch_job_result WHERE job_uuid = ?"
        params: list[Any] = [job_id]
        if query.has_filtered_queries:
            wanted = list(query.queries or [])
            sql += f" AND query IN ({', '.join('?' for _ in wanted)})"
            params.extend(wanted)

        if query.is_sorted:
            column = _SORT_COLUMNS.get(query.sort or "")
            if column is None:
                raise ValueError(
                    f"Unknown sort field {query.sort!r}. "
                    f"Available: {', '.join(sorted(_SORT_COLUMNS))}"
                )
            sql += f" ORDER BY {column} {query.order.upper()}, query ASC, position ASC"
        else:
            sql += " ORDER BY query ASC, position ASC"

        if query.size > 0:
            sql += " LIMIT ? OFFSET ?"
            params.extend([query.size, query.from_])
        elif query.from_ > 0:
            sql += " LIMIT -1 OFFSET ?"
            params.append(query.from_)

        return [
            SearchResultRow(
                query=row["query"],
                document_id=row["doc_id"],
                root_id=row["root_id"],
                document_name=row["doc_name"],
                creation_date=_from_db_date(row["creation_date"]),
                content_type=row["content_type"],
                content_length=row["content_length"],
                position=row["position"],
            )
            for row in self._conn.execute(sql, params)
        ]

    def _fetch_jobs(self, where: str, params: tuple[Any, ...]) -> list[BatchJob]:
        rows = self._conn.execute(_JOB_SELECT + where + _JOB_ORDER, params).fetchall()
        flat = []
        for row in rows:
            record = dict(row)
            record["created_at"] = _from_db_date(record["created_at"])
            flat.append(record)
        return merge_job_rows(flat)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
