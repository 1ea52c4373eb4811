# tests/unit/jobs/test_sqlite_job_store.py — v1
"""Tests for jobs/sqlite_store.py — full functional tests (stdlib sqlite3)."""

from __future__ import annotations

import pytest
import pytest_asyncio
from conftest import make_document, make_job

from docworker.core.models import ResultQuery
from docworker.jobs.errors import (
    InvalidStateTransitionError,
    JobNotFoundError,
    JobStoreError,
    UnauthorizedUserError,
)
from docworker.jobs.sqlite_store import SqliteJobStore


class TestSave:
    @pytest.mark.asyncio
    async def test_save_and_get(self, job_store):
        job = make_job("q1", "q2", name="leaks", description="first batch")
        assert await job_store.save("alice", job) is True

        stored = await job_store.get_job("alice", job.id)
        assert stored is not None
        assert stored.name == "leaks"
        assert stored.description == "first batch"
        assert stored.owner == "alice"
        assert stored.state == "QUEUED"
        assert stored.created_at == job.created_at
        assert stored.queries == {"q1": None, "q2": None}
        assert stored.total_result_count == 0

    @pytest.mark.asyncio
    async def test_query_insertion_order_survives(self, job_store):
        queries = ["zulu", "alpha", "mike", "bravo", "yankee"]
        job = make_job(*queries)
        await job_store.save("alice", job)
        stored = await job_store.get_job("alice", job.id)
        assert list(stored.queries) == queries

    @pytest.mark.asyncio
    async def test_save_without_queries(self, job_store):
        job = make_job()
        assert await job_store.save("alice", job) is False
        assert await job_store.get_job("alice", job.id) is None

    @pytest.mark.asyncio
    async def test_save_same_id_twice_leaves_one_job(self, job_store):
        job = make_job("q1")
        await job_store.save("alice", job)
        with pytest.raises(JobStoreError):
            await job_store.save("alice", job)
        assert len(await job_store.get_jobs("alice")) == 1

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / "jobs.db"
        job = make_job("q1")
        first = SqliteJobStore(db_path)
        await first.save("alice", job)
        first.close()

        second = SqliteJobStore(db_path)
        try:
            assert (await second.get_job("alice", job.id)).queries == {"q1": None}
        finally:
            second.close()

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        store = SqliteJobStore(":memory:")
        try:
            job = make_job("q1")
            await store.save("alice", job)
            assert await store.get_job("alice", job.id) is not None
        finally:
            store.close()


class TestVisibility:
    @pytest.mark.asyncio
    async def test_get_jobs_newest_first(self, job_store):
        old = make_job("q", minutes_ago=10)
        new = make_job("q", minutes_ago=1)
        await job_store.save("alice", old)
        await job_store.save("alice", new)
        assert [j.id for j in await job_store.get_jobs("alice")] == [new.id, old.id]

    @pytest.mark.asyncio
    async def test_get_jobs_includes_published_of_others(self, job_store):
        mine = make_job("q")
        shared = make_job("q", published=True)
        private = make_job("q")
        await job_store.save("alice", mine)
        await job_store.save("bob", shared)
        await job_store.save("bob", private)

        ids = {j.id for j in await job_store.get_jobs("alice")}
        assert ids == {mine.id, shared.id}

    @pytest.mark.asyncio
    async def test_get_job_of_other_user(self, job_store):
        job = make_job("q")
        await job_store.save("bob", job)
        assert await job_store.get_job("alice", job.id) is None
        assert await job_store.get_job("bob", job.id) is not None

    @pytest.mark.asyncio
    async def test_get_unknown_job(self, job_store):
        assert await job_store.get_job("alice", "nope") is None


class TestSetState:
    @pytest.mark.asyncio
    async def test_queued_excludes_running(self, job_store):
        job = make_job("q")
        await job_store.save("alice", job)
        assert [j.id for j in await job_store.get_queued()] == [job.id]

        assert await job_store.set_state(job.id, "RUNNING") is True
        assert await job_store.get_queued() == []
        assert (await job_store.get_job("alice", job.id)).state == "RUNNING"

    @pytest.mark.asyncio
    async def test_unknown_job(self, job_store):
        assert await job_store.set_state("nope", "RUNNING") is False

    @pytest.mark.asyncio
    async def test_same_state_is_noop(self, job_store):
        job = make_job("q")
        await job_store.save("alice", job)
        assert await job_store.set_state(job.id, "QUEUED") is True

    @pytest.mark.asyncio
    async def test_backward_move_rejected(self, job_store):
        job = make_job("q")
        await job_store.save("alice", job)
        await job_store.set_state(job.id, "RUNNING")
        await job_store.set_state(job.id, "SUCCESS")
        with pytest.raises(InvalidStateTransitionError):
            await job_store.set_state(job.id, "RUNNING")
        assert (await job_store.get_job("alice", job.id)).state == "SUCCESS"


class TestResults:
    @pytest_asyncio.fixture
    async def saved_job(self, job_store):
        job = make_job("q1", "q2")
        await job_store.save("alice", job)
        await job_store.save_results(job.id, "q1", [
            make_document("d1", content="a"),
            make_document("d2", content="bbb", root_id="d1"),
        ])
        await job_store.save_results(job.id, "q2", [make_document("d3", content="cc")])
        return job

    @pytest.mark.asyncio
    async def test_counts_after_results(self, job_store, saved_job):
        stored = await job_store.get_job("alice", saved_job.id)
        assert stored.queries == {"q1": 2, "q2": 1}
        assert stored.total_result_count == 3

    @pytest.mark.asyncio
    async def test_result_rows(self, job_store, saved_job):
        rows = await job_store.get_results("alice", saved_job.id)
        assert [(r.query, r.position, r.document_id) for r in rows] == [
            ("q1", 0, "d1"), ("q1", 1, "d2"), ("q2", 0, "d3"),
        ]
        assert rows[1].root_id == "d1"
        assert rows[0].root_id == "d1"
        assert rows[0].document_name == "d1.txt"
        assert rows[0].content_type == "text/plain"
        assert rows[1].content_length == 3
        assert rows[0].creation_date is not None

    @pytest.mark.asyncio
    async def test_empty_results_store_zero_count(self, job_store):
        job = make_job("nothing")
        await job_store.save("alice", job)
        assert await job_store.save_results(job.id, "nothing", []) is False
        assert (await job_store.get_job("alice", job.id)).queries == {"nothing": 0}

    @pytest.mark.asyncio
    async def test_save_results_retry_does_not_duplicate(self, job_store, saved_job):
        await job_store.save_results(saved_job.id, "q2", [make_document("d3", content="cc")])
        rows = await job_store.get_results("alice", saved_job.id, ResultQuery(queries=["q2"]))
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_shorter_retry_drops_stale_positions(self, job_store, saved_job):
        await job_store.save_results(saved_job.id, "q1", [make_document("d3", content="cc")])
        rows = await job_store.get_results("alice", saved_job.id, ResultQuery(queries=["q1"]))
        assert [r.document_id for r in rows] == ["d3"]
        stored = await job_store.get_job("alice", saved_job.id)
        assert stored.queries == {"q1": 1, "q2": 1}
        assert stored.total_result_count == 2

    @pytest.mark.asyncio
    async def test_results_of_unknown_job_rejected(self, job_store):
        with pytest.raises(JobNotFoundError):
            await job_store.save_results("no-such-job", "q", [make_document("d1")])
        count = job_store._conn.execute("SELECT COUNT(*) FROM batch_job_result").fetchone()[0]
        assert count == 0

    @pytest.mark.asyncio
    async def test_results_of_unknown_query_rejected(self, job_store, saved_job):
        with pytest.raises(JobNotFoundError):
            await job_store.save_results(saved_job.id, "q3", [make_document("d9")])
        assert (await job_store.get_job("alice", saved_job.id)).total_result_count == 3

    @pytest.mark.asyncio
    async def test_results_after_delete_rejected(self, job_store, saved_job):
        await job_store.delete("alice", saved_job.id)
        with pytest.raises(JobNotFoundError):
            await job_store.save_results(saved_job.id, "q1", [make_document("d1")])
        count = job_store._conn.execute("SELECT COUNT(*) FROM batch_job_result").fetchone()[0]
        assert count == 0

    @pytest.mark.asyncio
    async def test_filter_by_query(self, job_store, saved_job):
        rows = await job_store.get_results("alice", saved_job.id, ResultQuery(queries=["q2"]))
        assert [r.document_id for r in rows] == ["d3"]

    @pytest.mark.asyncio
    async def test_paging(self, job_store, saved_job):
        page = await job_store.get_results("alice", saved_job.id, ResultQuery(from_=1, size=1))
        assert [r.document_id for r in page] == ["d2"]
        rest = await job_store.get_results("alice", saved_job.id, ResultQuery(from_=1))
        assert [r.document_id for r in rest] == ["d2", "d3"]

    @pytest.mark.asyncio
    async def test_sort_descending(self, job_store, saved_job):
        rows = await job_store.get_results(
            "alice", saved_job.id, ResultQuery(sort="content_length", order="desc")
        )
        assert [r.document_id for r in rows] == ["d2", "d3", "d1"]

    @pytest.mark.asyncio
    async def test_unknown_sort_field(self, job_store, saved_job):
        with pytest.raises(ValueError, match="Unknown sort field"):
            await job_store.get_results("alice", saved_job.id, ResultQuery(sort="score"))

    @pytest.mark.asyncio
    async def test_other_user_unauthorized(self, job_store, saved_job):
        with pytest.raises(UnauthorizedUserError) as exc_info:
            await job_store.get_results("bob", saved_job.id)
        assert exc_info.value.owner == "alice"
        assert exc_info.value.requester == "bob"

    @pytest.mark.asyncio
    async def test_published_results_visible_to_others(self, job_store):
        job = make_job("q", published=True)
        await job_store.save("alice", job)
        await job_store.save_results(job.id, "q", [make_document("d1")])
        rows = await job_store.get_results("bob", job.id)
        assert [r.document_id for r in rows] == ["d1"]

    @pytest.mark.asyncio
    async def test_unknown_job_has_no_results(self, job_store):
        assert await job_store.get_results("alice", "nope") == []


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_everything(self, job_store):
        job = make_job("q")
        await job_store.save("alice", job)
        await job_store.save_results(job.id, "q", [make_document("d1")])

        assert await job_store.delete("alice", job.id) is True
        assert await job_store.get_job("alice", job.id) is None
        assert await job_store.get_results("alice", job.id) == []

    @pytest.mark.asyncio
    async def test_delete_by_other_user_keeps_job(self, job_store):
        job = make_job("q")
        await job_store.save("alice", job)
        await job_store.save_results(job.id, "q", [make_document("d1")])

        assert await job_store.delete("bob", job.id) is False
        assert await job_store.get_job("alice", job.id) is not None
        assert len(await job_store.get_results("alice", job.id)) == 1

    @pytest.mark.asyncio
    async def test_delete_all_scoped_to_owner(self, job_store):
        a1, a2, b1 = make_job("q"), make_job("q"), make_job("q")
        await job_store.save("alice", a1)
        await job_store.save("alice", a2)
        await job_store.save("bob", b1)

        assert await job_store.delete_all("alice") is True
        assert await job_store.get_jobs("alice") == []
        assert [j.id for j in await job_store.get_jobs("bob")] == [b1.id]

    @pytest.mark.asyncio
    async def test_delete_all_without_jobs(self, job_store):
        assert await job_store.delete_all("nobody") is False
