# tests/unit/queue/test_redis_queue.py — v1
"""Tests for queue/redis_queue.py — mocked Redis client."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock

import pytest

from docworker.queue.redis_queue import RedisDocumentQueue


class FakePipeline:
    """Buffers commands and applies them on execute()."""

    def __init__(self, lists: dict[str, list[str]]):
        self._lists = lists
        self._ops: list[tuple] = []

    def delete(self, key):
        self._ops.append(("delete", key))

    def rename(self, src, dst):
        self._ops.append(("rename", src, dst))

    def execute(self):
        for op in self._ops:
            if op[0] == "delete":
                self._lists.pop(op[1], None)
            else:
                if op[1] not in self._lists:
                    raise RuntimeError("ERR no such key")
                self._lists[op[2]] = self._lists.pop(op[1])
        return [True] * len(self._ops)


def _dedup(lists):
    def run(keys):
        items = lists.get(keys[0], [])
        unique = list(dict.fromkeys(items))
        if unique:
            lists[keys[0]] = unique
        return len(items) - len(unique)
    return run


def _mock_client(lists: dict[str, list[str]]) -> MagicMock:
    client = MagicMock()

    def rpush(key, *values):
        lists.setdefault(key, []).extend(values)
        return len(lists[key])

    def lpop(key):
        items = lists.get(key)
        if not items:
            return None
        value = items.pop(0)
        if not items:
            del lists[key]
        return value

    def lrange(key, start, end):
        return lists.get(key, [])[start:end + 1]

    client.llen = lambda key: len(lists.get(key, []))
    client.rpush = rpush
    client.lpop = lpop
    client.lrange = lrange
    client.exists = lambda key: int(key in lists)
    client.delete = lambda key: lists.pop(key, None)
    client.pipeline = lambda transaction=True: FakePipeline(lists)
    client.register_script = lambda script: _dedup(lists)
    return client


class TestRedisDocumentQueue:
    def test_import_error_without_redis(self):
        """Clear ImportError when redis is not available."""
        redis_mod = sys.modules.get("redis")
        sys.modules["redis"] = None  # type: ignore[assignment]
        try:
            with pytest.raises(ImportError, match="redis"):
                RedisDocumentQueue("q", redis_url="redis://localhost")
        finally:
            if redis_mod is not None:
                sys.modules["redis"] = redis_mod
            else:
                sys.modules.pop("redis", None)

    def test_registers_dedup_script(self):
        client = MagicMock()
        RedisDocumentQueue("q", client=client)
        script = client.register_script.call_args[0][0]
        assert "LRANGE" in script
        assert "RPUSH" in script

    @pytest.mark.asyncio
    async def test_push_pop(self):
        lists: dict[str, list[str]] = {}
        queue = RedisDocumentQueue("q", client=_mock_client(lists))
        assert await queue.push("/data/./a", "/b") == 2
        assert lists["q"] == ["/data/a", "/b"]
        assert await queue.pop() == "/data/a"
        assert await queue.size() == 1

    @pytest.mark.asyncio
    async def test_iter_batches(self):
        lists = {"q": ["/a", "/b", "/c"]}
        queue = RedisDocumentQueue("q", client=_mock_client(lists))
        batches = [b async for b in queue.iter_batches(2)]
        assert batches == [["/a", "/b"], ["/c"]]
        assert lists["q"] == ["/a", "/b", "/c"]

    @pytest.mark.asyncio
    async def test_remove_duplicates(self):
        lists = {"q": ["/a", "/b", "/a"]}
        queue = RedisDocumentQueue("q", client=_mock_client(lists))
        assert await queue.remove_duplicate_paths() == 1
        assert lists["q"] == ["/a", "/b"]

    @pytest.mark.asyncio
    async def test_staging_shares_client(self):
        client = _mock_client({})
        queue = RedisDocumentQueue("q", client=client)
        staging = queue.staging()
        assert staging.name.startswith("q:staging:")
        assert staging._client is client

    @pytest.mark.asyncio
    async def test_publish_to(self):
        lists = {"q": ["/old"]}
        queue = RedisDocumentQueue("q", client=_mock_client(lists))
        staging = queue.staging()
        await staging.push("/new")
        await staging.publish_to(queue)
        assert lists == {"q": ["/new"]}
        assert staging.name == "q"

    @pytest.mark.asyncio
    async def test_publish_empty_deletes_target(self):
        lists = {"q": ["/old"]}
        queue = RedisDocumentQueue("q", client=_mock_client(lists))
        await queue.staging().publish_to(queue)
        assert lists == {}

    @pytest.mark.asyncio
    async def test_rename(self):
        lists = {"q": ["/a"], "q2": ["/stale"]}
        queue = RedisDocumentQueue("q", client=_mock_client(lists))
        await queue.rename("q2")
        assert lists == {"q2": ["/a"]}

    def test_close_only_owned_client(self):
        client = MagicMock()
        RedisDocumentQueue("q", client=client).close()
        client.close.assert_not_called()
