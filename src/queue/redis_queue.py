# src/queue/redis_queue.py — v1
"""Redis list document queue (QUEUE_BACKEND=redis).

Requires 'redis' package: pip install redis.
One Redis list per queue, keyed by the queue name. Pushes go to the tail,
pops come from the head.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import AsyncIterator
from typing import Any

from docworker.queue.base_queue import BaseDocumentQueue, normalize_path

logger = logging.getLogger(__name__)

# Rebuilds the list keeping first occurrences, server side in one call.
# RPUSH is chunked to stay under Lua's unpack() stack limit.
_DEDUP_SCRIPT = """
local items = redis.call('LRANGE', KEYS[1], 0, -1)
local seen = {}
local unique = {}
for _, item in ipairs(items) do
  if not seen[item] then
    seen[item] = true
    unique[#unique + 1] = item
  end
end
local removed = #items - #unique
if removed > 0 then
  redis.call('DEL', KEYS[1])
  for i = 1, #unique, 1000 do
    redis.call('RPUSH', KEYS[1], unpack(unique, i, math.min(i + 999, #unique)))
  end
end
return removed
"""


class RedisDocumentQueue(BaseDocumentQueue):
    """Redis-backed document queue shared between processes.

    Args:
        name: Redis key of the list.
        redis_url: Server URL; ignored when ``client`` is given.
        client: Existing client to share (staging queues reuse their
            parent's connection).
    """

    def __init__(
        self, name: str, redis_url: str = "", client: Any = None
    ) -> None:
        if client is None:
            try:
                import redis
            except ImportError as e:
                raise ImportError(
                    "redis package required: pip install redis"
                ) from e
            client = redis.Redis.from_url(redis_url, decode_responses=True)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client
        self._name = name
        self._dedup = self._client.register_script(_DEDUP_SCRIPT)

    @property
    def name(self) -> str:
        return self._name

    async def size(self) -> int:
        return int(self._client.llen(self._name))

    async def push(self, *paths: str | os.PathLike[str]) -> int:
        if not paths:
            return await self.size()
        return int(self._client.rpush(self._name, *(normalize_path(p) for p in paths)))

    async def pop(self) -> str | None:
        return self._client.lpop(self._name)

    async def iter_batches(self, batch_size: int) -> AsyncIterator[list[str]]:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        offset = 0
        while True:
            batch = self._client.lrange(self._name, offset, offset + batch_size - 1)
            if not batch:
                return
            yield list(batch)
            offset += len(batch)

    async def remove_duplicate_paths(self) -> int:
        removed = int(self._dedup(keys=[self._name]))
        logger.debug("Removed %d duplicate paths from %s", removed, self._name)
        return removed

    def staging(self) -> RedisDocumentQueue:
        return RedisDocumentQueue(
            f"{self._name}:staging:{uuid.uuid4().hex}", client=self._client
        )

    async def publish_to(self, target: BaseDocumentQueue) -> None:
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(target.name)
        # RENAME fails on a missing key, and Redis drops empty lists
        if self._client.exists(self._name):
            pipe.rename(self._name, target.name)
        pipe.execute()
        self._name = target.name

    async def delete(self) -> None:
        self._client.delete(self._name)

    async def rename(self, new_name: str) -> None:
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(new_name)
        if self._client.exists(self._name):
            pipe.rename(self._name, new_name)
        pipe.execute()
        self._name = new_name

    def close(self) -> None:
        """Close the Redis connection when this queue opened it."""
        if self._owns_client:
            self._client.close()
