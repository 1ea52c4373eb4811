# src/jobs/retry.py — v1
"""Retry policy with exponential backoff for batch query execution."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from docworker.index.base_index import DocumentIndexError

logger = logging.getLogger(__name__)


class QueryRetryExhausted(Exception):
    """All attempts failed for one batch query."""

    def __init__(self, query: str, attempts: int, last_error: Exception):
        self.query = query
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Query {query!r} failed after {attempts} attempts: {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for index queries."""

    max_retries: int = 2
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0
    jitter: bool = True
    retry_on: tuple[type[Exception], ...] = (DocumentIndexError, OSError)


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Delay before retry number ``attempt`` (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    query: str,
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn`` and retry transient index errors.

    Errors outside ``config.retry_on`` are not retried.

    Raises:
        QueryRetryExhausted: If every attempt failed.
    """
    config = config or RetryConfig()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            attempts += 1
            if not isinstance(e, config.retry_on) or attempts > config.max_retries:
                raise QueryRetryExhausted(query, attempts, e) from e

            delay = compute_delay(config, attempts - 1)
            logger.warning(
                "Query %r failed (attempt %d/%d), retrying in %.1fs: %s",
                query, attempts, config.max_retries, delay, e,
            )
            await asyncio.sleep(delay)
