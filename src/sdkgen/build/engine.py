"""Query engine: run queries at most once per cache key, share results."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, TypeVar

from sdkgen.build.artifacts import ResultCache
from sdkgen.build.cache_key import CacheKey
from sdkgen.build.query import Query
from sdkgen.core.errors import QueryCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class EngineStats:
    """Counters for one engine's lifetime."""

    executions: int = 0
    memory_hits: int = 0
    shared_waits: int = 0
    durable_hits: int = 0
    failures: int = 0


class QueryEngine:
    """Executes queries, deduplicating concurrent identical requests.

    Per cache key the engine holds one of: nothing (not started), a future
    (in flight, awaited by every concurrent requester) or a result
    (completed, returned without suspending). Failures are delivered to all
    current waiters and then forgotten, so a later request retries.

    All state is touched from the event loop thread only, which serializes
    insert-if-absent and release-all-waiters without locks.
    """

    def __init__(self, cache: ResultCache | None = None) -> None:
        self.cache = cache
        self.stats = EngineStats()
        self._completed: dict[CacheKey, Any] = {}
        self._in_flight: dict[CacheKey, asyncio.Future] = {}

    def is_completed(self, key: CacheKey) -> bool:
        return key in self._completed

    def is_in_flight(self, key: CacheKey) -> bool:
        return key in self._in_flight

    async def execute(self, query: Query[T]) -> T:
        """Return the result of ``query``, computing it at most once per key."""
        key = query.cache_key()

        if key in self._completed:
            self.stats.memory_hits += 1
            return self._completed[key]

        pending = self._in_flight.get(key)
        if pending is not None:
            self.stats.shared_waits += 1
            logger.debug("waiting on in-flight query %s", key.short)
            # A cancelled waiter must not cancel the shared execution.
            return await asyncio.shield(pending)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            result = await self._compute(query, key)
        except BaseException as exc:
            del self._in_flight[key]
            self.stats.failures += 1
            if isinstance(exc, asyncio.CancelledError):
                # Only the owner was cancelled; waiters see an ordinary failure.
                future.set_exception(QueryCancelledError(key.short))
            else:
                future.set_exception(exc)
            # Mark retrieved; waiters may be absent and the owner re-raises below.
            future.exception()
            raise

        self._completed[key] = result
        del self._in_flight[key]
        future.set_result(result)
        return result

    async def _compute(self, query: Query[T], key: CacheKey) -> T:
        durable = self.cache is not None and query.persistent

        if durable:
            data = self.cache.get(key)
            if data is not None:
                restored = query.deserialize(data)
                if restored is not None:
                    self.stats.durable_hits += 1
                    logger.debug("query %s restored from durable cache", key.short)
                    return restored
                logger.debug("durable cache entry for %s is stale", key.short)
                self.cache.invalidate(key)

        self.stats.executions += 1
        logger.debug("executing query %s", key.short)
        result = await query.run(self)

        if durable:
            self.cache.put(key, query.serialize(result))
        return result
