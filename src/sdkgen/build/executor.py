"""Run blocking calls on worker threads without blocking the event loop."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


class BlockingExecutor:
    """A dedicated thread pool for blocking filesystem and archive work.

    ``run`` submits the call to a worker and bridges the worker's
    concurrent future back into the running event loop, so the
    coordinating task suspends instead of blocking.

    Args:
        max_workers: Number of worker threads (default 4).
    """

    def __init__(self, max_workers: int = 4) -> None:
        self.max_workers = max(1, max_workers)
        self._pool: ThreadPoolExecutor | None = None

    def _get_pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="sdkgen-io",
            )
        return self._pool

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``fn(*args, **kwargs)`` on a worker thread and await its result.

        Exceptions raised by ``fn`` propagate to the awaiting task.
        """
        call = functools.partial(fn, *args, **kwargs) if kwargs else functools.partial(fn, *args)
        future = self._get_pool().submit(call)
        return await asyncio.wrap_future(future)

    def shutdown(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> BlockingExecutor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
