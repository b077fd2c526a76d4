"""Download progress values and the stream transforms that thin them out."""

from __future__ import annotations

import time
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

# Progress moving by less than this (with an unchanged total) is not reported.
SIGNIFICANT_PROGRESS_BYTES = 1024 * 1024

THROTTLE_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class DownloadProgress:
    """Bytes received so far, and the expected total once known."""

    received_bytes: int
    total_bytes: int | None = None


def did_progress_change_significantly(previous: DownloadProgress, current: DownloadProgress) -> bool:
    """True if ``total_bytes`` changed at all, or ``received_bytes`` grew by
    more than SIGNIFICANT_PROGRESS_BYTES since ``previous``."""
    if previous.total_bytes != current.total_bytes:
        return True
    return current.received_bytes - previous.received_bytes > SIGNIFICANT_PROGRESS_BYTES


async def remove_duplicates(
    source: AsyncIterable[T],
    by: Callable[[T, T], bool],
) -> AsyncIterator[T]:
    """Yield the first value, then only values ``by(last_yielded, value)`` accepts."""
    last: T | None = None
    first = True
    async for value in source:
        if first or by(last, value):
            first = False
            last = value
            yield value


async def throttle(
    source: AsyncIterable[T],
    interval: float = THROTTLE_INTERVAL_SECONDS,
    clock: Callable[[], float] = time.monotonic,
) -> AsyncIterator[T]:
    """Yield at most one value per ``interval`` seconds, keeping the latest.

    A value arriving too soon after the previous emission is held back and
    replaced by any newer one. When the source ends, a held value is always
    emitted so the final state of a finite stream is never lost.
    """
    last_emit: float | None = None
    pending: T | None = None
    has_pending = False

    async for value in source:
        now = clock()
        if last_emit is None or now - last_emit >= interval:
            last_emit = now
            has_pending = False
            pending = None
            yield value
        else:
            pending = value
            has_pending = True

    if has_pending:
        yield pending


def progress_pipeline(
    source: AsyncIterable[DownloadProgress],
    interval: float = THROTTLE_INTERVAL_SECONDS,
    clock: Callable[[], float] = time.monotonic,
) -> AsyncIterator[DownloadProgress]:
    """Deduplicate, then throttle, a raw progress stream."""
    return throttle(
        remove_duplicates(source, by=did_progress_change_significantly),
        interval=interval,
        clock=clock,
    )
