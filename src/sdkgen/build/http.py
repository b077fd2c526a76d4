"""Streaming HTTP downloads over httpx."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import BinaryIO

import httpx

from sdkgen.build.executor import BlockingExecutor
from sdkgen.build.filesystem import create_directory
from sdkgen.build.progress import DownloadProgress
from sdkgen.core.errors import DownloadError

logger = logging.getLogger(__name__)


class HTTPClient:
    """Downloads remote files to disk, reporting progress as it goes.

    Args:
        timeout: Per-request timeout in seconds.
        chunk_size: Bytes read per progress step.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        timeout: float = 60.0,
        chunk_size: int = 64 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
        )

    async def stream_download(
        self,
        url: str,
        destination: Path,
        executor: BlockingExecutor,
    ) -> AsyncIterator[DownloadProgress]:
        """Download ``url`` to ``destination``, yielding progress per chunk.

        The sequence is lazy and not restartable; iterating a new call
        downloads from scratch. File I/O runs on ``executor``. On failure,
        or if the consumer stops early, the partially written file is
        removed.
        """
        destination = Path(destination)
        fh: BinaryIO | None = None
        completed = False
        try:
            await executor.run(create_directory, destination.parent)
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    total = _content_length(response)
                    received = 0
                    yield DownloadProgress(received_bytes=0, total_bytes=total)
                    fh = await executor.run(destination.open, "wb")
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        await executor.run(fh.write, chunk)
                        received += len(chunk)
                        yield DownloadProgress(received_bytes=received, total_bytes=total)
            await executor.run(fh.close)
            completed = True
        except httpx.HTTPError as exc:
            raise DownloadError(url, str(exc)) from exc
        except OSError as exc:
            raise DownloadError(url, str(exc)) from exc
        finally:
            if not completed:
                logger.debug("removing partial download %s", destination)
                await executor.run(_discard, fh, destination)


def _discard(fh: BinaryIO | None, destination: Path) -> None:
    if fh is not None:
        fh.close()
    destination.unlink(missing_ok=True)


def _content_length(response: httpx.Response) -> int | None:
    value = response.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
