"""Container lifecycle over the docker CLI."""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sdkgen.core.errors import ContainerError

logger = logging.getLogger(__name__)


class ContainerClient(Protocol):
    """What the sysroot pipeline needs from a container runtime."""

    def container(self, image: str, platform: str | None = None) -> AbstractAsyncContextManager[str]: ...

    async def exec(self, container_id: str, command: str) -> str: ...

    async def copy_from(
        self,
        container_id: str,
        source: str,
        destination: Path,
        fail_if_not_exists: bool = True,
        follow_links: bool = False,
    ) -> bool: ...

    async def path_exists(self, container_id: str, path: str) -> bool: ...


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


class DockerClient:
    """Drives the ``docker`` executable through asyncio subprocesses.

    Args:
        executable: Docker CLI to invoke (default "docker").
        timeout: Per-command timeout in seconds (default 600).
    """

    def __init__(self, executable: str = "docker", timeout: float = 600.0) -> None:
        self.executable = executable
        self.timeout = timeout

    async def _run(self, *args: str, check: bool = True) -> CommandResult:
        command = [self.executable, *args]
        logger.debug("running %s", shlex.join(command))
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ContainerError(command, -1, f"timed out after {self.timeout}s") from None

        result = CommandResult(
            returncode=proc.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        if check and result.returncode != 0:
            raise ContainerError(command, result.returncode, result.stderr)
        return result

    async def acquire(self, image: str, platform: str | None = None) -> str:
        """Start a detached, self-removing container that idles until released."""
        args = ["run", "--rm", "-d"]
        if platform:
            args += ["--platform", platform]
        args += [image, "tail", "-f", "/dev/null"]
        result = await self._run(*args)
        container_id = result.stdout.strip()
        logger.info("Started container %s from %s", container_id[:12], image)
        return container_id

    async def release(self, container_id: str) -> None:
        result = await self._run("rm", "-f", container_id, check=False)
        if result.returncode != 0:
            logger.warning("Failed to remove container %s: %s", container_id[:12], result.stderr.strip())
        else:
            logger.info("Removed container %s", container_id[:12])

    @asynccontextmanager
    async def container(self, image: str, platform: str | None = None) -> AsyncIterator[str]:
        """Scoped container: released on every exit path, including cancellation."""
        container_id = await self.acquire(image, platform)
        try:
            yield container_id
        finally:
            await asyncio.shield(self.release(container_id))

    async def exec(self, container_id: str, command: str) -> str:
        """Run a shell command inside the container and return its stdout."""
        result = await self._run("exec", container_id, "sh", "-c", command)
        return result.stdout

    async def path_exists(self, container_id: str, path: str) -> bool:
        result = await self._run("exec", container_id, "test", "-e", path, check=False)
        return result.returncode == 0

    async def copy_from(
        self,
        container_id: str,
        source: str,
        destination: Path,
        fail_if_not_exists: bool = True,
        follow_links: bool = False,
    ) -> bool:
        """Copy ``source`` out of the container to ``destination``.

        Returns False without copying when the source is absent and
        ``fail_if_not_exists`` is off.
        """
        if not fail_if_not_exists and not await self.path_exists(container_id, source):
            return False
        destination.parent.mkdir(parents=True, exist_ok=True)
        args = ["cp"]
        if follow_links:
            args.append("-L")
        args += [f"{container_id}:{source}", str(destination)]
        await self._run(*args)
        return True
