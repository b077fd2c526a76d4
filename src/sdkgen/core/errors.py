"""sdkgen error types and utilities."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path.
    """
    data = content.encode() if isinstance(content, str) else content
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    fd_open = True
    try:
        os.write(fd, data)
        os.fsync(fd)
        os.close(fd)
        fd_open = False
        os.replace(tmp, str(path))
    except BaseException:
        if fd_open:
            os.close(fd)
        Path(tmp).unlink(missing_ok=True)
        raise


class SdkGenError(Exception):
    """Base exception for sdkgen."""

    pass


class ConfigurationError(SdkGenError):
    """Fatal configuration error. Aborts the run and is never retried."""

    pass


class UnsupportedArchitectureError(ConfigurationError):
    """The target triple names an architecture with no known layout."""

    def __init__(self, arch: str):
        self.arch = arch
        super().__init__(f"unsupported architecture {arch!r}")


class PathLayoutError(ConfigurationError):
    """A computed path is not located under the root it must live in."""

    def __init__(self, path: Path, root: Path):
        self.path = path
        self.root = root
        super().__init__(
            f"{path} is at an unexpected location outside of {root}, "
            f"a relative path cannot be computed"
        )


class MissingPathError(ConfigurationError):
    """A required path is absent from the sysroot source."""

    def __init__(self, step: str, path: str | Path, source: str = "container"):
        self.step = step
        self.path = str(path)
        self.source = source
        super().__init__(f"[{step}] required path {self.path} does not exist in {source}")


class DownloadError(SdkGenError):
    """Transient download failure. Not cached, callers may retry."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")


class ContainerError(SdkGenError):
    """A container runtime command exited unsuccessfully."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"`{' '.join(command)}` exited with code {returncode}{detail}")


class QueryCancelledError(SdkGenError):
    """The task executing a shared query was cancelled before it finished.

    Delivered to the other requests waiting on the same key; they were not
    cancelled themselves and may retry.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Query {key} was cancelled before it completed")
