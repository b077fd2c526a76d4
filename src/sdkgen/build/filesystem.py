"""Filesystem operations used while assembling an SDK.

Each operation is a plain blocking function; ``FileSystem`` exposes them
as coroutines that run on a BlockingExecutor worker.
"""

from __future__ import annotations

import shutil
import tarfile
from pathlib import Path

from sdkgen.build.executor import BlockingExecutor
from sdkgen.core.errors import SdkGenError, atomic_write


def path_exists(path: Path) -> bool:
    """True for existing paths, including dangling symlinks."""
    return path.exists() or path.is_symlink()


def create_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def remove_recursively(path: Path) -> bool:
    """Remove a file, symlink or directory tree. Returns False if absent."""
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def create_symlink(at: Path, pointing_to: str) -> None:
    """Create ``at -> pointing_to``, replacing an existing symlink."""
    if at.is_symlink():
        at.unlink()
    at.parent.mkdir(parents=True, exist_ok=True)
    at.symlink_to(pointing_to)


def write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write(path, data)


def mirror(source: Path, destination_dir: Path) -> Path:
    """Copy ``source`` into ``destination_dir``, preserving symlinks.

    Like ``rsync -a source destination_dir``: the result lives at
    ``destination_dir / source.name`` and existing files are overwritten.
    """
    destination_dir.mkdir(parents=True, exist_ok=True)
    target = destination_dir / source.name
    if source.is_dir() and not source.is_symlink():
        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True)
    else:
        if target.is_symlink():
            target.unlink()
        shutil.copy2(source, target, follow_symlinks=False)
    return target


def mirror_contents(source_dir: Path, destination_dir: Path) -> list[Path]:
    """Mirror every entry of ``source_dir`` into ``destination_dir``."""
    destination_dir.mkdir(parents=True, exist_ok=True)
    return [mirror(child, destination_dir) for child in sorted(source_dir.iterdir())]


def unpack_tarball(archive: Path, destination: Path) -> Path:
    """Extract ``archive`` into ``destination``, rejecting members that escape it."""
    destination.mkdir(parents=True, exist_ok=True)
    root = destination.resolve()
    with tarfile.open(archive, "r:*") as tar:
        for member in tar.getmembers():
            member_path = (destination / member.name).resolve()
            if member_path != root and root not in member_path.parents:
                raise SdkGenError(f"Archive member {member.name} escapes {destination}")
        tar.extractall(path=destination)
    return destination


class FileSystem:
    """Async facade over the blocking filesystem operations."""

    def __init__(self, executor: BlockingExecutor) -> None:
        self.executor = executor

    async def exists(self, path: Path) -> bool:
        return await self.executor.run(path_exists, path)

    async def create_directory(self, path: Path) -> None:
        await self.executor.run(create_directory, path)

    async def remove_recursively(self, path: Path) -> bool:
        return await self.executor.run(remove_recursively, path)

    async def create_symlink(self, at: Path, pointing_to: str) -> None:
        await self.executor.run(create_symlink, at, pointing_to)

    async def write_file(self, path: Path, data: bytes) -> None:
        await self.executor.run(write_file, path, data)

    async def mirror(self, source: Path, destination_dir: Path) -> Path:
        return await self.executor.run(mirror, source, destination_dir)

    async def mirror_contents(self, source_dir: Path, destination_dir: Path) -> list[Path]:
        return await self.executor.run(mirror_contents, source_dir, destination_dir)

    async def unpack_tarball(self, archive: Path, destination: Path) -> Path:
        return await self.executor.run(unpack_tarball, archive, destination)
