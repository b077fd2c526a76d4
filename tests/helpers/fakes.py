"""Fakes and filesystem builders shared by unit and integration tests."""

from __future__ import annotations

import shutil
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx

from sdkgen.build.engine import QueryEngine
from sdkgen.build.filesystem import FileSystem
from sdkgen.build.http import HTTPClient
from sdkgen.build.sysroot import SysrootContext
from sdkgen.core.errors import ContainerError
from sdkgen.core.logging import GeneratorLogger
from sdkgen.core.models import PathsConfiguration, Triple


class FakeContainerClient:
    """Container client whose "container" is a directory on the host.

    Every image maps to the same root directory. Commands are recorded
    so tests can assert on the lifecycle.
    """

    def __init__(self, root: Path):
        self.root = root
        self.acquired: list[tuple[str, str | None]] = []
        self.released: list[str] = []
        self.commands: list[str] = []
        self._counter = 0

    def _host_path(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    @asynccontextmanager
    async def container(self, image: str, platform: str | None = None) -> AsyncIterator[str]:
        self._counter += 1
        container_id = f"fake-{self._counter}"
        self.acquired.append((image, platform))
        try:
            yield container_id
        finally:
            self.released.append(container_id)

    async def exec(self, container_id: str, command: str) -> str:
        self.commands.append(command)
        return ""

    async def path_exists(self, container_id: str, path: str) -> bool:
        return self._host_path(path).exists()

    async def copy_from(
        self,
        container_id: str,
        source: str,
        destination: Path,
        fail_if_not_exists: bool = True,
        follow_links: bool = False,
    ) -> bool:
        src = self._host_path(source)
        if not src.exists():
            if fail_if_not_exists:
                raise ContainerError(["cp", f"{container_id}:{source}"], 1, "No such file or directory")
            return False
        destination.parent.mkdir(parents=True, exist_ok=True)
        if src.is_dir():
            shutil.copytree(src, destination, symlinks=not follow_links, dirs_exist_ok=True)
        else:
            shutil.copy2(src, destination, follow_symlinks=follow_links)
        return True


def make_container_root(
    root: Path,
    *,
    libraries: tuple[str, ...] = ("swift", "swift_static"),
    lib64: bool = False,
    interpreter: str = "/lib64/ld-linux-x86-64.so.2",
) -> Path:
    """Populate ``root`` with a minimal Linux filesystem."""
    (root / "usr" / "include").mkdir(parents=True)
    (root / "usr" / "include" / "stdio.h").write_text("/* stdio */\n")
    for name in libraries:
        lib = root / "usr" / "lib" / name
        lib.mkdir(parents=True)
        (lib / f"lib{name}.so").write_text(name)
    if lib64:
        (root / "usr" / "lib64").mkdir(parents=True)
        (root / "usr" / "lib64" / "libc.so.6").write_text("libc")
    interp = root / interpreter.lstrip("/")
    interp.parent.mkdir(parents=True, exist_ok=True)
    interp.write_text("ld.so")
    return root


def make_distribution(root: Path, *, clang: bool = True, include: bool = True) -> Path:
    """Populate ``root`` like the ``usr`` directory of an unpacked toolchain."""
    for name in ("swift", "swift_static"):
        lib = root / "lib" / name / "linux"
        lib.mkdir(parents=True)
        (lib / "libswiftCore.so").write_text(name)
    if clang:
        (root / "lib" / "clang" / "17").mkdir(parents=True)
    if include:
        (root / "include").mkdir(parents=True)
        (root / "include" / "swift.h").write_text("/* swift */\n")
    return root


def make_context(
    tmp_path: Path,
    fs: FileSystem,
    triple: Triple,
    *,
    containers=None,
    http_client: HTTPClient | None = None,
    sdk_name: str = "rhel-ubi9",
) -> SysrootContext:
    paths = PathsConfiguration.create(tmp_path / "root", "test-sdk", triple, sdk_name)
    return SysrootContext(
        paths=paths,
        triple=triple,
        fs=fs,
        run_logger=GeneratorLogger(),
        engine=QueryEngine(),
        containers=containers,
        http_client=http_client,
    )


def mock_http_client(handler, chunk_size: int = 4) -> HTTPClient:
    """HTTPClient whose requests are answered by ``handler``."""
    return HTTPClient(chunk_size=chunk_size, transport=httpx.MockTransport(handler))
