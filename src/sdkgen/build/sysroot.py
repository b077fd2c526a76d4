"""Sysroot extraction: copy and patch a target filesystem tree into the SDK.

Two sources are supported: a disposable container started from a base
image, and an already unpacked toolchain distribution directory. Both
share the same policy: a missing required path aborts the run with
MissingPathError, a missing optional path is logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from sdkgen.build.docker import ContainerClient
from sdkgen.build.download import DownloadableArtifacts, DownloadArtifactQuery
from sdkgen.build.engine import QueryEngine
from sdkgen.build.filesystem import FileSystem
from sdkgen.build.http import HTTPClient
from sdkgen.core.errors import ConfigurationError, MissingPathError
from sdkgen.core.logging import GeneratorLogger
from sdkgen.core.models import LinuxDistribution, PathsConfiguration, Triple

logger = logging.getLogger(__name__)

# (subpath under /usr/lib, required)
LIBRARY_SUBPATHS: tuple[tuple[str, bool], ...] = (
    ("swift", True),
    ("swift_static", True),
    ("clang", False),
    ("gcc", False),
)

# RHEL images ship 32-bit multilib trees for these GCC major versions.
RHEL_GCC_VERSIONS = range(7, 14)
RHEL_32BIT_LIBRARY_DIR = "gcc/x86_64-redhat-linux/{version}/32"

# Bundled runtime artifacts that are never needed for cross compilation.
REDUNDANT_LIBRARY_DIRS = ("python3.10", "ssl")

# Rewrites /usr/lib64 links that climb out of the directory (e.g.
# ../../lib64/libfoo.so.1) as links to the same-named file next to them,
# so they stay valid once the tree is relocated into the SDK.
RHEL_LIB64_FIXUP = r"""
cd /usr/lib64 || exit 0
chmod +w .
for n in *; do
    destination=$(readlink "$n") || continue
    case "$destination" in
        /*|*..*)
            rm -f "$n"
            ln -s "$(basename "$destination")" "$n"
            ;;
    esac
done
rm -rf pm-utils
"""

# (path within the distribution, destination under the SDK dir, optional)
DISTRIBUTION_PATHS: tuple[tuple[str, str, bool], ...] = (
    ("lib/swift", "usr/lib", False),
    ("lib/swift_static", "usr/lib", False),
    ("lib/clang", "usr/lib", True),
    ("include", "usr", False),
)

# Static-only layout used for WebAssembly targets.
WASM_DISTRIBUTION_PATHS: tuple[tuple[str, str, bool], ...] = (
    ("lib/swift_static", "usr/lib", False),
    ("lib/clang", "usr/lib", True),
)


@dataclass
class SysrootContext:
    """Collaborators shared by every step of one generation run."""

    paths: PathsConfiguration
    triple: Triple
    fs: FileSystem
    run_logger: GeneratorLogger
    engine: QueryEngine
    containers: ContainerClient | None = None
    http_client: HTTPClient | None = None
    download_base_url: str = "https://download.swift.org"

    @property
    def sdk_dir(self) -> Path:
        return self.paths.sdk_dir_path


def library_subpaths(distribution: LinuxDistribution, triple: Triple) -> list[tuple[str, bool]]:
    """Subpaths of /usr/lib to copy, with whether each is required."""
    subpaths = list(LIBRARY_SUBPATHS)
    if distribution.is_ubuntu:
        # Ubuntu's multiarch scheme keeps some libraries in arch-specific
        # directories, but not every image has them.
        subpaths.append((f"{triple.arch}-linux-gnu", False))
        if triple.arch == "armv7":
            subpaths.append(("arm-linux-gnueabihf", False))
    return subpaths


class ContainerSysrootExtractor:
    """Runs the copy/patch steps against one acquired container."""

    def __init__(
        self,
        ctx: SysrootContext,
        container_id: str,
        distribution: LinuxDistribution,
    ) -> None:
        if ctx.containers is None:
            raise ConfigurationError("Container extraction requires a container client")
        self.ctx = ctx
        self.containers = ctx.containers
        self.container_id = container_id
        self.distribution = distribution
        self.log = ctx.run_logger
        self.fs = ctx.fs
        self.sdk_usr = ctx.sdk_dir / "usr"
        self.sdk_usr_lib = self.sdk_usr / "lib"

    async def copy(
        self,
        step: str,
        source: str,
        destination: Path,
        required: bool,
        follow_links: bool = False,
    ) -> bool:
        """Copy one container path, applying the required/optional policy."""
        if not await self.containers.path_exists(self.container_id, source):
            if required:
                raise MissingPathError(step, source)
            self.log.path_skipped(source, "not present in container")
            return False
        # Copying onto a previous run's output would nest the tree.
        await self.fs.remove_recursively(destination)
        await self.containers.copy_from(
            self.container_id,
            source,
            destination,
            fail_if_not_exists=True,
            follow_links=follow_links,
        )
        self.log.path_copied(source, str(destination))
        return True

    async def remove_if_present(self, path: Path, reason: str) -> None:
        if await self.fs.remove_recursively(path):
            self.log.path_removed(str(path), reason)

    async def run(self, interpreter_path: str) -> None:
        triple = self.ctx.triple
        sdk_dir = self.ctx.sdk_dir

        with self.log.step("create-usr"):
            await self.fs.create_directory(self.sdk_usr)

        with self.log.step("copy-headers"):
            await self.copy("copy-headers", "/usr/include", self.sdk_usr / "include", required=True)

        if self.distribution.is_rhel:
            with self.log.step("repair-lib64-links"):
                await self.containers.exec(self.container_id, RHEL_LIB64_FIXUP)

        with self.log.step("copy-lib64"):
            if await self.containers.path_exists(self.container_id, "/usr/lib64"):
                await self.copy("copy-lib64", "/usr/lib64", self.sdk_usr / "lib64", required=True)
                await self.fs.create_symlink(sdk_dir / "lib64", "usr/lib64")
            else:
                logger.debug("/usr/lib64 not present in container")

        with self.log.step("copy-libraries"):
            await self.fs.create_directory(self.sdk_usr_lib)
            for subpath, required in library_subpaths(self.distribution, triple):
                await self.copy(
                    "copy-libraries",
                    f"/usr/lib/{subpath}",
                    self.sdk_usr_lib / subpath,
                    required=required,
                )

        with self.log.step("link-lib"):
            await self.fs.create_symlink(sdk_dir / "lib", "usr/lib")

        if self.distribution.is_rhel:
            with self.log.step("remove-32bit-libraries"):
                for version in RHEL_GCC_VERSIONS:
                    await self.remove_if_present(
                        self.sdk_usr_lib / RHEL_32BIT_LIBRARY_DIR.format(version=version),
                        "32-bit libraries are not needed in a RHEL sysroot",
                    )

        with self.log.step("copy-interpreter"):
            destination = sdk_dir / PurePosixPath(interpreter_path).relative_to("/")
            await self.fs.create_directory(destination.parent)
            await self.copy(
                "copy-interpreter",
                interpreter_path,
                destination,
                required=True,
                follow_links=True,
            )

        with self.log.step("remove-redundant"):
            for name in REDUNDANT_LIBRARY_DIRS:
                await self.remove_if_present(self.sdk_usr_lib / name, "redundant bundled runtime")


async def copy_target_from_container(
    ctx: SysrootContext,
    distribution: LinuxDistribution,
    base_image: str,
) -> None:
    """Extract the target sysroot from a container started from ``base_image``.

    The container is released on every exit path.
    """
    if ctx.containers is None:
        raise ConfigurationError("Container extraction requires a container client")
    # Resolve architecture-dependent constants before starting anything.
    interpreter_path = ctx.triple.interpreter_path
    platform = ctx.triple.docker_platform

    logger.info("Launching a container to extract the Swift SDK for %s...", ctx.triple)
    async with ctx.containers.container(base_image, platform) as container_id:
        extractor = ContainerSysrootExtractor(ctx, container_id, distribution)
        await extractor.run(interpreter_path)


async def copy_target_from_distribution(
    ctx: SysrootContext,
    distribution_path: Path,
    layout: tuple[tuple[str, str, bool], ...] = DISTRIBUTION_PATHS,
) -> None:
    """Mirror Swift core libraries and headers from an unpacked distribution."""
    logger.info("Copying Swift core libraries for %s into the Swift SDK bundle...", ctx.triple)
    log = ctx.run_logger
    with log.step("copy-distribution"):
        for within_package, within_sdk, optional in layout:
            source = distribution_path / within_package
            if not await ctx.fs.exists(source):
                if optional:
                    log.path_skipped(str(source), "not present in distribution")
                    continue
                raise MissingPathError("copy-distribution", source, source="distribution")
            target = await ctx.fs.mirror(source, ctx.sdk_dir / within_sdk)
            log.path_copied(str(source), str(target))


async def copy_wasi_sysroot(ctx: SysrootContext, wasi_sysroot: Path) -> None:
    """Mirror the contents of a WASI sysroot into the SDK directory."""
    log = ctx.run_logger
    with log.step("copy-wasi-sysroot"):
        if not await ctx.fs.exists(wasi_sysroot):
            raise MissingPathError("copy-wasi-sysroot", wasi_sysroot, source="the local filesystem")
        for target in await ctx.fs.mirror_contents(wasi_sysroot, ctx.sdk_dir):
            log.path_copied(str(wasi_sysroot / target.name), str(target))


async def fetch_target_distribution(
    ctx: SysrootContext,
    swift_version: str,
    distribution: LinuxDistribution,
) -> Path:
    """Download and unpack the target toolchain, returning its ``usr`` directory."""
    if ctx.http_client is None:
        raise ConfigurationError("Downloading a toolchain requires an HTTP client")
    artifacts = DownloadableArtifacts(
        swift_version=swift_version,
        distribution=distribution,
        triple=ctx.triple,
        cache_dir=ctx.paths.artifacts_cache_path,
        base_url=ctx.download_base_url,
    )
    artifact = artifacts.target_swift
    log = ctx.run_logger

    with log.step("download-toolchain"):
        log.download_start(artifact.remote_url)
        archive = await ctx.engine.execute(
            DownloadArtifactQuery(artifact, ctx.http_client, ctx.fs.executor, reporter=log.download_progress)
        )

    with log.step("unpack-toolchain"):
        unpack_dir = archive.parent / archive.name.removesuffix(".tar.gz")
        await ctx.fs.remove_recursively(unpack_dir)
        await ctx.fs.unpack_tarball(archive, unpack_dir)

    usr_dir = await ctx.fs.executor.run(find_usr_dir, unpack_dir)
    if usr_dir is None:
        raise MissingPathError("unpack-toolchain", unpack_dir / "usr", source="toolchain archive")
    return usr_dir


def find_usr_dir(unpack_dir: Path) -> Path | None:
    """Locate ``usr`` in an unpacked toolchain, at the top or one level down."""
    if (unpack_dir / "usr").is_dir():
        return unpack_dir / "usr"
    candidates = sorted(p for p in unpack_dir.glob("*/usr") if p.is_dir())
    return candidates[0] if candidates else None
