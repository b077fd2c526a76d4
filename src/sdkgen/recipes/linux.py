"""Linux recipe: sysroot from a container image or a toolchain distribution."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sdkgen.core.errors import ConfigurationError
from sdkgen.core.models import (
    LinuxDistribution,
    PathsConfiguration,
    ToolProperties,
    Toolset,
    Triple,
    TripleProperties,
)
from sdkgen.recipes.base import Recipe, register_recipe

if TYPE_CHECKING:
    from sdkgen.build.sysroot import SysrootContext

logger = logging.getLogger(__name__)


@register_recipe("linux")
class LinuxRecipe(Recipe):
    """Builds an SDK for a Linux target.

    The sysroot comes from one of three sources, checked in order:

    1. ``from_distribution``: an already unpacked toolchain directory
       (its ``usr`` directory) on the local disk;
    2. ``with_docker``: a container started from ``base_docker_image``,
       defaulting to the official ``swift:<version>-<release>`` image;
    3. otherwise the target toolchain tarball is downloaded and unpacked.
    """

    def __init__(
        self,
        distribution: LinuxDistribution,
        swift_version: str,
        with_docker: bool = True,
        base_docker_image: str | None = None,
        from_distribution: str | Path | None = None,
    ) -> None:
        self._distribution = distribution
        self.swift_version = swift_version
        self.with_docker = with_docker
        self.base_docker_image = base_docker_image
        self.from_distribution = Path(from_distribution) if from_distribution else None

    @property
    def distribution(self) -> LinuxDistribution:
        return self._distribution

    @property
    def base_image(self) -> str:
        if self.base_docker_image:
            return self.base_docker_image
        return f"swift:{self.swift_version}-{self.distribution.release_name}"

    def validate_triple(self, triple: Triple) -> None:
        if not triple.is_linux:
            raise ConfigurationError(f"The linux recipe cannot target {triple}")

    def apply_toolset_options(self, toolset: Toolset, triple: Triple) -> None:
        toolset.swift_compiler = ToolProperties(
            extra_cli_options=["-use-ld=lld", "-Xlinker", "-R/usr/lib/swift/linux/"],
        )
        toolset.cxx_compiler = ToolProperties(extra_cli_options=["-lstdc++"])
        toolset.linker = ToolProperties(path="ld.lld")
        toolset.librarian = ToolProperties(path="llvm-ar")

    def apply_destination_options(
        self,
        metadata: TripleProperties,
        paths: PathsConfiguration,
        triple: Triple,
    ) -> None:
        sdk_dir = paths.relative_to_sdk_root(paths.sdk_dir_path)
        metadata.swift_resources_path = f"{sdk_dir}/usr/lib/swift"
        metadata.swift_static_resources_path = f"{sdk_dir}/usr/lib/swift_static"
        metadata.include_search_paths = [f"{sdk_dir}/usr/include"]
        metadata.library_search_paths = [f"{sdk_dir}/usr/lib"]

    def default_artifact_id(self, triple: Triple) -> str:
        dist = self.distribution
        return f"{self.swift_version}-RELEASE_{dist.family.value}_{dist.version}_{triple.arch}"

    def sdk_dir_name(self, triple: Triple) -> str:
        dist = self.distribution
        if dist.is_ubuntu:
            return f"ubuntu-{dist.release_name}"
        return f"{dist.family.value}-{dist.version}".rstrip("-")

    async def make_sysroot(self, context: SysrootContext) -> None:
        from sdkgen.build.sysroot import (
            copy_target_from_container,
            copy_target_from_distribution,
            fetch_target_distribution,
        )

        if self.from_distribution is not None:
            logger.info("Using local toolchain distribution at %s", self.from_distribution)
            await copy_target_from_distribution(context, self.from_distribution)
        elif self.with_docker:
            await copy_target_from_container(context, self.distribution, self.base_image)
        else:
            usr_dir = await fetch_target_distribution(context, self.swift_version, self.distribution)
            await copy_target_from_distribution(context, usr_dir)
