"""WebAssembly recipe: statically linked SDK over a WASI sysroot."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sdkgen.core.errors import ConfigurationError
from sdkgen.core.models import (
    DistributionFamily,
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


@register_recipe("wasm")
class WebAssemblyRecipe(Recipe):
    """Builds an SDK for ``wasm32-unknown-wasi``.

    ``target_distribution`` is the unpacked toolchain ``usr`` directory
    whose static Swift libraries are copied. ``wasi_sysroot`` is copied
    into the SDK directory as-is when given.
    """

    def __init__(
        self,
        swift_version: str,
        target_distribution: str | Path,
        wasi_sysroot: str | Path | None = None,
    ) -> None:
        self.swift_version = swift_version
        self.target_distribution = Path(target_distribution)
        self.wasi_sysroot = Path(wasi_sysroot) if wasi_sysroot else None

    @property
    def distribution(self) -> LinuxDistribution:
        return LinuxDistribution(DistributionFamily.GENERIC, "WASI")

    def validate_triple(self, triple: Triple) -> None:
        if triple.os != "wasi":
            raise ConfigurationError(f"The wasm recipe only targets WASI, got {triple}")

    def apply_toolset_options(self, toolset: Toolset, triple: Triple) -> None:
        toolset.swift_compiler = ToolProperties(extra_cli_options=["-static-stdlib"])
        toolset.linker = ToolProperties(path="wasm-ld")
        toolset.librarian = ToolProperties(path="llvm-ar")

    def apply_destination_options(
        self,
        metadata: TripleProperties,
        paths: PathsConfiguration,
        triple: Triple,
    ) -> None:
        sdk_dir = paths.relative_to_sdk_root(paths.sdk_dir_path)
        # No dynamic runtime exists on WASI; both paths point at the static one.
        metadata.swift_resources_path = f"{sdk_dir}/usr/lib/swift_static"
        metadata.swift_static_resources_path = f"{sdk_dir}/usr/lib/swift_static"

    def default_artifact_id(self, triple: Triple) -> str:
        return f"{self.swift_version}-RELEASE_{triple.triple}"

    def sdk_dir_name(self, triple: Triple) -> str:
        return "WASI"

    async def make_sysroot(self, context: SysrootContext) -> None:
        from sdkgen.build.sysroot import (
            WASM_DISTRIBUTION_PATHS,
            copy_target_from_distribution,
            copy_wasi_sysroot,
        )

        await copy_target_from_distribution(context, self.target_distribution, WASM_DISTRIBUTION_PATHS)
        if self.wasi_sysroot is not None:
            await copy_wasi_sysroot(context, self.wasi_sysroot)
        else:
            logger.info("No WASI sysroot given, the SDK will only contain Swift libraries")
