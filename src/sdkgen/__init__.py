"""sdkgen - generate Swift SDK artifact bundles for cross compilation.

Usage:
    from pathlib import Path

    from sdkgen import GenerationRequest, LinuxDistribution, LinuxRecipe, Triple, run
    from sdkgen.build.docker import DockerClient

    recipe = LinuxRecipe(LinuxDistribution.parse("ubuntu", "22.04"), swift_version="5.10")
    request = GenerationRequest(
        recipe=recipe,
        triple=Triple.parse("aarch64-unknown-linux-gnu"),
        source_root=Path(".sdkgen"),
    )
    result = run(request, containers=DockerClient())
"""

from sdkgen.build.runner import GenerationRequest, RunResult, generate, run
from sdkgen.core.models import DistributionFamily, LinuxDistribution, Triple
from sdkgen.recipes import LinuxRecipe, Recipe, WebAssemblyRecipe

__all__ = [
    "DistributionFamily",
    "GenerationRequest",
    "LinuxDistribution",
    "LinuxRecipe",
    "Recipe",
    "RunResult",
    "Triple",
    "WebAssemblyRecipe",
    "generate",
    "run",
]

__version__ = "0.1.0"
