"""Generation runner: build the sysroot, then write the descriptors."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path

from sdkgen.build.artifacts import ResultCache
from sdkgen.build.docker import ContainerClient
from sdkgen.build.engine import QueryEngine
from sdkgen.build.executor import BlockingExecutor
from sdkgen.build.filesystem import FileSystem
from sdkgen.build.http import HTTPClient
from sdkgen.build.metadata import JSONEncoding, MetadataGenerator
from sdkgen.build.sysroot import SysrootContext
from sdkgen.core.logging import GeneratorLogger, ProgressListener, StepLog, Verbosity
from sdkgen.core.models import PathsConfiguration, Triple
from sdkgen.recipes.base import Recipe


@dataclass
class GenerationRequest:
    """Everything one run needs to know, resolved by the caller."""

    recipe: Recipe
    triple: Triple
    source_root: Path
    bundle_version: str = "0.0.1"
    artifact_id: str | None = None
    host_triples: list[Triple] | None = None
    download_base_url: str = "https://download.swift.org"

    def resolved_artifact_id(self) -> str:
        return self.artifact_id or self.recipe.default_artifact_id(self.triple)


@dataclass
class RunResult:
    """Summary of a generation run."""

    paths: PathsConfiguration
    toolset_path: Path
    destination_path: Path
    sdk_settings_path: Path
    bundle_manifest_path: Path
    total_time: float = 0.0
    step_stats: list[StepLog] = field(default_factory=list)
    skip_notices: list[str] = field(default_factory=list)
    run_log: dict = field(default_factory=dict)
    log_path: Path | None = None


async def generate(
    request: GenerationRequest,
    containers: ContainerClient | None = None,
    http_client: HTTPClient | None = None,
    executor: BlockingExecutor | None = None,
    verbosity: int = 0,
    progress: ProgressListener | None = None,
) -> RunResult:
    """Execute one full generation run.

    Args:
        request: The recipe, triple and output settings of the run.
        containers: Container runtime, required by container-based recipes.
        http_client: HTTP client, required when toolchains are downloaded.
        executor: Worker pool for blocking filesystem work. A private pool
            is created and shut down when omitted.
        verbosity: Verbosity level (0=default, 1=verbose, 2=debug).
        progress: Optional live progress listener.

    Returns:
        RunResult with the written descriptor paths and step statistics.
    """
    start_time = time.time()
    recipe = request.recipe
    triple = request.triple
    recipe.validate_triple(triple)

    artifact_id = request.resolved_artifact_id()
    paths = PathsConfiguration.create(
        request.source_root,
        artifact_id,
        triple,
        recipe.sdk_dir_name(triple),
    )

    run_logger = GeneratorLogger(
        verbosity=Verbosity(min(verbosity, Verbosity.DEBUG)),
        log_dir=paths.source_root / "logs",
        progress=progress,
    )
    run_logger.run_start(triple.triple, recipe.name)

    owns_executor = executor is None
    executor = executor or BlockingExecutor()
    fs = FileSystem(executor)

    try:
        for directory in (paths.artifacts_cache_path, paths.sdk_dir_path, paths.toolchain_bin_dir_path):
            await fs.create_directory(directory)

        engine = QueryEngine(cache=ResultCache(paths.artifacts_cache_path))
        context = SysrootContext(
            paths=paths,
            triple=triple,
            fs=fs,
            run_logger=run_logger,
            engine=engine,
            containers=containers,
            http_client=http_client,
            download_base_url=request.download_base_url,
        )
        await recipe.make_sysroot(context)

        generator = MetadataGenerator(
            paths=paths,
            triple=triple,
            recipe=recipe,
            bundle_version=request.bundle_version,
            fs=fs,
            artifact_id=artifact_id,
            encoding=JSONEncoding(),
        )
        with run_logger.step("write-metadata"):
            toolset_path = await generator.generate_toolset_json()
            destination_path = await generator.generate_destination_json(toolset_path)
            sdk_settings_path = await generator.generate_sdk_settings(recipe.distribution)
            manifest_path = await generator.generate_artifact_bundle_manifest(request.host_triples)
    except BaseException as exc:
        run_logger.run_failed(exc)
        raise
    finally:
        if owns_executor:
            executor.shutdown()

    total_time = time.time() - start_time
    run_logger.run_finish(total_time)
    run_log = run_logger.run_log

    return RunResult(
        paths=paths,
        toolset_path=toolset_path,
        destination_path=destination_path,
        sdk_settings_path=sdk_settings_path,
        bundle_manifest_path=manifest_path,
        total_time=total_time,
        step_stats=list(run_log.steps.values()),
        skip_notices=run_log.skip_notices(),
        run_log=run_log.to_dict(),
        log_path=run_logger.log_path,
    )


def run(
    request: GenerationRequest,
    containers: ContainerClient | None = None,
    http_client: HTTPClient | None = None,
    verbosity: int = 0,
    progress: ProgressListener | None = None,
    max_workers: int = 4,
) -> RunResult:
    """Synchronous entry point: run ``generate`` on a fresh event loop."""
    with BlockingExecutor(max_workers=max_workers) as executor:
        return asyncio.run(
            generate(
                request,
                containers=containers,
                http_client=http_client,
                executor=executor,
                verbosity=verbosity,
                progress=progress,
            )
        )
