"""Generate commands: sdkgen generate, sdkgen recipes."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import click
from rich import box
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sdkgen.cli.main import console, setup_logging
from sdkgen.cli.progress import GenerationProgress
from sdkgen.core.errors import ConfigurationError, SdkGenError


def _build_recipe(
    recipe_name: str,
    distribution_name: str,
    distribution_version: str,
    swift_version: str,
    with_docker: bool,
    base_docker_image: str | None,
    from_distribution: str | None,
    wasi_sysroot: str | None,
):
    """Instantiate the named recipe from command-line options."""
    from sdkgen.core.models import LinuxDistribution
    from sdkgen.recipes import get_recipe

    if recipe_name == "wasm":
        if not from_distribution:
            raise ConfigurationError("The wasm recipe requires --from-distribution")
        return get_recipe(
            "wasm",
            swift_version=swift_version,
            target_distribution=from_distribution,
            wasi_sysroot=wasi_sysroot,
        )

    distribution = LinuxDistribution.parse(distribution_name, distribution_version)
    return get_recipe(
        recipe_name,
        distribution=distribution,
        swift_version=swift_version,
        with_docker=with_docker,
        base_docker_image=base_docker_image,
        from_distribution=from_distribution,
    )


@click.command()
@click.option("--recipe", "recipe_name", default="linux", show_default=True, help="Recipe to build with")
@click.option("--target", "target", default="x86_64-unknown-linux-gnu", show_default=True, help="Target triple")
@click.option("--distribution", "distribution_name", default="ubuntu", show_default=True,
              help="Target Linux distribution (ubuntu, rhel)")
@click.option("--distribution-version", default="", help="Distribution release, e.g. 22.04 or ubi9")
@click.option("--swift-version", default="5.10", show_default=True, help="Swift release to bundle")
@click.option("--with-docker/--no-docker", default=True, help="Extract the sysroot from a container")
@click.option("--base-docker-image", default=None, help="Override the container image")
@click.option("--from-distribution", type=click.Path(exists=True, file_okay=False), default=None,
              help="Copy from an unpacked toolchain usr directory instead")
@click.option("--wasi-sysroot", type=click.Path(exists=True, file_okay=False), default=None,
              help="WASI sysroot to include (wasm recipe)")
@click.option("--host-triple", "host_triples", multiple=True, help="Supported host triple (repeatable)")
@click.option("--artifact-id", default=None, help="Override the artifact bundle identifier")
@click.option("--bundle-version", default=None, help="Version recorded in the bundle manifest")
@click.option("--source-root", default=None, type=click.Path(file_okay=False), help="Override source root")
@click.option("--verbose", "-v", count=True, help="Verbosity level: -v per-path, -vv debug details")
def generate(
    recipe_name: str,
    target: str,
    distribution_name: str,
    distribution_version: str,
    swift_version: str,
    with_docker: bool,
    base_docker_image: str | None,
    from_distribution: str | None,
    wasi_sysroot: str | None,
    host_triples: tuple[str, ...],
    artifact_id: str | None,
    bundle_version: str | None,
    source_root: str | None,
    verbose: int,
):
    """Generate a Swift SDK artifact bundle for a target triple."""
    from sdkgen.build.docker import DockerClient
    from sdkgen.build.http import HTTPClient
    from sdkgen.build.runner import GenerationRequest
    from sdkgen.build.runner import run as run_generation
    from sdkgen.config import get_settings
    from sdkgen.core.models import Triple

    setup_logging(verbose)
    settings = get_settings()

    try:
        triple = Triple.parse(target)
        recipe = _build_recipe(
            recipe_name,
            distribution_name,
            distribution_version,
            swift_version,
            with_docker,
            base_docker_image,
            from_distribution,
            wasi_sysroot,
        )
        request = GenerationRequest(
            recipe=recipe,
            triple=triple,
            source_root=Path(source_root) if source_root else settings.source_root,
            bundle_version=bundle_version or settings.bundle_version,
            artifact_id=artifact_id,
            host_triples=[Triple.parse(t) for t in host_triples] or None,
            download_base_url=settings.swift_download_base_url,
        )
    except SdkGenError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(
        Panel(
            f"[bold]Recipe:[/bold] {recipe.name}\n"
            f"[bold]Target:[/bold] {triple}\n"
            f"[bold]Distribution:[/bold] {recipe.distribution}\n"
            f"[bold]Swift:[/bold] {swift_version}\n"
            f"[bold]Source root:[/bold] {request.source_root}",
            title="[bold cyan]sdkgen[/bold cyan]",
            border_style="cyan",
        )
    )

    start_time = time.time()
    progress = GenerationProgress()
    try:
        with Live(progress, console=console, refresh_per_second=4):
            result = run_generation(
                request,
                containers=DockerClient(settings.docker_executable),
                http_client=HTTPClient(
                    timeout=settings.download_timeout,
                    chunk_size=settings.download_chunk_size,
                ),
                verbosity=verbose,
                progress=progress,
                max_workers=settings.worker_threads,
            )
    except ConfigurationError as e:
        console.print(f"\n[red]Generation failed:[/red] {escape(str(e))}")
        sys.exit(1)
    except SdkGenError as e:
        console.print(f"\n[red]Generation failed:[/red] {escape(str(e))}")
        console.print("[dim]This error may be transient, re-running can help.[/dim]")
        sys.exit(1)

    elapsed = time.time() - start_time

    table = Table(title="Generation Summary", box=box.ROUNDED)
    table.add_column("Step", style="bold", no_wrap=True)
    table.add_column("Copied", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Removed", justify="right", style="dim")
    for step in result.step_stats:
        table.add_row(step.name, str(len(step.copied)), str(len(step.skipped)), str(len(step.removed)))

    console.print()
    console.print(table)
    for notice in result.skip_notices:
        console.print(f"[yellow]Skipped optional path:[/yellow] {notice}")
    console.print(f"\n[bold]Bundle:[/bold] {result.paths.artifact_bundle_path}")
    console.print(f"[bold]Time:[/bold] {elapsed:.1f}s")


@click.command()
def recipes():
    """List the available recipes."""
    from sdkgen.recipes import list_recipes

    for name in list_recipes():
        console.print(f"  [cyan]{name}[/cyan]")
