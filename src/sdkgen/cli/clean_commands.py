"""Clean command: remove downloaded artifacts and generated bundles."""

from __future__ import annotations

import shutil
from pathlib import Path

import click

from sdkgen.cli.main import console


@click.command()
@click.option("--source-root", default=None, type=click.Path(file_okay=False), help="Override source root")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt")
def clean(source_root: str | None, yes: bool):
    """Remove the source root: cached downloads, bundles and logs.

    Use --yes to skip the confirmation prompt.
    """
    from sdkgen.config import get_settings

    root = Path(source_root) if source_root else get_settings().source_root

    if not root.exists():
        console.print("[dim]Nothing to clean, source root does not exist.[/dim]")
        return

    if not yes:
        console.print(f"This will delete [bold]{root}[/bold] and all its contents.")
        if not click.confirm("Continue?"):
            console.print("[dim]Aborted.[/dim]")
            return

    shutil.rmtree(root)
    console.print(f"[green]Cleaned:[/green] {root}")
