"""sdkgen CLI: main entry point and shared utilities."""

from __future__ import annotations

import logging

import click
from rich.console import Console

console = Console()


def setup_logging(verbose: int) -> None:
    """Configure logging based on verbosity."""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@click.group()
@click.version_option(package_name="sdkgen")
def main():
    """sdkgen: generate Swift SDK bundles for cross compilation."""
    pass


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from sdkgen.cli.clean_commands import clean  # noqa: E402
from sdkgen.cli.generate_commands import generate, recipes  # noqa: E402

# Register commands
main.add_command(generate)
main.add_command(recipes)
main.add_command(clean)
