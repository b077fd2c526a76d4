"""sdkgen command-line interface."""

from sdkgen.cli.main import cli, main

__all__ = ["cli", "main"]
