"""Main Typer application — imports and registers all CLI commands.

Entry point: ``bundlepull`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from bundlepull.cli.commands.package import package_cmd
from bundlepull.cli.commands.pull import pull_cmd
from bundlepull.config import config

app = typer.Typer(
    name="bundlepull",
    help="bundlepull: pull images and bundles from OCI registries into directories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="pull", help="Pull files from bundle, image, or bundle lock file.")(pull_cmd)
app.command(name="package", help="Package files into a deterministic layer tarball.")(package_cmd)


def configure_logging(level: str) -> None:
    """Send progress logs to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main() -> None:
    """CLI entry point."""
    configure_logging(config.log_level)
    app()


if __name__ == "__main__":
    main()
