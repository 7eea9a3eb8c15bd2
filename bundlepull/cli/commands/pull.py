"""``bundlepull pull`` — pull files from a bundle, image, or bundle lock file.

Validates that exactly one reference source was given and that the output
path is safe before any registry or filesystem access, then runs the pull
and prints a summary.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from bundlepull.config import config
from bundlepull.core.classifier import UsageError
from bundlepull.core.lockfile import LockFileError
from bundlepull.core.materializer import ExtractionError
from bundlepull.core.puller import Puller, check_output_path
from bundlepull.core.reference_source import ReferenceSource
from bundlepull.models.references import InvalidReferenceError
from bundlepull.registry import Registry, RegistryError

console = Console()


def pull_cmd(
    image: str = typer.Option(
        None,
        "--image",
        "-i",
        help="Image reference to pull.",
    ),
    bundle: str = typer.Option(
        None,
        "--bundle",
        "-b",
        help="Bundle reference to pull.",
    ),
    lock: str = typer.Option(
        None,
        "--lock",
        help="Path to a BundleLock file naming the bundle to pull.",
    ),
    output: str = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output directory path.",
    ),
    registry_username: str = typer.Option(
        None,
        "--registry-username",
        help="Registry username (default: BUNDLEPULL_REGISTRY_USERNAME).",
    ),
    registry_password: str = typer.Option(
        None,
        "--registry-password",
        help="Registry password (default: BUNDLEPULL_REGISTRY_PASSWORD).",
    ),
    registry_insecure: bool = typer.Option(
        False,
        "--registry-insecure",
        help="Talk to the registry over plain http.",
    ),
) -> None:
    """Pull an image or bundle and extract it into a directory.

    Examples:

      bundlepull pull -b registry.example.com/app1-bundle -o /tmp/app1-bundle

      bundlepull pull -i registry.example.com/app1-image -o /tmp/app1-image
    """
    try:
        source = ReferenceSource.from_flags(image=image, bundle=bundle, lock=lock)
        check_output_path(output)
    except UsageError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    registry = Registry.from_config(
        config,
        username=registry_username,
        password=registry_password,
        insecure=registry_insecure or None,
    )
    puller = Puller(registry, config=config)

    try:
        result = puller.pull(source, Path(output))
    except (
        UsageError,
        RegistryError,
        ExtractionError,
        LockFileError,
        InvalidReferenceError,
        OSError,
    ) as exc:
        console.print(f"[bold red]Pull failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    if result.lock_rewritten is None:
        lock_line = "[dim]n/a (image)[/dim]"
    elif result.lock_rewritten:
        lock_line = "[green]relocated to bundle repository[/green]"
    else:
        lock_line = "[yellow]unchanged[/yellow]"

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Pull complete![/bold green]",
                "",
                f"[bold]Reference:[/bold]  {escape(result.reference)}",
                f"[bold]Kind:[/bold]       {'bundle' if result.is_bundle else 'image'}",
                f"[bold]Output:[/bold]     {escape(str(result.output_path))}",
                f"[bold]Image lock:[/bold] {lock_line}",
            ]),
            title="[bold]bundlepull[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
