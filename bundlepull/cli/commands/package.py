"""``bundlepull package`` — write files into a deterministic layer tarball."""

from __future__ import annotations

import shutil
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from bundlepull.config import config
from bundlepull.core.archiver import ArchiveError, TarImage

console = Console()


def package_cmd(
    files: list[str] = typer.Option(
        ...,
        "--file",
        "-f",
        help="File or directory to include (repeatable).",
    ),
    exclude: list[str] = typer.Option(
        None,
        "--exclude",
        help="Relative path to leave out (repeatable).",
    ),
    output: str = typer.Option(
        ...,
        "--output",
        "-o",
        help="Path of the tarball to write.",
    ),
    bundle: bool = typer.Option(
        False,
        "--bundle",
        help="Mark the package as a bundle.",
    ),
) -> None:
    """Package files as a single canonical tar layer.

    The same inputs always produce a byte-identical tarball.
    """
    tar_image = TarImage(files, exclude or [], temp_dir=config.temp_dir)
    try:
        file_image = tar_image.as_file_bundle() if bundle else tar_image.as_file_image()
    except ArchiveError as exc:
        console.print(f"[bold red]Packaging failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    with file_image:
        manifest = file_image.manifest()
        try:
            with file_image.open() as src, open(output, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except OSError as exc:
            console.print(f"[bold red]Writing '{escape(output)}' failed:[/bold red] {escape(str(exc))}")
            raise typer.Exit(code=1)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Package written![/bold green]",
                "",
                f"[bold]Output:[/bold]          {escape(str(Path(output)))}",
                f"[bold]Kind:[/bold]            {'bundle' if bundle else 'image'}",
                f"[bold]Layer digest:[/bold]    {file_image.digest}",
                f"[bold]Layer size:[/bold]      {file_image.size} bytes",
                f"[bold]Manifest digest:[/bold] {manifest.digest}",
            ]),
            title="[bold]bundlepull[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    # Plain digest for scripting
    console.print(file_image.digest)
