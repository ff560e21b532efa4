#!/usr/bin/env python3
"""
mediaflow CLI Main Application

Typer-based command-line interface for processing media files and managing
the async job queue.
"""

import sys
from typing import Optional

import typer
from rich.console import Console

from mediaflow.cli import __version__
from mediaflow.cli.commands import jobs, media, presets

console = Console()

app = typer.Typer(
    name="mediaflow",
    help="Media processing toolkit: images, video and audio",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command("process")(media.process)
app.command("thumbnails")(media.thumbnails)
app.command("metadata")(media.metadata)
app.command("convert")(media.convert)
app.command("worker")(jobs.worker)

app.add_typer(presets.app, name="presets", help="Browse processing presets")
app.add_typer(jobs.app, name="jobs", help="Inspect and manage queued jobs")


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]mediaflow[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    ),
):
    """
    mediaflow - resize, transcode and inspect media files

    [bold]Quick Start:[/bold]

    • Process a file: [cyan]mediaflow process in.jpg out.webp --width 800[/cyan]
    • Thumbnails: [cyan]mediaflow thumbnails in.mp4[/cyan]
    • Presets: [cyan]mediaflow presets list video[/cyan]
    • Background jobs: [cyan]mediaflow process in.mov out.mp4 --async[/cyan], then [cyan]mediaflow worker[/cyan]
    """
    pass


def main():
    """Entry point for the mediaflow console script."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
