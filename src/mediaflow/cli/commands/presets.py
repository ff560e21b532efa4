"""
Preset Commands

Browse the built-in processing presets.
"""

from typing import Annotated

import typer
from rich.table import Table

from mediaflow.cli.utils import console, print_mapping
from mediaflow.processing.presets import PRESETS_VERSION, get_preset, list_presets

app = typer.Typer(
    name="presets",
    help="Browse processing presets",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("list")
def presets_list(
    family: Annotated[str, typer.Argument(help="Media family: image, video or audio")],
):
    """
    List the presets of a media family.
    """
    names = list_presets(family)
    if not names:
        console.print(f"[red]No presets for family: {family}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{family.title()} presets (v{PRESETS_VERSION})", header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Format", style="green")
    table.add_column("Settings", style="white")

    for name in names:
        settings = get_preset(family, name).to_dict()
        output_format = settings.pop('output_format', None) or "-"
        settings.pop('family', None)
        summary = ", ".join(f"{key}={value}" for key, value in settings.items() if value is not None)
        table.add_row(name, output_format, summary)

    console.print(table)


@app.command("show")
def presets_show(
    family: Annotated[str, typer.Argument(help="Media family: image, video or audio")],
    name: Annotated[str, typer.Argument(help="Preset name")],
):
    """
    Show every setting of a preset.
    """
    preset = get_preset(family, name)
    if preset is None:
        console.print(f"[red]Unknown preset: {family}/{name}[/red]")
        raise typer.Exit(1)

    print_mapping(f"Preset {family}/{name}", preset.to_dict())
