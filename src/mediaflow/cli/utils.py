"""
CLI Utilities

Shared console, logging setup and result rendering for CLI commands.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mediaflow.processing.result import ProcessingResult

console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print a formatted header for CLI output."""
    if subtitle:
        header_text = f"[bold cyan]{title}[/bold cyan]\n[dim]{subtitle}[/dim]"
    else:
        header_text = f"[bold cyan]{title}[/bold cyan]"

    console.print(Panel(header_text, border_style="cyan"))


def format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def print_mapping(title: str, data: Mapping[str, Any]) -> None:
    """Render a flat key/value table."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    for key, value in data.items():
        table.add_row(str(key), format_value(value))

    console.print(table)


def print_result(result: ProcessingResult, title: str = "Processing Result") -> None:
    """Render a ProcessingResult as a table."""
    rows: Dict[str, Any] = {
        'Status': "[green]✓ Success[/green]" if result.success else "[red]✗ Failed[/red]",
    }
    if result.job_id:
        rows['Job ID'] = result.job_id
    if result.output_path:
        rows['Output'] = result.output_path
    if len(result.processed_files) > 1:
        rows['Files'] = "\n".join(result.processed_files)
    if result.error_message:
        rows['Error'] = f"[red]{result.error_message}[/red]"
    if result.processing_time:
        rows['Time'] = f"{result.processing_time:.2f}s"
    for key, value in result.metadata.items():
        rows[key] = value

    print_mapping(title, rows)


def exit_for_result(result: ProcessingResult) -> None:
    """Exit with status 1 for failure results."""
    if not result.success:
        raise typer.Exit(1)
