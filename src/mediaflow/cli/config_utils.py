"""
Configuration Utilities for CLI Commands

Loads the application configuration for a command and applies its
logging level.
"""

from typing import Any, Dict, Optional

import typer

from mediaflow.cli.utils import console, setup_logging
from mediaflow.core.config import AppConfig, ConfigManager


def load_config_from_cli(
    config_file: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> AppConfig:
    """
    Load configuration from CLI arguments with proper error handling.

    Also configures logging for the effective log level.

    Raises:
        typer.Exit: If configuration is invalid
    """
    try:
        config_manager = ConfigManager(config_file=config_file)
        app_config = config_manager.load_config(cli_args=cli_args or {})
    except Exception as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    warnings = config_manager.validate_config(app_config)
    if warnings:
        console.print("[yellow]Configuration warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  • {warning}")

    setup_logging(app_config.get_log_level())
    return app_config


def build_cli_args(
    verbose: Optional[bool] = None,
    debug: Optional[bool] = None,
    **kwargs: Any
) -> Dict[str, Any]:
    """Collect non-None CLI values into the dictionary ConfigManager expects."""
    cli_args: Dict[str, Any] = {'verbose': verbose, 'debug': debug, **kwargs}
    return {key: value for key, value in cli_args.items() if value is not None}
