"""
Shared Typer option declarations.
"""

from typing import Annotated, Optional

import typer

ConfigOption = Annotated[
    Optional[str],
    typer.Option("--config", "-c", help="Configuration file path")
]
VerboseOption = Annotated[
    Optional[bool],
    typer.Option("--verbose", help="Enable verbose output")
]
DebugOption = Annotated[
    Optional[bool],
    typer.Option("--debug", help="Enable debug logging")
]
