"""
mediaflow - media processing with content-based routing, presets and
background jobs.
"""

from mediaflow.cli import __version__

__all__ = ["__version__"]
