"""CLI application setup using Typer.

Provides the command-line interface for toolcalls operations.
"""

from toolcalls.cli.main import app

__all__ = ["app"]
