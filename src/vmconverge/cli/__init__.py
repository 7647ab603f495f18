"""CLI module for vmconverge.

This package contains all Click command definitions for the vmconverge CLI.
"""

from vmconverge.cli.main import cli, main

__all__ = ["cli", "main"]
