"""
CLI module for hieralookup.

Provides the command-line interface using Click.
"""

from hieralookup.cli.main import cli, main

__all__ = ["main", "cli"]
