"""
Command-line interface for stylemix.

This package contains CLI implementations using Click.
Uses only the public API: from stylemix import ...
"""

from stylemix.cli.commands import cli, main

__all__ = ["cli", "main"]
