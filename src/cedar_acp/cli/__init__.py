"""Command-line interface for cedar-acp.

Provides commands for authorizing requests, validating policy and entity
files, and managing configuration.
"""

from .main import cli, main

__all__ = ["cli", "main"]
