"""Main CLI entry point for cedar-acp.

Defines the CLI group and registers all subcommands.

Commands:
    authorize - Decide one request against policy and entity files
    config    - Configuration management (path, show, init)
    entities  - Entity file management (validate)
    policy    - Policy file management (validate, show)

Subcommand help:
    cedar-acp COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli"]

import sys

import click

from cedar_acp import __version__

from .commands.authorize import authorize
from .commands.config import config
from .commands.entities import entities
from .commands.policy import policy


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  cedar-acp config init                      Write a default config file
  cedar-acp policy validate policies.json    Check a policy file
  cedar-acp authorize \\
    --policies policies.json \\
    --entities entities.json \\
    --request request.json

Exit Codes (authorize):
  0  Allow
  1  Input could not be loaded
  2  Deny
  3  Authorization timed out
  4  Resources exhausted
  16 Invalid config file
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """cedar-acp: Cedar-style authorization decisions."""
    if version:
        click.echo(f"cedar-acp {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(authorize)
cli.add_command(config)
cli.add_command(entities)
cli.add_command(policy)


def main() -> None:
    """CLI entry point."""
    cli()
