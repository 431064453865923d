"""Entities command group for cedar-acp CLI."""

from __future__ import annotations

__all__ = ["entities"]

import sys
from collections import Counter
from pathlib import Path

import click

from cedar_acp.exceptions import LoadError
from cedar_acp.extensions import default_registry
from cedar_acp.loader import load_entities

from ..styling import style_error, style_success


@click.group()
def entities() -> None:
    """Entity file commands."""
    pass


@entities.command("validate")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def entities_validate(path: Path) -> None:
    """Validate an entity file.

    Checks JSON syntax, entity structure, attribute values, duplicate UIDs
    and cycles in the parent hierarchy.

    Exit codes:
        0: Entity file is valid
        1: Entity file is invalid or not found
    """
    try:
        store = load_entities(path, default_registry())
    except (FileNotFoundError, LoadError) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    by_type = Counter(entity.uid.type for entity in store)
    click.echo(style_success(f"Entity file valid: {path}"))
    click.echo(f"  {len(store)} entit{'ies' if len(store) != 1 else 'y'} defined")
    for entity_type, count in sorted(by_type.items()):
        click.echo(f"    {entity_type}: {count}")
