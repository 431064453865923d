"""Policy command group for cedar-acp CLI.

Provides policy file subcommands.
"""

from __future__ import annotations

__all__ = ["policy"]

import json
import sys
from pathlib import Path

import click

from cedar_acp.exceptions import LoadError
from cedar_acp.extensions import default_registry
from cedar_acp.loader import document_to_policy_set, load_policy_document
from cedar_acp.pdp import Effect, PolicySet
from cedar_acp.utils.file_helpers import compute_file_checksum

from ..styling import style_dim, style_error, style_label, style_success


def _load(path: Path) -> tuple[dict[str, object], PolicySet]:
    """Load a policy file, exiting with code 1 if it is invalid.

    Returns:
        (document as JSON with generated ids filled in, decoded PolicySet)
    """
    try:
        document = load_policy_document(path)
        policy_set = document_to_policy_set(document, default_registry())
    except (FileNotFoundError, LoadError) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)
    return document.model_dump(mode="json", by_alias=True, exclude_none=True), policy_set


@click.group()
def policy() -> None:
    """Policy file commands."""
    pass


@policy.command("validate")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def policy_validate(path: Path) -> None:
    """Validate a policy file.

    Checks the policy file for:
    - Valid JSON syntax
    - Schema validation (effects, scopes, conditions)
    - Decodable condition expressions and literals
    - Unique policy ids

    Exit codes:
        0: Policy file is valid
        1: Policy file is invalid or not found
    """
    _, policy_set = _load(path)

    permits = sum(1 for p in policy_set if p.effect is Effect.PERMIT)
    forbids = len(policy_set) - permits
    click.echo(style_success(f"Policy file valid: {path}"))
    click.echo(f"  {len(policy_set)} polic{'ies' if len(policy_set) != 1 else 'y'} defined")
    click.echo(f"  {permits} permit, {forbids} forbid")


@policy.command("show")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def policy_show(path: Path, as_json: bool) -> None:
    """Display the policies in a file.

    Policies without an id are shown with their generated content-hash id.
    """
    document, policy_set = _load(path)

    if as_json:
        document["_metadata"] = {
            "file": str(path),
            "checksum": compute_file_checksum(path),
            "policies_count": len(policy_set),
        }
        click.echo(json.dumps(document, indent=2))
        return

    click.echo("\n" + style_label("Policies") + f" {path}")
    click.echo(f"Count: {len(policy_set)}")
    click.echo()

    if len(policy_set) == 0:
        click.echo(style_dim("  (no policies defined)"))
        return

    for p in policy_set:
        effect_color = "green" if p.effect is Effect.PERMIT else "red"
        click.echo(f"[{p.id}] " + click.style(p.effect.value.upper(), fg=effect_color, bold=True))
        for key, value in p.annotations:
            click.echo(style_dim(f"  @{key}({json.dumps(value)})"))
        for line in str(p).splitlines():
            click.echo(f"  {line}")
        click.echo()
