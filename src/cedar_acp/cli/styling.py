"""CLI output styling utilities.

- Cyan bold for section headers and labels
- Green for success and ALLOW
- Red for errors and DENY
- Dim for secondary details
"""

from __future__ import annotations

__all__ = [
    "style_decision",
    "style_dim",
    "style_error",
    "style_header",
    "style_label",
    "style_success",
    "style_warning",
]

import click

from cedar_acp.pdp.decision import Decision


def style_header(title: str) -> str:
    """Section header, e.g. "--- Logging ---"."""
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_label(label: str) -> str:
    """Label with colon suffix, e.g. "Policies:"."""
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_success(message: str) -> str:
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    return click.style(message, dim=True)


def style_warning(message: str) -> str:
    return click.style(f"Warning: {message}", fg="yellow", bold=True)


def style_decision(decision: Decision) -> str:
    """ALLOW in green, DENY in red, both bold.

    Example:
        >>> click.echo(style_decision(Decision.ALLOW))
        ALLOW
    """
    color = "green" if decision is Decision.ALLOW else "red"
    return click.style(decision.value.upper(), fg=color, bold=True)
