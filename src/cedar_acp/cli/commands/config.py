"""Config command group for cedar-acp CLI.

Provides configuration management subcommands.
"""

from __future__ import annotations

__all__ = ["config"]

import json
import sys
from pathlib import Path

import click

from cedar_acp.config import (
    DEFAULT_LOG_DIR,
    AppConfig,
    AuthorizerConfig,
    LoggingConfig,
    StoreConfig,
    get_config_path,
    get_decisions_log_path,
    get_system_log_path,
)
from cedar_acp.constants import DEFAULT_MAX_WORKERS, MAX_MAX_WORKERS, MAX_TIMEOUT_MS, MIN_MAX_WORKERS, MIN_TIMEOUT_MS
from cedar_acp.exceptions import ConfigurationError

from ..styling import style_dim, style_error, style_header, style_success


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("path")
def config_path_cmd() -> None:
    """Show config file path.

    Displays the OS-appropriate config file location.
    """
    path = get_config_path()
    click.echo(str(path))

    if not path.exists():
        click.echo("(file does not exist - run 'cedar-acp config init' to create)", err=True)


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_show(as_json: bool) -> None:
    """Display current configuration."""
    config_file_path = get_config_path()

    try:
        loaded_config = AppConfig.load_from_files(config_file_path)
    except (FileNotFoundError, ConfigurationError) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    if as_json:
        config_dict = loaded_config.model_dump(mode="json")
        config_dict["_computed"] = {
            "config_file": str(config_file_path),
            "log_files": {
                "decisions": str(get_decisions_log_path(loaded_config)),
                "system": str(get_system_log_path(loaded_config)),
            },
        }
        click.echo(json.dumps(config_dict, indent=2))
        return

    click.echo("\ncedar-acp configuration:\n")

    click.echo(style_header("Logging"))
    click.echo(f"  log_dir: {loaded_config.logging.log_dir}")
    click.echo(f"  log_level: {loaded_config.logging.log_level}")
    click.echo(f"  decision_log: {loaded_config.logging.decision_log}")
    click.echo()
    click.echo("  Log files (computed from log_dir):")
    click.echo(f"    decisions: {get_decisions_log_path(loaded_config)}")
    click.echo(f"    system: {get_system_log_path(loaded_config)}")
    click.echo()

    click.echo(style_header("Authorizer"))
    click.echo(f"  max_workers: {loaded_config.authorizer.max_workers}")
    timeout = loaded_config.authorizer.timeout_ms
    click.echo(f"  timeout_ms: {timeout if timeout is not None else style_dim('(no budget)')}")
    click.echo()

    click.echo(style_header("Store"))
    click.echo(f"  policies_path: {loaded_config.store.policies_path or style_dim('(not set)')}")
    click.echo(f"  entities_path: {loaded_config.store.entities_path or style_dim('(not set)')}")
    click.echo()
    click.echo(f"Config file: {config_file_path}")


@config.command("init")
@click.option("--log-dir", default=DEFAULT_LOG_DIR, show_default=True, help="Base directory for logs")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO"]), default="INFO", show_default=True)
@click.option("--no-decision-log", is_flag=True, help="Do not write decisions.jsonl")
@click.option(
    "--max-workers",
    type=click.IntRange(MIN_MAX_WORKERS, MAX_MAX_WORKERS),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
)
@click.option("--timeout-ms", type=click.IntRange(MIN_TIMEOUT_MS, MAX_TIMEOUT_MS), help="Per-call budget")
@click.option("--policies", "policies_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--entities", "entities_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config_init(
    log_dir: str,
    log_level: str,
    no_decision_log: bool,
    max_workers: int,
    timeout_ms: int | None,
    policies_path: Path | None,
    entities_path: Path | None,
    force: bool,
) -> None:
    """Write a config file.

    Exit codes:
        0: Config written
        1: Config already exists (use --force)
    """
    config_file_path = get_config_path()
    if config_file_path.exists() and not force:
        click.echo(style_error(f"Config already exists at {config_file_path} (use --force to overwrite)"), err=True)
        sys.exit(1)

    app_config = AppConfig(
        logging=LoggingConfig(log_dir=log_dir, log_level=log_level, decision_log=not no_decision_log),
        authorizer=AuthorizerConfig(max_workers=max_workers, timeout_ms=timeout_ms),
        store=StoreConfig(
            policies_path=str(policies_path.resolve()) if policies_path else None,
            entities_path=str(entities_path.resolve()) if entities_path else None,
        ),
    )
    app_config.save_to_file(config_file_path)
    click.echo(style_success(f"Configuration saved to {config_file_path}"))
