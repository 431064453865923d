"""Authorize command for cedar-acp CLI.

Decides one request against a policy file and an entity file.
"""

from __future__ import annotations

__all__ = ["authorize"]

import json
import logging
import sys
from pathlib import Path

import click

from cedar_acp.config import AppConfig, get_config_path, get_decisions_log_path, get_system_log_path
from cedar_acp.constants import (
    DEFAULT_MAX_WORKERS,
    EXIT_ALLOW,
    EXIT_DENY,
    EXIT_LOAD_ERROR,
    MAX_MAX_WORKERS,
    MAX_TIMEOUT_MS,
    MIN_MAX_WORKERS,
    MIN_TIMEOUT_MS,
)
from cedar_acp.entities import EntityStore
from cedar_acp.exceptions import ConfigurationError, HostError, LoadError
from cedar_acp.extensions import default_registry
from cedar_acp.loader import load_entities, load_policies, load_request
from cedar_acp.pdp import Authorizer, PolicySet, Response
from cedar_acp.telemetry.audit.decision_logger import DecisionEventLogger
from cedar_acp.telemetry.system.system_logger import (
    configure_system_logger_file,
    set_console_level,
)

from ..styling import style_decision, style_dim, style_error, style_label, style_warning


def _load_optional_config() -> AppConfig | None:
    """Load the config file if there is one.

    Raises:
        ConfigurationError: If the file exists but is invalid.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return None
    return AppConfig.load_from_files(config_path)


def _print_response(response: Response, policies: PolicySet) -> None:
    click.echo(style_label("Decision") + " " + style_decision(response.decision))

    if response.reasons:
        click.echo(style_label("Reasons") + " " + ", ".join(response.reasons))

    if response.satisfied_forbids:
        click.echo(style_label("Denied by"))
        for policy_id in response.satisfied_forbids:
            click.echo(f"  [{policy_id}]")
            policy = policies.get(policy_id)
            if policy is not None:
                for key, value in policy.annotations:
                    click.echo(style_dim(f"    @{key}({json.dumps(value)})"))
    elif not response.allowed:
        click.echo(style_dim("No permit policy was satisfied (default deny)"))

    if response.errors:
        click.echo(style_label("Errors"))
        for error in response.errors:
            click.echo(f"  [{error.policy_id}] {error.message}")


@click.command()
@click.option(
    "--policies",
    "-p",
    "policies_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Policy file (default: store.policies_path from config)",
)
@click.option(
    "--entities",
    "-e",
    "entities_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Entity file (default: store.entities_path from config, else no entities)",
)
@click.option(
    "--request",
    "-r",
    "request_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Request file",
)
@click.option("--json", "as_json", is_flag=True, help="Output the response as JSON")
@click.option(
    "--workers",
    type=click.IntRange(MIN_MAX_WORKERS, MAX_MAX_WORKERS),
    help="Worker threads for policy evaluation (default: from config, else 1)",
)
@click.option(
    "--timeout-ms",
    type=click.IntRange(MIN_TIMEOUT_MS, MAX_TIMEOUT_MS),
    help="Wall-clock budget for the call in milliseconds",
)
def authorize(
    policies_path: Path | None,
    entities_path: Path | None,
    request_path: Path,
    as_json: bool,
    workers: int | None,
    timeout_ms: int | None,
) -> None:
    """Decide one authorization request.

    Loads all three inputs first; nothing is decided if any of them is
    malformed. Decisions are written to the decision log when a config
    file exists and has logging.decision_log enabled.

    \b
    Exit codes:
        0: Allow
        1: Input could not be loaded
        2: Deny
        3: Authorization timed out
        4: Resources exhausted (worker pool could not start)
        16: Config file exists but is invalid
    """
    try:
        app_config = _load_optional_config()
    except (FileNotFoundError, ConfigurationError) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(ConfigurationError.exit_code)

    decision_logger = None
    if app_config is not None:
        if app_config.logging.log_level == "DEBUG":
            set_console_level(logging.DEBUG)
        configure_system_logger_file(get_system_log_path(app_config))
        if app_config.logging.decision_log:
            decision_logger = DecisionEventLogger.to_file(get_decisions_log_path(app_config))
        if policies_path is None and app_config.store.policies_path:
            policies_path = Path(app_config.store.policies_path).expanduser()
        if entities_path is None and app_config.store.entities_path:
            entities_path = Path(app_config.store.entities_path).expanduser()

    if policies_path is None:
        click.echo(style_error("No policy file given (use --policies or set store.policies_path)"), err=True)
        sys.exit(EXIT_LOAD_ERROR)

    registry = default_registry()
    try:
        policy_set = load_policies(policies_path, registry)
        store = load_entities(entities_path, registry) if entities_path is not None else EntityStore.empty()
        request = load_request(request_path, registry)
    except (FileNotFoundError, LoadError) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(EXIT_LOAD_ERROR)

    if len(policy_set) == 0:
        click.echo(style_warning(f"{policies_path} defines no policies; every request is denied"), err=True)

    max_workers = workers
    if max_workers is None:
        max_workers = app_config.authorizer.max_workers if app_config is not None else DEFAULT_MAX_WORKERS
    if timeout_ms is not None:
        timeout_seconds: float | None = timeout_ms / 1000
    else:
        timeout_seconds = app_config.authorizer.timeout_seconds if app_config is not None else None

    authorizer = Authorizer(
        max_workers=max_workers,
        timeout_seconds=timeout_seconds,
        decision_logger=decision_logger,
        extensions=registry,
    )
    try:
        response = authorizer.decide(request, store, policy_set)
    except HostError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(e.exit_code)

    if as_json:
        click.echo(json.dumps(response.to_dict(), indent=2))
    else:
        _print_response(response, policy_set)

    sys.exit(EXIT_ALLOW if response.allowed else EXIT_DENY)
