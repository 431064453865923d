"""Configuration management for cedar-acp.

Defines Pydantic models for application configuration. The config file is
optional for the library; the CLI reads it to fill in defaults for
authorizer limits, log locations and default policy/entity files.

Configuration is stored as JSON at get_config_path():
- macOS: ~/Library/Application Support/cedar-acp/config.json
- Linux: ~/.config/cedar-acp/config.json
- Windows: %APPDATA%/cedar-acp/config.json

Example config:
    {
      "logging": {"log_dir": "~/.local/state", "log_level": "INFO", "decision_log": true},
      "authorizer": {"max_workers": 4, "timeout_ms": 500},
      "store": {"policies_path": "~/acp/policies.json", "entities_path": null}
    }
"""

from __future__ import annotations

__all__ = [
    "AppConfig",
    "AuthorizerConfig",
    "DEFAULT_LOG_DIR",
    "LoggingConfig",
    "StoreConfig",
    "get_config_path",
    "get_decisions_log_path",
    "get_log_root",
    "get_system_log_path",
]

import json
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cedar_acp.constants import (
    CONFIG_FILENAME,
    DECISIONS_LOG_FILENAME,
    DEFAULT_MAX_WORKERS,
    LOG_SUBDIR,
    MAX_MAX_WORKERS,
    MAX_TIMEOUT_MS,
    MIN_MAX_WORKERS,
    MIN_TIMEOUT_MS,
    SYSTEM_LOG_FILENAME,
)
from cedar_acp.exceptions import ConfigurationError
from cedar_acp.utils.file_helpers import (
    format_validation_errors,
    get_app_dir,
    read_json_file,
    require_file_exists,
    set_secure_permissions,
)


# =============================================================================
# Platform-specific defaults
# =============================================================================


def _get_platform_log_dir() -> str:
    """Get platform-appropriate base log directory following OS conventions.

    Returns:
        Platform-specific base log directory path (unexpanded).
        Logs go in <base>/cedar_acp_logs/.

    Platform conventions:
        - macOS: ~/Library/Logs
        - Linux: ~/.local/state (XDG_STATE_HOME)
        - Windows: ~/AppData/Local
    """
    if sys.platform == "darwin":
        return "~/Library/Logs"
    elif sys.platform == "win32":
        return "~/AppData/Local"
    else:
        return os.environ.get("XDG_STATE_HOME", "~/.local/state")


DEFAULT_LOG_DIR = _get_platform_log_dir()


# =============================================================================
# Configuration sections
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Logs are stored under <log_dir>/cedar_acp_logs/:
        <log_dir>/
        └── cedar_acp_logs/
            ├── system/
            │   └── system.jsonl        # WARNING and above
            └── audit/
                └── decisions.jsonl     # One entry per decision (if decision_log)

    Attributes:
        log_dir: Base directory for logs.
        log_level: Console level for system events (DEBUG or INFO).
        decision_log: Whether to write the decision audit log.
    """

    log_dir: str = Field(default=DEFAULT_LOG_DIR, min_length=1)
    log_level: Literal["DEBUG", "INFO"] = "INFO"
    decision_log: bool = True

    model_config = ConfigDict(extra="forbid")


class AuthorizerConfig(BaseModel):
    """Authorizer limits.

    Attributes:
        max_workers: Threads used to evaluate policies (1 = sequential).
        timeout_ms: Optional wall-clock budget per authorization call.
    """

    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=MIN_MAX_WORKERS, le=MAX_MAX_WORKERS)
    timeout_ms: int | None = Field(default=None, ge=MIN_TIMEOUT_MS, le=MAX_TIMEOUT_MS)

    model_config = ConfigDict(extra="forbid")

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout_ms / 1000 if self.timeout_ms is not None else None


class StoreConfig(BaseModel):
    """Default input files, used when the CLI is not given explicit paths."""

    policies_path: str | None = Field(default=None, min_length=1)
    entities_path: str | None = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    """Main application configuration for cedar-acp.

    Attributes:
        logging: Log locations and levels.
        authorizer: Worker count and per-call budget.
        store: Default policy and entity files.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    authorizer: AuthorizerConfig = Field(default_factory=AuthorizerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    model_config = ConfigDict(extra="forbid")

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist and restricts them
        (0o700) and the file (0o600) to the owner.

        Args:
            config_path: Path where the config JSON file should be saved.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        set_secure_permissions(config_path.parent, is_directory=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)

        set_secure_permissions(config_path)

    @classmethod
    def load_from_files(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config JSON file.

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ConfigurationError: If config file is invalid.
        """
        require_file_exists(config_path, file_type="configuration", init_hint=True)
        data = read_json_file(config_path, "config", error_cls=ConfigurationError)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration in {config_path}:\n{format_validation_errors(e)}\n"
                "Run 'cedar-acp config init --force' to reconfigure."
            ) from e


# =============================================================================
# Paths
# =============================================================================


def get_config_path() -> Path:
    """Get the path to the config file in the OS-appropriate app directory."""
    return get_app_dir() / CONFIG_FILENAME


def get_log_root(config: AppConfig) -> Path:
    """<log_dir>/cedar_acp_logs, with ~ expanded."""
    return Path(config.logging.log_dir).expanduser() / LOG_SUBDIR


def get_decisions_log_path(config: AppConfig) -> Path:
    return get_log_root(config) / "audit" / DECISIONS_LOG_FILENAME


def get_system_log_path(config: AppConfig) -> Path:
    return get_log_root(config) / "system" / SYSTEM_LOG_FILENAME
