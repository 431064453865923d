"""Tests for configuration models and load/save behavior."""

import json
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from cedar_acp.config import (
    AppConfig,
    AuthorizerConfig,
    LoggingConfig,
    StoreConfig,
    get_config_path,
    get_decisions_log_path,
    get_log_root,
    get_system_log_path,
)
from cedar_acp.exceptions import ConfigurationError


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def valid_config_dict() -> dict:
    """Configuration with every section filled in."""
    return {
        "logging": {"log_dir": "/tmp/logs", "log_level": "DEBUG", "decision_log": False},
        "authorizer": {"max_workers": 4, "timeout_ms": 250},
        "store": {"policies_path": "/etc/acp/policies.json", "entities_path": None},
    }


@pytest.fixture
def config_file(tmp_path: Path, valid_config_dict: dict) -> Path:
    """Write valid config to temp file and return path."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(valid_config_dict))
    return path


# ============================================================================
# Section validation
# ============================================================================


class TestLoggingConfig:
    """LoggingConfig validation tests."""

    def test_defaults(self):
        # Act
        config = LoggingConfig()

        # Assert
        assert config.log_level == "INFO"
        assert config.decision_log is True
        assert config.log_dir

    @pytest.mark.parametrize("invalid_level", ["WARNING", "ERROR", "TRACE", "debug", ""])
    def test_rejects_invalid_log_level(self, invalid_level: str):
        with pytest.raises(ValidationError):
            LoggingConfig(log_level=invalid_level)

    def test_rejects_empty_log_dir(self):
        with pytest.raises(ValidationError):
            LoggingConfig(log_dir="")


class TestAuthorizerConfig:
    """AuthorizerConfig validation tests."""

    def test_defaults_to_sequential_without_timeout(self):
        config = AuthorizerConfig()

        assert config.max_workers == 1
        assert config.timeout_ms is None
        assert config.timeout_seconds is None

    def test_timeout_seconds(self):
        assert AuthorizerConfig(timeout_ms=1500).timeout_seconds == 1.5

    @pytest.mark.parametrize("workers", [1, 64])
    def test_accepts_worker_bounds(self, workers: int):
        assert AuthorizerConfig(max_workers=workers).max_workers == workers

    @pytest.mark.parametrize("workers", [0, 65, -1])
    def test_rejects_workers_out_of_range(self, workers: int):
        with pytest.raises(ValidationError):
            AuthorizerConfig(max_workers=workers)

    @pytest.mark.parametrize("timeout_ms", [0, 60_001])
    def test_rejects_timeout_out_of_range(self, timeout_ms: int):
        with pytest.raises(ValidationError):
            AuthorizerConfig(timeout_ms=timeout_ms)


class TestStoreConfig:
    def test_paths_optional(self):
        config = StoreConfig()

        assert config.policies_path is None
        assert config.entities_path is None

    def test_rejects_unknown_field(self):
        with pytest.raises(ValidationError):
            StoreConfig(schema_path="x")


# ============================================================================
# AppConfig load/save
# ============================================================================


class TestAppConfig:
    """Loading and saving the full configuration."""

    def test_all_sections_default(self):
        config = AppConfig()

        assert config.authorizer.max_workers == 1
        assert config.store.policies_path is None

    def test_load_from_file(self, config_file: Path):
        # Act
        config = AppConfig.load_from_files(config_file)

        # Assert
        assert config.logging.log_level == "DEBUG"
        assert config.logging.decision_log is False
        assert config.authorizer.max_workers == 4
        assert config.authorizer.timeout_seconds == 0.25
        assert config.store.policies_path == "/etc/acp/policies.json"

    def test_partial_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"authorizer": {"max_workers": 2}}))

        config = AppConfig.load_from_files(path)

        assert config.authorizer.max_workers == 2
        assert config.logging.log_level == "INFO"

    def test_missing_file_has_init_hint(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="config init"):
            AppConfig.load_from_files(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{broken")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            AppConfig.load_from_files(path)

    def test_invalid_values_list_each_error(self, tmp_path: Path, valid_config_dict: dict):
        """Given two bad fields, the error names both and hints at re-init."""
        valid_config_dict["authorizer"]["max_workers"] = 0
        valid_config_dict["logging"]["log_level"] = "TRACE"
        path = tmp_path / "config.json"
        path.write_text(json.dumps(valid_config_dict))

        with pytest.raises(ConfigurationError) as exc_info:
            AppConfig.load_from_files(path)

        message = str(exc_info.value)
        assert "authorizer.max_workers" in message
        assert "logging.log_level" in message
        assert "config init --force" in message

    def test_unknown_section_rejected(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"backend": {}}))

        with pytest.raises(ConfigurationError):
            AppConfig.load_from_files(path)

    def test_save_and_reload(self, tmp_path: Path, valid_config_dict: dict):
        # Arrange
        config = AppConfig.model_validate(valid_config_dict)
        path = tmp_path / "nested" / "config.json"

        # Act
        config.save_to_file(path)
        reloaded = AppConfig.load_from_files(path)

        # Assert
        assert reloaded == config

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_save_restricts_permissions(self, tmp_path: Path):
        path = tmp_path / "nested" / "config.json"

        AppConfig().save_to_file(path)

        assert path.stat().st_mode & 0o777 == 0o600
        assert path.parent.stat().st_mode & 0o777 == 0o700


# ============================================================================
# Paths
# ============================================================================


class TestPaths:
    def test_config_path_in_app_dir(self):
        path = get_config_path()

        assert path.name == "config.json"
        assert "cedar-acp" in str(path)

    def test_log_paths(self, tmp_path: Path):
        config = AppConfig(logging=LoggingConfig(log_dir=str(tmp_path)))

        assert get_log_root(config) == tmp_path / "cedar_acp_logs"
        assert get_decisions_log_path(config) == tmp_path / "cedar_acp_logs" / "audit" / "decisions.jsonl"
        assert get_system_log_path(config) == tmp_path / "cedar_acp_logs" / "system" / "system.jsonl"

    def test_log_root_expands_home(self):
        config = AppConfig(logging=LoggingConfig(log_dir="~/logs"))

        assert "~" not in str(get_log_root(config))
