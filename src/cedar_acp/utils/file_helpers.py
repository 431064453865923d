"""Shared file utilities for cedar-acp.

Provides common utilities used by config and the loaders:
- get_app_dir: OS-appropriate application directory
- compute_file_checksum: SHA256 checksum for file integrity
- set_secure_permissions: Secure file/directory permissions
- require_file_exists: FileNotFoundError with a helpful message
- read_json_file: JSON parsing with consistent error messages
- format_validation_errors: Pydantic errors as an indented list
"""

from __future__ import annotations

__all__ = [
    "compute_file_checksum",
    "format_validation_errors",
    "get_app_dir",
    "read_json_file",
    "require_file_exists",
    "set_secure_permissions",
]

import hashlib
import json
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from cedar_acp.constants import APP_NAME


def get_app_dir() -> Path:
    """Get the OS-appropriate application directory.

    Uses click.get_app_dir() which returns:
    - macOS: ~/Library/Application Support/cedar-acp
    - Linux: ~/.config/cedar-acp (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\cedar-acp

    Returns:
        Path to the application directory.
    """
    return Path(click.get_app_dir(APP_NAME))


def compute_file_checksum(file_path: Path) -> str:
    """Compute SHA256 checksum of file content.

    Returns:
        str: Checksum in format "sha256:<hex_digest>".

    Raises:
        FileNotFoundError: If file doesn't exist.
        OSError: If file cannot be read.
    """
    with open(file_path, "rb") as f:
        content = f.read()
    return f"sha256:{hashlib.sha256(content).hexdigest()}"


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Restrict a file (0o600) or directory (0o700) to its owner.

    Does nothing on Windows. Permission errors are ignored.
    """
    if sys.platform == "win32":
        return

    try:
        path.chmod(0o700 if is_directory else 0o600)
    except OSError:
        pass  # Permission changes might fail on some systems


def require_file_exists(file_path: Path, file_type: str = "file", init_hint: bool = False) -> None:
    """Raise FileNotFoundError with helpful message if file doesn't exist.

    Args:
        file_path: Path to check.
        file_type: Description for error message (e.g., "configuration", "policy").
        init_hint: If True, suggest running 'cedar-acp config init'.

    Raises:
        FileNotFoundError: If file doesn't exist.
    """
    if file_path.exists():
        return

    hint = f"\nRun '{APP_NAME} config init' to create a {file_type} file." if init_hint else ""
    raise FileNotFoundError(f"{file_type.capitalize()} file not found at {file_path}.{hint}")


def read_json_file(file_path: Path, file_type: str, error_cls: type[Exception] = ValueError) -> Any:
    """Read and parse a JSON file.

    Args:
        file_path: Path to JSON file.
        file_type: Description for error messages (e.g., "policy", "entities").
        error_cls: Exception raised for unreadable or invalid files.

    Raises:
        FileNotFoundError: If the file does not exist.
        error_cls: If the file cannot be read or is not valid JSON.
    """
    require_file_exists(file_path, file_type=file_type)
    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise error_cls(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except RecursionError:
        raise error_cls(f"Invalid JSON in {file_type} file {file_path}: nesting too deep to decode") from None
    except OSError as e:
        raise error_cls(f"Could not read {file_type} file {file_path}: {e}") from e


def format_validation_errors(error: ValidationError) -> str:
    """Render pydantic errors one per line as '  - <loc>: <msg>'."""
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"]) or "(root)"
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)
