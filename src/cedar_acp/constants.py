"""Application-wide constants for cedar-acp.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "CONFIG_FILENAME",
    # Policy format
    "POLICY_SCHEMA_VERSION",
    "POLICY_ID_PREFIX",
    "MAX_EXPRESSION_DEPTH",
    # Authorizer limits
    "DEFAULT_MAX_WORKERS",
    "MIN_MAX_WORKERS",
    "MAX_MAX_WORKERS",
    "MIN_TIMEOUT_MS",
    "MAX_TIMEOUT_MS",
    # Log layout
    "LOG_SUBDIR",
    "DECISIONS_LOG_FILENAME",
    "SYSTEM_LOG_FILENAME",
    # CLI exit codes
    "EXIT_ALLOW",
    "EXIT_LOAD_ERROR",
    "EXIT_DENY",
]

# ============================================================================
# Application identity
# ============================================================================

APP_NAME = "cedar-acp"
CONFIG_FILENAME = "config.json"

# ============================================================================
# Policy format
# ============================================================================

POLICY_SCHEMA_VERSION = "1"

# Prefix of content-hash ids given to policies without an explicit id
POLICY_ID_PREFIX = "policy_"

# Loaders reject deeper expression trees and JSON values before they reach the evaluator
MAX_EXPRESSION_DEPTH = 200

# ============================================================================
# Authorizer limits
# ============================================================================

DEFAULT_MAX_WORKERS = 1
MIN_MAX_WORKERS = 1
MAX_MAX_WORKERS = 64

MIN_TIMEOUT_MS = 1
MAX_TIMEOUT_MS = 60_000

# ============================================================================
# Log layout (under config.logging.log_dir)
# ============================================================================

LOG_SUBDIR = "cedar_acp_logs"
DECISIONS_LOG_FILENAME = "decisions.jsonl"
SYSTEM_LOG_FILENAME = "system.jsonl"

# ============================================================================
# CLI exit codes (HostError subclasses carry their own)
# ============================================================================

EXIT_ALLOW = 0
EXIT_LOAD_ERROR = 1
EXIT_DENY = 2
