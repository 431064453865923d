"""System operational logging.

Provides the system logger for operational events that aren't part of the
decision audit trail (errored policies, load failures).
"""

from cedar_acp.telemetry.system.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    get_system_logger,
    set_console_level,
)

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "set_console_level",
]
