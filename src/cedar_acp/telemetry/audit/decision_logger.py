"""Decision logging for authorization calls.

Writes one DecisionEvent per call to <log_dir>/cedar_acp_logs/audit/decisions.jsonl.
Decision logs are not controlled by log_level; they are either enabled
(config.logging.decision_log) or not created at all.
"""

from __future__ import annotations

__all__ = [
    "DecisionEventLogger",
    "create_decision_logger",
]

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from cedar_acp.constants import APP_NAME
from cedar_acp.telemetry.models.decision import DecisionEvent, PolicyErrorLog
from cedar_acp.utils.logging.logger_setup import setup_jsonl_logger
from cedar_acp.utils.logging.logging_helpers import serialize_audit_event

if TYPE_CHECKING:
    from cedar_acp.pdp.engine import Response
    from cedar_acp.pdp.request import Request


def create_decision_logger(log_path: Path) -> logging.Logger:
    """Create the raw JSONL logger for decision events.

    Args:
        log_path: Path to decisions.jsonl.

    Returns:
        Configured logger instance.
    """
    return setup_jsonl_logger(f"{APP_NAME}.audit.decisions", log_path, log_level=logging.INFO)


class DecisionEventLogger:
    """Logs authorization decisions to decisions.jsonl."""

    def __init__(self, *, logger: logging.Logger) -> None:
        self._logger = logger

    @classmethod
    def to_file(cls, log_path: Path) -> "DecisionEventLogger":
        return cls(logger=create_decision_logger(log_path))

    def log(
        self,
        *,
        request: "Request",
        response: "Response",
        policy_count: int,
        matched_count: int,
        policy_eval_ms: float,
    ) -> None:
        """Log one decision.

        Args:
            request: The decided request.
            response: The Response returned to the caller.
            policy_count: Policies in the evaluated set.
            matched_count: Policies whose scope matched.
            policy_eval_ms: Wall-clock time of the call.
        """
        event = DecisionEvent(
            decision=response.decision.value,
            principal=str(request.principal),
            action=str(request.action),
            resource=str(request.resource),
            reasons=list(response.reasons),
            satisfied_forbids=list(response.satisfied_forbids),
            errors=[PolicyErrorLog(policy_id=e.policy_id, message=e.message) for e in response.errors],
            policy_count=policy_count,
            matched_count=matched_count,
            policy_eval_ms=round(policy_eval_ms, 2),
        )
        self._logger.info(serialize_audit_event(event))
