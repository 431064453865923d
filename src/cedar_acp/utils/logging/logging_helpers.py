"""Serialization helpers for structured log events."""

from __future__ import annotations

__all__ = ["serialize_audit_event"]

from typing import Any

from pydantic import BaseModel


def serialize_audit_event(event: BaseModel) -> dict[str, Any]:
    """Serialize a Pydantic event model for audit logging.

    Excludes the 'time' field (added by ISO8601Formatter at log time) and
    None values.

    Example:
        >>> event = DecisionEvent(decision="allow", principal='User::"alice"', ...)
        >>> serialize_audit_event(event)
        {"event": "decision", "decision": "allow", "principal": 'User::"alice"', ...}
    """
    return event.model_dump(mode="json", exclude={"time"}, exclude_none=True)
