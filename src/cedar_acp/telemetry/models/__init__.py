"""Pydantic models for log event types."""

from cedar_acp.telemetry.models.decision import DecisionEvent, PolicyErrorLog

__all__ = [
    "DecisionEvent",
    "PolicyErrorLog",
]
