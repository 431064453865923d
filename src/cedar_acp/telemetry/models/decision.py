"""Pydantic models for decision audit logs (audit/decisions.jsonl).

The 'time' field is Optional[str] = None: events are created without a
timestamp and ISO8601Formatter adds it when the entry is written.
"""

from __future__ import annotations

__all__ = [
    "DecisionEvent",
    "PolicyErrorLog",
]

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class PolicyErrorLog(BaseModel):
    """One errored policy, as recorded in the audit log."""

    policy_id: str
    message: str


class DecisionEvent(BaseModel):
    """One authorization decision.

    Attributes:
        decision: "allow" or "deny".
        principal/action/resource: Request slots, rendered as Type::"id".
        reasons: Satisfied permit ids (ALLOW only).
        satisfied_forbids: Forbid ids behind an explicit DENY.
        errors: Policies that failed to evaluate.
        policy_count: Policies in the evaluated set.
        matched_count: Policies whose scope matched the request.
        policy_eval_ms: Wall-clock time of the call.
    """

    time: Optional[str] = None
    event: Literal["decision"] = "decision"

    decision: Literal["allow", "deny"]
    principal: str
    action: str
    resource: str

    reasons: list[str] = Field(default_factory=list)
    satisfied_forbids: list[str] = Field(default_factory=list)
    errors: list[PolicyErrorLog] = Field(default_factory=list)

    policy_count: int
    matched_count: int
    policy_eval_ms: float

    model_config = ConfigDict(frozen=True)
