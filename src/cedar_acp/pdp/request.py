"""Authorization request model."""

from __future__ import annotations

__all__ = ["Request"]

from dataclasses import dataclass, field

from cedar_acp.values import EntityUID, Record


@dataclass(frozen=True, slots=True)
class Request:
    """One authorization question: may principal perform action on resource?

    Attributes:
        principal: Entity initiating the action.
        action: Entity naming the action (e.g. Action::"view").
        resource: Entity the action targets.
        context: Request-specific values (source IP, call arguments, ...).
    """

    principal: EntityUID
    action: EntityUID
    resource: EntityUID
    context: Record = field(default_factory=Record.of)

    def describe(self) -> str:
        return f"{self.principal} -> {self.action} -> {self.resource}"
