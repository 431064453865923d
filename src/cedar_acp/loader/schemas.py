"""Pydantic models for the policy, entity and request JSON files.

These models check document structure only. Values and expressions inside
them are kept as raw JSON and decoded by values.py / expressions.py, which
know about extension constructors and range checks.

Policy document structure:
    PolicyDocument
    ├── version: "1"
    └── policies: list[PolicyModel]
        └── PolicyModel
            ├── id: Optional (content-hash id generated when missing)
            ├── effect: "permit" | "forbid"
            ├── principal / action / resource: ScopeModel
            ├── conditions: list[ConditionModel]
            └── annotations: dict[str, str]
"""

from __future__ import annotations

__all__ = [
    "ConditionModel",
    "EntityModel",
    "EntityUIDModel",
    "PolicyDocument",
    "PolicyModel",
    "RequestModel",
    "ScopeModel",
]

import hashlib
import json
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cedar_acp.constants import POLICY_ID_PREFIX, POLICY_SCHEMA_VERSION
from cedar_acp.pdp.scope import AnyScope, EqScope, InScope, InSetScope, IsScope, Scope
from cedar_acp.values import EntityUID


class EntityUIDModel(BaseModel):
    """{"type": T, "id": I}, optionally wrapped as {"__entity": {...}}."""

    type: str = Field(min_length=1)
    id: str

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def unwrap_entity_escape(cls, data: Any) -> Any:
        if isinstance(data, dict) and set(data) == {"__entity"}:
            return data["__entity"]
        return data

    def to_uid(self) -> EntityUID:
        return EntityUID(self.type, self.id)


class ScopeModel(BaseModel):
    """Scope constraint for one slot.

    op "All": no constraint
    op "==":  requires `entity`
    op "in":  requires exactly one of `entity` / `entities`
    op "is":  requires `entity_type`, optional `in`
    """

    op: Literal["All", "==", "in", "is"] = "All"
    entity: EntityUIDModel | None = None
    entities: list[EntityUIDModel] | None = None
    entity_type: str | None = Field(default=None, min_length=1)
    in_entity: EntityUIDModel | None = Field(default=None, alias="in")

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="after")
    def fields_match_op(self) -> Self:
        """Reject fields that the op does not use, and missing required ones."""
        present = {
            name
            for name, value in (
                ("entity", self.entity),
                ("entities", self.entities),
                ("entity_type", self.entity_type),
                ("in", self.in_entity),
            )
            if value is not None
        }
        allowed: dict[str, set[str]] = {
            "All": set(),
            "==": {"entity"},
            "in": {"entity", "entities"},
            "is": {"entity_type", "in"},
        }
        extra = present - allowed[self.op]
        if extra:
            raise ValueError(f"op '{self.op}' does not take {sorted(extra)}")
        if self.op == "==" and self.entity is None:
            raise ValueError("op '==' requires 'entity'")
        if self.op == "in" and len(present) != 1:
            raise ValueError("op 'in' requires exactly one of 'entity' or 'entities'")
        if self.op == "is" and self.entity_type is None:
            raise ValueError("op 'is' requires 'entity_type'")
        return self

    def to_scope(self) -> Scope:
        if self.op == "==":
            assert self.entity is not None
            return EqScope(self.entity.to_uid())
        if self.op == "in":
            if self.entity is not None:
                return InScope(self.entity.to_uid())
            return InSetScope.of(uid.to_uid() for uid in self.entities or [])
        if self.op == "is":
            assert self.entity_type is not None
            in_uid = self.in_entity.to_uid() if self.in_entity is not None else None
            return IsScope(self.entity_type, in_uid)
        return AnyScope()


class ConditionModel(BaseModel):
    """One when/unless clause. `body` is decoded by expressions.py."""

    kind: Literal["when", "unless"]
    body: dict[str, Any]

    model_config = ConfigDict(frozen=True, extra="forbid")


class PolicyModel(BaseModel):
    """A single policy as written in the policy file."""

    id: str | None = Field(default=None, min_length=1)
    effect: Literal["permit", "forbid"]
    principal: ScopeModel = Field(default_factory=ScopeModel)
    action: ScopeModel = Field(default_factory=ScopeModel)
    resource: ScopeModel = Field(default_factory=ScopeModel)
    conditions: list[ConditionModel] = Field(default_factory=list)
    annotations: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")


def _generate_policy_id(policy: PolicyModel) -> str:
    """Deterministic id from policy content: "policy_<8-char-hex>".

    Same content always produces the same id.
    """
    content = json.dumps(
        policy.model_dump(mode="json", exclude={"id"}, exclude_none=True, by_alias=True),
        sort_keys=True,
    )
    return f"{POLICY_ID_PREFIX}{hashlib.sha256(content.encode()).hexdigest()[:8]}"


class PolicyDocument(BaseModel):
    """Complete policy file.

    Policies without an id get a content-hash id. Duplicate ids are
    rejected when the document is turned into a PolicySet.
    """

    version: Literal["1"] = POLICY_SCHEMA_VERSION
    policies: list[PolicyModel] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def ensure_policy_ids(self) -> Self:
        if all(p.id is not None for p in self.policies):
            return self
        filled = [p if p.id is not None else p.model_copy(update={"id": _generate_policy_id(p)}) for p in self.policies]
        # Model is frozen
        object.__setattr__(self, "policies", filled)
        return self


class EntityModel(BaseModel):
    """One entity. `attrs` values are decoded by values.py."""

    uid: EntityUIDModel
    attrs: dict[str, Any] = Field(default_factory=dict)
    parents: list[EntityUIDModel] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")


class RequestModel(BaseModel):
    """One authorization request. `context` values are decoded by values.py."""

    principal: EntityUIDModel
    action: EntityUIDModel
    resource: EntityUIDModel
    context: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")
