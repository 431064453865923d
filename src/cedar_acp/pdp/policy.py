"""Policy model - effect, scope, conditions and annotations.

Policy structure:
    Policy
    ├── id: Unique within a PolicySet
    ├── effect: permit | forbid
    ├── principal / action / resource: Scope constraint (one per slot)
    ├── conditions: ordered when/unless clauses
    └── annotations: opaque str -> str metadata

A policy is satisfied when its scope matches the request and its condition
evaluates to true. The condition is the conjunction of all clauses, with
`unless` clauses negated; no clauses means `true`.

Annotations (name, message, action type, ...) are carried along for
downstream consumers. Nothing in the engine reads them.
"""

from __future__ import annotations

__all__ = [
    "Condition",
    "ConditionKind",
    "Effect",
    "Policy",
    "PolicySet",
]

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum

from cedar_acp.exceptions import DuplicatePolicyId
from cedar_acp.pdp.expr import Expr, Not, VarName, conjoin
from cedar_acp.pdp.scope import AnyScope, Scope


class Effect(str, Enum):
    """What a satisfied policy contributes to the decision."""

    PERMIT = "permit"
    FORBID = "forbid"


class ConditionKind(str, Enum):
    WHEN = "when"
    UNLESS = "unless"


@dataclass(frozen=True, slots=True)
class Condition:
    kind: ConditionKind
    body: Expr

    def as_expression(self) -> Expr:
        return self.body if self.kind is ConditionKind.WHEN else Not(self.body)

    def __str__(self) -> str:
        return f"{self.kind.value} {{ {self.body} }}"


@dataclass(frozen=True, slots=True)
class Policy:
    """A single permit or forbid statement.

    Attributes:
        id: Policy identifier (unique within its PolicySet).
        effect: PERMIT or FORBID.
        principal: Scope constraint on the request principal.
        action: Scope constraint on the request action.
        resource: Scope constraint on the request resource.
        conditions: when/unless clauses in source order.
        annotations: Key-sorted (key, value) pairs; see `annotation()`.
    """

    id: str
    effect: Effect
    principal: Scope = field(default_factory=AnyScope)
    action: Scope = field(default_factory=AnyScope)
    resource: Scope = field(default_factory=AnyScope)
    conditions: tuple[Condition, ...] = ()
    annotations: tuple[tuple[str, str], ...] = ()

    @classmethod
    def create(
        cls,
        id: str,
        effect: Effect | str,
        *,
        principal: Scope | None = None,
        action: Scope | None = None,
        resource: Scope | None = None,
        when: Iterable[Expr] = (),
        unless: Iterable[Expr] = (),
        annotations: Mapping[str, str] | None = None,
    ) -> "Policy":
        """Convenience constructor: when clauses first, then unless clauses."""
        conditions = tuple(Condition(ConditionKind.WHEN, body) for body in when) + tuple(
            Condition(ConditionKind.UNLESS, body) for body in unless
        )
        return cls(
            id=id,
            effect=Effect(effect),
            principal=principal or AnyScope(),
            action=action or AnyScope(),
            resource=resource or AnyScope(),
            conditions=conditions,
            annotations=tuple(sorted((annotations or {}).items())),
        )

    def annotation(self, key: str) -> str | None:
        for name, value in self.annotations:
            if name == key:
                return value
        return None

    def condition_expr(self) -> Expr:
        """Conjunction of all clauses (`true` when there are none)."""
        return conjoin([condition.as_expression() for condition in self.conditions])

    def _scope_exprs(self) -> list[Expr]:
        return [
            self.principal.to_expression(VarName.PRINCIPAL),
            self.action.to_expression(VarName.ACTION),
            self.resource.to_expression(VarName.RESOURCE),
        ]

    def scope_expr(self) -> Expr:
        """The three scope constraints rewritten as a condition."""
        return conjoin(self._scope_exprs())

    def as_expression(self) -> Expr:
        """Whole policy as one condition: scope `&&` clauses.

        Evaluating this to true is equivalent to the scope matching and the
        condition evaluating to true.
        """
        return conjoin(self._scope_exprs() + [condition.as_expression() for condition in self.conditions])

    def __str__(self) -> str:
        slots = []
        for name, scope in (("principal", self.principal), ("action", self.action), ("resource", self.resource)):
            rendered = str(scope)
            slots.append(f"{name} {rendered}" if rendered else name)
        head = f"{self.effect.value} ({', '.join(slots)})"
        tail = "".join(f"\n{condition}" for condition in self.conditions)
        return f"{head}{tail};"


class PolicySet:
    """Ordered collection of policies with unique ids.

    Order is kept for display only; decisions never depend on it.

    Raises:
        DuplicatePolicyId: If two policies share an id.
    """

    def __init__(self, policies: Iterable[Policy] = ()) -> None:
        self._policies: list[Policy] = []
        self._by_id: dict[str, Policy] = {}
        for policy in policies:
            if policy.id in self._by_id:
                raise DuplicatePolicyId(f"Duplicate policy id: {policy.id!r}")
            self._policies.append(policy)
            self._by_id[policy.id] = policy

    def get(self, policy_id: str) -> Policy | None:
        return self._by_id.get(policy_id)

    @property
    def ids(self) -> list[str]:
        return [policy.id for policy in self._policies]

    def __iter__(self) -> Iterator[Policy]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def __contains__(self, policy_id: object) -> bool:
        return policy_id in self._by_id
