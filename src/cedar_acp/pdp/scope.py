"""Scope constraints on a policy's principal, action and resource slots.

Each slot holds exactly one constraint:

    AnyScope              matches every entity
    EqScope(uid)          slot == uid
    InScope(uid)          slot in uid (equal, or uid is an ancestor)
    InSetScope(uids)      slot in any of uids
    IsScope(type, in)     slot has entity type `type` (and, if given, slot in `in`)

`to_expression` rewrites a constraint as an ordinary condition over the
slot variable. Structural matching in matcher.py must agree with evaluating
that expression.
"""

from __future__ import annotations

__all__ = [
    "AnyScope",
    "EqScope",
    "InScope",
    "InSetScope",
    "IsScope",
    "Scope",
]

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from cedar_acp.pdp.expr import BinaryOp, Expr, Is, Literal, Op, Var, VarName
from cedar_acp.values import TRUE, EntityRef, EntityUID, SetValue


@dataclass(frozen=True, slots=True)
class AnyScope:
    def to_expression(self, var: VarName) -> Expr:
        return Literal(TRUE)

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True, slots=True)
class EqScope:
    uid: EntityUID

    def to_expression(self, var: VarName) -> Expr:
        return BinaryOp(Op.EQ, Var(var), Literal(EntityRef(self.uid)))

    def __str__(self) -> str:
        return f"== {self.uid}"


@dataclass(frozen=True, slots=True)
class InScope:
    uid: EntityUID

    def to_expression(self, var: VarName) -> Expr:
        return BinaryOp(Op.IN, Var(var), Literal(EntityRef(self.uid)))

    def __str__(self) -> str:
        return f"in {self.uid}"


@dataclass(frozen=True, slots=True)
class InSetScope:
    """Membership in any of several entities (typically action groups)."""

    uids: tuple[EntityUID, ...]

    @classmethod
    def of(cls, uids: Iterable[EntityUID]) -> "InSetScope":
        return cls(tuple(sorted(set(uids), key=lambda uid: (uid.type, uid.id))))

    def to_expression(self, var: VarName) -> Expr:
        return BinaryOp(Op.IN, Var(var), Literal(SetValue.of(EntityRef(uid) for uid in self.uids)))

    def __str__(self) -> str:
        return "in [" + ", ".join(str(uid) for uid in self.uids) + "]"


@dataclass(frozen=True, slots=True)
class IsScope:
    entity_type: str
    in_uid: EntityUID | None = None

    def to_expression(self, var: VarName) -> Expr:
        in_expr = None if self.in_uid is None else Literal(EntityRef(self.in_uid))
        return Is(Var(var), self.entity_type, in_expr)

    def __str__(self) -> str:
        if self.in_uid is None:
            return f"is {self.entity_type}"
        return f"is {self.entity_type} in {self.in_uid}"


Scope = Union[AnyScope, EqScope, InScope, InSetScope, IsScope]
