"""Expression evaluator - computes the value of a condition for one request.

The evaluator is a pure function of (request, entity store, expression).
It never mutates its inputs; the only state it carries is the call-scoped
hierarchy resolver and a node counter for deadline checks.

Every failure is raised as a typed EvalError (see cedar_acp.exceptions).
The authorizer catches those per policy. The one exception is
AuthorizationTimeout: it is a HostError and aborts the whole call.

Evaluation rules worth knowing:
- `&&` / `||` evaluate left to right. An error on the left propagates. A
  left value that already decides the result skips the right operand,
  even if the right operand would have raised.
- `has` never raises on absence; missing keys and unresolved entities give
  false.
- `==` between different tags raises TypeMismatch. Set operations use plain
  structural equality and never raise on mixed tags.
- Long arithmetic is checked against the signed 64-bit range.
"""

from __future__ import annotations

__all__ = [
    "Deadline",
    "Evaluator",
    "like_matches",
]

import time
from dataclasses import dataclass

from cedar_acp.entities import EntityStore, HierarchyResolver
from cedar_acp.exceptions import (
    AttributeNotFound,
    AuthorizationTimeout,
    ExpressionTooDeep,
    UnexpectedType,
    UnresolvedEntity,
)
from cedar_acp.extensions import ExtensionRegistry, default_registry
from cedar_acp.pdp.expr import (
    WILDCARD,
    And,
    BinaryOp,
    Expr,
    ExtensionCall,
    GetAttr,
    HasAttr,
    If,
    Is,
    Like,
    Literal,
    Neg,
    Not,
    Op,
    Or,
    RecordExpr,
    SetExpr,
    Var,
    VarName,
)
from cedar_acp.pdp.request import Request
from cedar_acp.values import (
    FALSE,
    TRUE,
    Bool,
    EntityRef,
    Long,
    Record,
    SetValue,
    String,
    Value,
    check_long,
    compare,
    expect,
    type_name,
    values_equal,
)

# Deadline is checked once per this many evaluated nodes
_DEADLINE_CHECK_INTERVAL = 256


@dataclass(frozen=True, slots=True)
class Deadline:
    """Wall-clock limit for one authorization call (monotonic clock)."""

    expires_at: float
    budget_seconds: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=time.monotonic() + seconds, budget_seconds=seconds)

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self) -> None:
        """Raise AuthorizationTimeout if the deadline has passed."""
        if self.expired:
            raise AuthorizationTimeout(self.budget_seconds)


def like_matches(pattern: tuple[str | None, ...], text: str) -> bool:
    """Return True iff text matches a wildcard pattern.

    The first literal run is anchored as a prefix and the last as a suffix;
    the runs between wildcards are placed left to right with str.find.
    Leftmost placement of each run never loses a match for `*`-only
    patterns, so matching never backtracks.
    """
    segments = [""]
    for part in pattern:
        if part is WILDCARD:
            segments.append("")
        else:
            segments[-1] += part

    if len(segments) == 1:
        return text == segments[0]

    prefix, *middle, suffix = segments
    if len(prefix) + len(suffix) > len(text):
        return False
    if not text.startswith(prefix) or not text.endswith(suffix):
        return False

    position = len(prefix)
    end = len(text) - len(suffix)
    for segment in middle:
        found = text.find(segment, position, end)
        if found < 0:
            return False
        position = found + len(segment)
    return True


class Evaluator:
    """Evaluates expressions against one request and entity store.

    Args:
        request: The request supplying principal/action/resource/context.
        store: Entity snapshot for attribute access and `in`.
        resolver: Hierarchy resolver to share between the evaluators of one
            call. A fresh one is created from store when omitted.
        extensions: Extension function registry (built-ins by default).
        deadline: Optional wall-clock limit, checked periodically.
    """

    def __init__(
        self,
        request: Request,
        store: EntityStore,
        resolver: HierarchyResolver | None = None,
        extensions: ExtensionRegistry | None = None,
        deadline: Deadline | None = None,
    ) -> None:
        self._request = request
        self._store = store
        self._resolver = resolver if resolver is not None else store.resolver()
        self._extensions = extensions if extensions is not None else default_registry()
        self._deadline = deadline
        self._steps = 0

        self._variables: dict[VarName, Value] = {
            VarName.PRINCIPAL: EntityRef(request.principal),
            VarName.ACTION: EntityRef(request.action),
            VarName.RESOURCE: EntityRef(request.resource),
            VarName.CONTEXT: request.context,
        }

    def evaluate(self, expr: Expr) -> Value:
        """Evaluate an expression to a value.

        Raises:
            EvalError: Any evaluation failure (type, attribute, extension, ...).
            ExpressionTooDeep: If nesting exhausts the interpreter stack.
            AuthorizationTimeout: If the deadline passes during evaluation.
        """
        try:
            return self._eval(expr)
        except RecursionError:
            raise ExpressionTooDeep("expression nesting exceeds the evaluator's recursion limit") from None

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _eval(self, expr: Expr) -> Value:
        if self._deadline is not None:
            self._steps += 1
            if self._steps % _DEADLINE_CHECK_INTERVAL == 0:
                self._deadline.check()

        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Var):
            return self._variables[expr.name]
        if isinstance(expr, And):
            return self._eval_and(expr)
        if isinstance(expr, Or):
            return self._eval_or(expr)
        if isinstance(expr, BinaryOp):
            return self._eval_binary(expr)
        if isinstance(expr, GetAttr):
            return self._eval_get_attr(expr)
        if isinstance(expr, HasAttr):
            return self._eval_has_attr(expr)
        if isinstance(expr, Not):
            operand = expect(self._eval(expr.arg), Bool, "operand of !")
            return FALSE if operand.value else TRUE
        if isinstance(expr, Neg):
            operand = expect(self._eval(expr.arg), Long, "operand of unary -")
            return check_long(-operand.value, f"-({operand})")
        if isinstance(expr, If):
            return self._eval_if(expr)
        if isinstance(expr, Like):
            text = expect(self._eval(expr.base), String, "left operand of like")
            return Bool(like_matches(expr.pattern, text.value))
        if isinstance(expr, Is):
            return self._eval_is(expr)
        if isinstance(expr, ExtensionCall):
            args = [self._eval(arg) for arg in expr.args]
            return self._extensions.call(expr.name, args)
        if isinstance(expr, SetExpr):
            return SetValue.of(self._eval(element) for element in expr.elements)
        if isinstance(expr, RecordExpr):
            return Record.of({key: self._eval(value) for key, value in expr.fields})
        raise TypeError(f"Not an expression node: {type(expr).__name__}")

    # =========================================================================
    # Logical operators
    # =========================================================================

    def _eval_and(self, expr: And) -> Value:
        left = expect(self._eval(expr.left), Bool, "left operand of &&")
        if not left.value:
            return FALSE
        return expect(self._eval(expr.right), Bool, "right operand of &&")

    def _eval_or(self, expr: Or) -> Value:
        left = expect(self._eval(expr.left), Bool, "left operand of ||")
        if left.value:
            return TRUE
        return expect(self._eval(expr.right), Bool, "right operand of ||")

    def _eval_if(self, expr: If) -> Value:
        condition = expect(self._eval(expr.condition), Bool, "condition of if")
        return self._eval(expr.then_expr if condition.value else expr.else_expr)

    # =========================================================================
    # Attributes
    # =========================================================================

    def _eval_get_attr(self, expr: GetAttr) -> Value:
        base = self._eval(expr.base)
        if isinstance(base, Record):
            value = base.get(expr.attr)
            if value is None:
                raise AttributeNotFound(f"record does not have the attribute `{expr.attr}`", attribute=expr.attr)
            return value
        if isinstance(base, EntityRef):
            entity = self._store.get(base.uid)
            if entity is None:
                raise UnresolvedEntity(base.uid)
            value = entity.get_attr(expr.attr)
            if value is None:
                raise AttributeNotFound(f"{base.uid} does not have the attribute `{expr.attr}`", attribute=expr.attr)
            return value
        raise UnexpectedType(
            f"cannot access attribute `{expr.attr}` of {type_name(base)}",
            expected=(Record.tag, EntityRef.tag),
            actual=type_name(base),
        )

    def _eval_has_attr(self, expr: HasAttr) -> Value:
        base = self._eval(expr.base)
        if isinstance(base, Record):
            return Bool(expr.attr in base)
        if isinstance(base, EntityRef):
            entity = self._store.get(base.uid)
            return Bool(entity is not None and entity.has_attr(expr.attr))
        raise UnexpectedType(
            f"cannot test attribute `{expr.attr}` of {type_name(base)}",
            expected=(Record.tag, EntityRef.tag),
            actual=type_name(base),
        )

    # =========================================================================
    # Binary operators
    # =========================================================================

    def _eval_binary(self, expr: BinaryOp) -> Value:
        op = expr.op
        left = self._eval(expr.left)
        right = self._eval(expr.right)

        if op is Op.EQ:
            return Bool(values_equal(left, right))
        if op is Op.NEQ:
            return Bool(not values_equal(left, right))
        if op is Op.LT:
            return Bool(compare(left, right) < 0)
        if op is Op.LTE:
            return Bool(compare(left, right) <= 0)
        if op is Op.GT:
            return Bool(compare(left, right) > 0)
        if op is Op.GTE:
            return Bool(compare(left, right) >= 0)
        if op in (Op.ADD, Op.SUB, Op.MUL):
            return self._arithmetic(op, left, right)
        if op is Op.IN:
            return self._eval_in(left, right)
        if op is Op.CONTAINS:
            container = expect(left, SetValue, "left operand of contains")
            return Bool(right in container)
        if op is Op.CONTAINS_ALL:
            container = expect(left, SetValue, "left operand of containsAll")
            wanted = expect(right, SetValue, "argument of containsAll")
            return Bool(wanted.elements <= container.elements)
        if op is Op.CONTAINS_ANY:
            container = expect(left, SetValue, "left operand of containsAny")
            wanted = expect(right, SetValue, "argument of containsAny")
            return Bool(not wanted.elements.isdisjoint(container.elements))
        raise TypeError(f"Unknown operator: {op!r}")

    @staticmethod
    def _arithmetic(op: Op, left: Value, right: Value) -> Long:
        lhs = expect(left, Long, f"left operand of {op.value}")
        rhs = expect(right, Long, f"right operand of {op.value}")
        if op is Op.ADD:
            result = lhs.value + rhs.value
        elif op is Op.SUB:
            result = lhs.value - rhs.value
        else:
            result = lhs.value * rhs.value
        return check_long(result, f"{lhs} {op.value} {rhs}")

    def _eval_in(self, left: Value, right: Value) -> Value:
        member = expect(left, EntityRef, "left operand of in")
        if isinstance(right, EntityRef):
            return Bool(self._resolver.is_ancestor(member.uid, right.uid))
        if isinstance(right, SetValue):
            # Type-check every element before answering, so the result does
            # not depend on set iteration order
            targets = [expect(element, EntityRef, "element of right operand of in") for element in right]
            return Bool(any(self._resolver.is_ancestor(member.uid, target.uid) for target in targets))
        raise UnexpectedType(
            f"right operand of in: expected Entity or Set, got {type_name(right)}",
            expected=(EntityRef.tag, SetValue.tag),
            actual=type_name(right),
        )

    def _eval_is(self, expr: Is) -> Value:
        subject = expect(self._eval(expr.base), EntityRef, "left operand of is")
        if subject.uid.type != expr.entity_type:
            return FALSE
        if expr.in_expr is None:
            return TRUE
        return self._eval_in(subject, self._eval(expr.in_expr))
