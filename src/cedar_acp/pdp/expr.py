"""Expression tree for policy conditions.

Nodes are frozen dataclasses, so a parsed policy is immutable and can be
shared by concurrent evaluations. The evaluator dispatches on node class;
`Expr` is the closed union of all node kinds.

Node kinds:
    Literal         constant value
    Var             principal / action / resource / context
    GetAttr         e.attr
    HasAttr         e has attr
    Not, Neg        !e, -e
    And, Or         e && e, e || e (short-circuiting)
    BinaryOp        ==, !=, <, <=, >, >=, +, -, *, in, contains, containsAll, containsAny
    Like            e like "pat*tern"
    Is              e is Type [in e]
    If              if c then a else b
    ExtensionCall   name(args...)
    SetExpr         [e, ...]
    RecordExpr      {"k": e, ...}
"""

from __future__ import annotations

__all__ = [
    "And",
    "BinaryOp",
    "Expr",
    "ExtensionCall",
    "GetAttr",
    "HasAttr",
    "If",
    "Is",
    "Like",
    "Literal",
    "Neg",
    "Not",
    "Op",
    "Or",
    "RecordExpr",
    "SetExpr",
    "Var",
    "VarName",
    "WILDCARD",
    "conjoin",
]

from dataclasses import dataclass
from enum import Enum
from typing import Union

from cedar_acp.values import TRUE, Value

# Marker for an unescaped `*` in a Like pattern
WILDCARD = None


class VarName(str, Enum):
    """The four request variables a policy can refer to."""

    PRINCIPAL = "principal"
    ACTION = "action"
    RESOURCE = "resource"
    CONTEXT = "context"


class Op(str, Enum):
    """Binary operators, valued by their policy-language spelling."""

    EQ = "=="
    NEQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    ADD = "+"
    SUB = "-"
    MUL = "*"
    IN = "in"
    CONTAINS = "contains"
    CONTAINS_ALL = "containsAll"
    CONTAINS_ANY = "containsAny"


@dataclass(frozen=True, slots=True)
class Literal:
    value: Value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Var:
    name: VarName

    def __str__(self) -> str:
        return self.name.value


@dataclass(frozen=True, slots=True)
class GetAttr:
    base: "Expr"
    attr: str

    def __str__(self) -> str:
        if self.attr.isidentifier():
            return f"{self.base}.{self.attr}"
        return f'{self.base}["{self.attr}"]'


@dataclass(frozen=True, slots=True)
class HasAttr:
    base: "Expr"
    attr: str

    def __str__(self) -> str:
        return f"{self.base} has {self.attr}"


@dataclass(frozen=True, slots=True)
class Not:
    arg: "Expr"

    def __str__(self) -> str:
        return f"!({self.arg})"


@dataclass(frozen=True, slots=True)
class Neg:
    arg: "Expr"

    def __str__(self) -> str:
        return f"-({self.arg})"


@dataclass(frozen=True, slots=True)
class And:
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        return f"({self.left} && {self.right})"


@dataclass(frozen=True, slots=True)
class Or:
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        return f"({self.left} || {self.right})"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: Op
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        if self.op in (Op.CONTAINS, Op.CONTAINS_ALL, Op.CONTAINS_ANY):
            return f"{self.left}.{self.op.value}({self.right})"
        return f"({self.left} {self.op.value} {self.right})"


@dataclass(frozen=True, slots=True)
class Like:
    """String wildcard match.

    Attributes:
        base: Expression producing the String to test.
        pattern: Literal text segments interleaved with WILDCARD markers.
            Each WILDCARD matches any (possibly empty) run of characters.
    """

    base: "Expr"
    pattern: tuple[str | None, ...]

    @classmethod
    def from_text(cls, base: "Expr", text: str) -> "Like":
        """Build from pattern text where `*` is a wildcard.

        The only escapes are `\\*` (literal star) and `\\\\` (literal
        backslash), so pattern_text() reproduces the source.

        Raises:
            ValueError: On any other escape or a trailing backslash.
        """
        parts: list[str | None] = []
        literal: list[str] = []
        chars = iter(text)
        for char in chars:
            if char == "\\":
                escaped = next(chars, None)
                if escaped not in ("*", "\\"):
                    shown = "end of pattern" if escaped is None else repr(escaped)
                    raise ValueError(f"invalid escape in like pattern {text!r}: backslash before {shown}")
                literal.append(escaped)
            elif char == "*":
                if literal:
                    parts.append("".join(literal))
                    literal = []
                parts.append(WILDCARD)
            else:
                literal.append(char)
        if literal:
            parts.append("".join(literal))
        return cls(base, tuple(parts))

    def pattern_text(self) -> str:
        return "".join(
            "*" if part is None else part.replace("\\", "\\\\").replace("*", "\\*") for part in self.pattern
        )

    def __str__(self) -> str:
        return f'{self.base} like "{self.pattern_text()}"'


@dataclass(frozen=True, slots=True)
class Is:
    """Entity type test, optionally combined with hierarchy membership."""

    base: "Expr"
    entity_type: str
    in_expr: "Expr | None" = None

    def __str__(self) -> str:
        if self.in_expr is None:
            return f"{self.base} is {self.entity_type}"
        return f"{self.base} is {self.entity_type} in {self.in_expr}"


@dataclass(frozen=True, slots=True)
class If:
    condition: "Expr"
    then_expr: "Expr"
    else_expr: "Expr"

    def __str__(self) -> str:
        return f"if {self.condition} then {self.then_expr} else {self.else_expr}"


@dataclass(frozen=True, slots=True)
class ExtensionCall:
    name: str
    args: tuple["Expr", ...]

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(a) for a in self.args)})"


@dataclass(frozen=True, slots=True)
class SetExpr:
    elements: tuple["Expr", ...]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True, slots=True)
class RecordExpr:
    fields: tuple[tuple[str, "Expr"], ...]

    def __str__(self) -> str:
        return "{" + ", ".join(f'"{k}": {v}' for k, v in self.fields) + "}"


Expr = Union[
    Literal,
    Var,
    GetAttr,
    HasAttr,
    Not,
    Neg,
    And,
    Or,
    BinaryOp,
    Like,
    Is,
    If,
    ExtensionCall,
    SetExpr,
    RecordExpr,
]


def conjoin(exprs: list[Expr]) -> Expr:
    """Left-nested `&&` of exprs; an empty list is `true`."""
    if not exprs:
        return Literal(TRUE)
    result = exprs[0]
    for expr in exprs[1:]:
        result = And(result, expr)
    return result
