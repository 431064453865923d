"""JSON -> expression tree decoding.

Every node is a JSON object with exactly one key naming the node kind:

    {"Value": <json value>}                         literal
    {"Var": "principal" | "action" | "resource" | "context"}
    {"!": {"arg": e}}                               not
    {"neg": {"arg": e}}                             unary minus
    {"&&" | "||" | "==" | "!=" | "<" | "<=" | ">" | ">=" | "+" | "-" | "*"
     | "in" | "contains" | "containsAll" | "containsAny": {"left": e, "right": e}}
    {".": {"left": e, "attr": name}}                attribute access
    {"has": {"left": e, "attr": name}}              attribute presence
    {"like": {"left": e, "pattern": "a*b" | [...]}} wildcard match
    {"is": {"left": e, "entity_type": T, "in"?: e}} entity type test
    {"if-then-else": {"if": e, "then": e, "else": e}}
    {"Set": [e, ...]}
    {"Record": {"key": e, ...}}
    {"<function>": [e, ...]}                        extension function call

A `like` pattern is either text (`*` wildcard, `\\*` literal star, `\\\\`
literal backslash, no other escapes) or a list of "Wildcard" /
{"Literal": text} elements.

Extension function names are not checked here: calling an unknown function
is an evaluation error of the policy that does it, not a load error.
"""

from __future__ import annotations

__all__ = ["expr_from_json"]

from typing import Any

from cedar_acp.constants import MAX_EXPRESSION_DEPTH
from cedar_acp.exceptions import MalformedPolicy
from cedar_acp.extensions import ExtensionRegistry
from cedar_acp.loader.values import value_from_json
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

_BINARY_OPS: dict[str, Op] = {op.value: op for op in Op}


class _Decoder:
    def __init__(self, registry: ExtensionRegistry | None) -> None:
        self._registry = registry

    def decode(self, data: Any, path: str, depth: int) -> Expr:
        if depth > MAX_EXPRESSION_DEPTH:
            raise MalformedPolicy(f"{path}: expression nesting exceeds {MAX_EXPRESSION_DEPTH} levels")
        if not isinstance(data, dict) or len(data) != 1:
            raise MalformedPolicy(f"{path}: expected an object with exactly one key, got {_preview(data)}")

        ((kind, body),) = data.items()
        child = depth + 1
        here = f"{path}.{kind}"

        if kind == "Value":
            return Literal(value_from_json(body, registry=self._registry, path=here))
        if kind == "Var":
            try:
                return Var(VarName(body))
            except ValueError:
                raise MalformedPolicy(f"{here}: unknown variable {body!r}") from None
        if kind in ("!", "neg"):
            arg = self.decode(self._field(body, "arg", here), f"{here}.arg", child)
            return Not(arg) if kind == "!" else Neg(arg)
        if kind in ("&&", "||") or kind in _BINARY_OPS:
            left = self.decode(self._field(body, "left", here), f"{here}.left", child)
            right = self.decode(self._field(body, "right", here), f"{here}.right", child)
            if kind == "&&":
                return And(left, right)
            if kind == "||":
                return Or(left, right)
            return BinaryOp(_BINARY_OPS[kind], left, right)
        if kind in (".", "has"):
            base = self.decode(self._field(body, "left", here), f"{here}.left", child)
            attr = self._string(body, "attr", here)
            return GetAttr(base, attr) if kind == "." else HasAttr(base, attr)
        if kind == "like":
            base = self.decode(self._field(body, "left", here), f"{here}.left", child)
            return self._like(base, self._field(body, "pattern", here), f"{here}.pattern")
        if kind == "is":
            base = self.decode(self._field(body, "left", here), f"{here}.left", child)
            entity_type = self._string(body, "entity_type", here)
            in_expr = None
            if "in" in body:
                in_expr = self.decode(body["in"], f"{here}.in", child)
            return Is(base, entity_type, in_expr)
        if kind == "if-then-else":
            return If(
                self.decode(self._field(body, "if", here), f"{here}.if", child),
                self.decode(self._field(body, "then", here), f"{here}.then", child),
                self.decode(self._field(body, "else", here), f"{here}.else", child),
            )
        if kind == "Set":
            if not isinstance(body, list):
                raise MalformedPolicy(f"{here}: expected a list of expressions")
            return SetExpr(tuple(self.decode(e, f"{here}[{i}]", child) for i, e in enumerate(body)))
        if kind == "Record":
            if not isinstance(body, dict):
                raise MalformedPolicy(f"{here}: expected an object of expressions")
            return RecordExpr(tuple((k, self.decode(v, f"{here}.{k}", child)) for k, v in sorted(body.items())))
        if isinstance(body, list):
            return ExtensionCall(kind, tuple(self.decode(a, f"{here}[{i}]", child) for i, a in enumerate(body)))
        raise MalformedPolicy(f"{path}: unknown expression kind {kind!r}")

    @staticmethod
    def _field(body: Any, name: str, path: str) -> Any:
        if not isinstance(body, dict) or name not in body:
            raise MalformedPolicy(f"{path}: missing '{name}'")
        return body[name]

    def _string(self, body: Any, name: str, path: str) -> str:
        value = self._field(body, name, path)
        if not isinstance(value, str):
            raise MalformedPolicy(f"{path}.{name}: expected a string, got {_preview(value)}")
        return value

    @staticmethod
    def _like(base: Expr, pattern: Any, path: str) -> Like:
        if isinstance(pattern, str):
            try:
                return Like.from_text(base, pattern)
            except ValueError as e:
                raise MalformedPolicy(f"{path}: {e}") from None
        if not isinstance(pattern, list):
            raise MalformedPolicy(f"{path}: expected a string or a list of pattern elements")

        parts: list[str | None] = []
        for i, element in enumerate(pattern):
            if element == "Wildcard":
                parts.append(WILDCARD)
            elif isinstance(element, dict) and set(element) == {"Literal"} and isinstance(element["Literal"], str):
                # Adjacent literals are merged so equal patterns compare equal
                if parts and parts[-1] is not WILDCARD:
                    parts[-1] = parts[-1] + element["Literal"]  # type: ignore[operator]
                else:
                    parts.append(element["Literal"])
            else:
                raise MalformedPolicy(f"{path}[{i}]: expected \"Wildcard\" or {{\"Literal\": text}}")
        return Like(base, tuple(parts))


def _preview(data: Any, limit: int = 60) -> str:
    text = repr(data)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def expr_from_json(data: Any, *, registry: ExtensionRegistry | None = None, path: str = "expr") -> Expr:
    """Decode a JSON expression tree.

    Args:
        data: Parsed JSON expression.
        registry: Registry for `__extn` values inside literals.
        path: Location in the document, for error messages.

    Raises:
        MalformedPolicy: Unknown node kind, missing field or nesting
            deeper than MAX_EXPRESSION_DEPTH.
        MalformedValue: A literal cannot be decoded (LiteralOutOfRange for
            integers outside 64 bits).
    """
    return _Decoder(registry).decode(data, path, 1)
