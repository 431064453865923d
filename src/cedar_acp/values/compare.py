"""Equality, ordering and range checks over runtime values.

Rules:
- `==` / `!=` compare structurally within a tag; different tags are a
  TypeMismatch, never `false`.
- Set membership uses plain structural equality and never errors, so a set
  may hold mixed tags.
- Ordering is defined only for Long, u256, datetime and duration, each
  against its own tag.
"""

from __future__ import annotations

__all__ = [
    "LONG_MAX",
    "LONG_MIN",
    "check_long",
    "compare",
    "expect",
    "is_orderable",
    "type_name",
    "values_equal",
]

from typing import TypeVar

from cedar_acp.exceptions import ArithmeticOverflow, TypeMismatch, UnexpectedType
from cedar_acp.values.core import Long
from cedar_acp.values.extension import Datetime, Duration, UInt256

LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1

_ORDERABLE = (Long, UInt256, Datetime, Duration)

V = TypeVar("V")


def type_name(value: object) -> str:
    """Return the tag name of a value for error messages."""
    return getattr(type(value), "tag", type(value).__name__)


def check_long(result: int, operation: str) -> Long:
    """Wrap an integer result as a Long, failing on 64-bit overflow.

    Args:
        result: Exact integer result of the operation.
        operation: Description for the error message (e.g. "1 + 2").

    Raises:
        ArithmeticOverflow: If result is outside the signed 64-bit range.
    """
    if result < LONG_MIN or result > LONG_MAX:
        raise ArithmeticOverflow(f"integer overflow in {operation}")
    return Long(result)


def expect(value: object, cls: type[V], context: str) -> V:
    """Return value if it has the given tag, else raise UnexpectedType.

    Args:
        value: Runtime value to check.
        cls: Expected value class.
        context: What the operand is used for, for the error message.
    """
    if isinstance(value, cls):
        return value
    expected = getattr(cls, "tag", cls.__name__)
    raise UnexpectedType(
        f"{context}: expected {expected}, got {type_name(value)}",
        expected=(expected,),
        actual=type_name(value),
    )


def values_equal(left: object, right: object) -> bool:
    """Structural equality for `==`.

    Raises:
        TypeMismatch: If the operands carry different tags.
    """
    if type(left) is not type(right):
        raise TypeMismatch(
            f"cannot compare {type_name(left)} with {type_name(right)}",
            expected=(type_name(left),),
            actual=type_name(right),
        )
    return left == right


def is_orderable(value: object) -> bool:
    return isinstance(value, _ORDERABLE)


def _ordering_key(value: object) -> int:
    if isinstance(value, (Long, UInt256)):
        return value.value
    return value.millis  # type: ignore[attr-defined]


def compare(left: object, right: object) -> int:
    """Three-way comparison for `<`, `<=`, `>`, `>=`.

    Returns:
        Negative, zero or positive as left is less than, equal to or
        greater than right.

    Raises:
        TypeMismatch: If either operand is not orderable or the tags differ.
    """
    if not is_orderable(left) or type(left) is not type(right):
        raise TypeMismatch(
            f"cannot order {type_name(left)} against {type_name(right)}",
            expected=tuple(cls.tag for cls in _ORDERABLE),
            actual=type_name(left) if not is_orderable(left) else type_name(right),
        )
    lk, rk = _ordering_key(left), _ordering_key(right)
    return (lk > rk) - (lk < rk)
