"""The `u256` extension: unsigned 256-bit integers.

Functions:
    u256(String) -> u256                      constructor, decimal digits only
    u256LessThan, u256LessThanOrEqual,
    u256GreaterThan, u256GreaterThanOrEqual   (u256, u256) -> Bool
    u256Add, u256Sub, u256Mul                 (u256, u256) -> u256

Arithmetic is exact. A result below zero or above 2**256 - 1 is an
ArithmeticOverflow, never a wraparound.
"""

from __future__ import annotations

__all__ = ["EXTENSION", "parse_u256"]

import re

from cedar_acp.exceptions import ArithmeticOverflow, ExtensionError
from cedar_acp.extensions.registry import Extension, ExtensionFunction
from cedar_acp.values import UINT256_MAX, Bool, String, UInt256

EXTENSION_NAME = "u256"

_DIGITS = re.compile(r"[0-9]+", re.ASCII)
_MAX_DIGITS = len(str(UINT256_MAX))


def parse_u256(text: str) -> UInt256:
    """Parse a non-negative decimal integer string.

    Raises:
        ExtensionError: If text is not plain decimal digits or exceeds 2**256 - 1.
    """
    if not _DIGITS.fullmatch(text):
        raise ExtensionError(EXTENSION_NAME, f"input string is not a well-formed u256 value: {text!r}")
    digits = text.lstrip("0") or "0"
    # Bound the digit count before int() so huge inputs stay cheap
    if len(digits) > _MAX_DIGITS or int(digits) > UINT256_MAX:
        raise ExtensionError(EXTENSION_NAME, "overflow when converting to u256")
    return UInt256(int(digits))


def _checked(result: int, operation: str) -> UInt256:
    if result < 0 or result > UINT256_MAX:
        raise ArithmeticOverflow(f"u256 overflow in {operation}")
    return UInt256(result)


def _u256(arg: String) -> UInt256:
    return parse_u256(arg.value)


def _lt(left: UInt256, right: UInt256) -> Bool:
    return Bool(left.value < right.value)


def _le(left: UInt256, right: UInt256) -> Bool:
    return Bool(left.value <= right.value)


def _gt(left: UInt256, right: UInt256) -> Bool:
    return Bool(left.value > right.value)


def _ge(left: UInt256, right: UInt256) -> Bool:
    return Bool(left.value >= right.value)


def _add(left: UInt256, right: UInt256) -> UInt256:
    return _checked(left.value + right.value, "u256Add")


def _sub(left: UInt256, right: UInt256) -> UInt256:
    return _checked(left.value - right.value, "u256Sub")


def _mul(left: UInt256, right: UInt256) -> UInt256:
    return _checked(left.value * right.value, "u256Mul")


_PAIR = (UInt256, UInt256)

EXTENSION = Extension(
    name=EXTENSION_NAME,
    functions=(
        ExtensionFunction("u256", (String,), _u256, is_constructor=True),
        ExtensionFunction("u256LessThan", _PAIR, _lt),
        ExtensionFunction("u256LessThanOrEqual", _PAIR, _le),
        ExtensionFunction("u256GreaterThan", _PAIR, _gt),
        ExtensionFunction("u256GreaterThanOrEqual", _PAIR, _ge),
        ExtensionFunction("u256Add", _PAIR, _add),
        ExtensionFunction("u256Sub", _PAIR, _sub),
        ExtensionFunction("u256Mul", _PAIR, _mul),
    ),
)
