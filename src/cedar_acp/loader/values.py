"""JSON -> runtime value decoding.

Encoding:
    true / false                         Bool
    integer                              Long (signed 64-bit, else LiteralOutOfRange)
    string                               String
    array                                Set
    object                               Record
    {"__entity": {"type": T, "id": I}}   EntityRef
    {"__extn": {"fn": F, "arg": A}}      extension constructor F applied to A

Floats and null have no runtime counterpart and are MalformedValue.
"""

from __future__ import annotations

__all__ = [
    "uid_from_json",
    "value_from_json",
]

from typing import Any

from cedar_acp.constants import MAX_EXPRESSION_DEPTH
from cedar_acp.exceptions import EvalError, LiteralOutOfRange, MalformedValue
from cedar_acp.extensions import ExtensionRegistry, default_registry
from cedar_acp.values import (
    LONG_MAX,
    LONG_MIN,
    Bool,
    EntityRef,
    EntityUID,
    Long,
    Record,
    SetValue,
    String,
    Value,
)

ENTITY_ESCAPE = "__entity"
EXTENSION_ESCAPE = "__extn"


def uid_from_json(data: Any, path: str = "uid") -> EntityUID:
    """Decode {"type": T, "id": I} (optionally wrapped in "__entity").

    Raises:
        MalformedValue: If data is not a well-formed UID object.
    """
    if isinstance(data, dict) and set(data) == {ENTITY_ESCAPE}:
        data = data[ENTITY_ESCAPE]
    if not isinstance(data, dict) or set(data) != {"type", "id"}:
        raise MalformedValue(f"{path}: expected an object with exactly 'type' and 'id', got {data!r}")
    entity_type, entity_id = data["type"], data["id"]
    if not isinstance(entity_type, str) or not entity_type:
        raise MalformedValue(f"{path}.type: expected a non-empty string, got {entity_type!r}")
    if not isinstance(entity_id, str):
        raise MalformedValue(f"{path}.id: expected a string, got {entity_id!r}")
    return EntityUID(entity_type, entity_id)


def value_from_json(
    data: Any,
    *,
    registry: ExtensionRegistry | None = None,
    path: str = "value",
    depth: int = 0,
) -> Value:
    """Decode a JSON value into a runtime value.

    Args:
        data: Parsed JSON (as produced by json.load).
        registry: Registry supplying `__extn` constructors (built-ins by default).
        path: Location of data in the document, for error messages.
        depth: Nesting level of data, bounded by MAX_EXPRESSION_DEPTH.

    Raises:
        LiteralOutOfRange: Integer outside the signed 64-bit range.
        MalformedValue: Float, null, malformed escape, bad extension input or
            nesting deeper than MAX_EXPRESSION_DEPTH.
    """
    if depth > MAX_EXPRESSION_DEPTH:
        raise MalformedValue(f"{path}: value nesting exceeds {MAX_EXPRESSION_DEPTH} levels")

    # bool is a subclass of int: test it first
    if isinstance(data, bool):
        return Bool(data)
    if isinstance(data, int):
        if data < LONG_MIN or data > LONG_MAX:
            raise LiteralOutOfRange(f"{path}: integer {data} does not fit in a signed 64-bit Long")
        return Long(data)
    if isinstance(data, str):
        return String(data)
    if isinstance(data, list):
        return SetValue.of(
            value_from_json(item, registry=registry, path=f"{path}[{i}]", depth=depth + 1)
            for i, item in enumerate(data)
        )
    if isinstance(data, dict):
        if ENTITY_ESCAPE in data:
            if len(data) != 1:
                raise MalformedValue(f"{path}: '{ENTITY_ESCAPE}' must be the only key")
            return EntityRef(uid_from_json(data[ENTITY_ESCAPE], path=f"{path}.{ENTITY_ESCAPE}"))
        if EXTENSION_ESCAPE in data:
            if len(data) != 1:
                raise MalformedValue(f"{path}: '{EXTENSION_ESCAPE}' must be the only key")
            return _extension_from_json(data[EXTENSION_ESCAPE], registry, f"{path}.{EXTENSION_ESCAPE}", depth + 1)
        return Record.of(
            {
                key: value_from_json(item, registry=registry, path=f"{path}.{key}", depth=depth + 1)
                for key, item in data.items()
            }
        )
    if data is None:
        raise MalformedValue(f"{path}: null is not a valid value")
    if isinstance(data, float):
        raise MalformedValue(f"{path}: floating-point numbers are not supported ({data!r})")
    raise MalformedValue(f"{path}: unsupported JSON value {data!r}")


def _extension_from_json(data: Any, registry: ExtensionRegistry | None, path: str, depth: int) -> Value:
    if not isinstance(data, dict) or set(data) != {"fn", "arg"}:
        raise MalformedValue(f"{path}: expected an object with exactly 'fn' and 'arg'")
    name = data["fn"]
    if not isinstance(name, str):
        raise MalformedValue(f"{path}.fn: expected a string, got {name!r}")

    registry = registry if registry is not None else default_registry()
    arg = value_from_json(data["arg"], registry=registry, path=f"{path}.arg", depth=depth + 1)
    try:
        constructor = registry.constructor(name)
        return constructor.call([arg])
    except EvalError as e:
        raise MalformedValue(f"{path}: {e.describe()}") from e
