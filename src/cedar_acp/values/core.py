"""Base runtime value kinds.

Every runtime value is exactly one of the frozen dataclasses below (or one of
the extension kinds in extension.py). Values never coerce into each other:
Long(1) and Bool(True) are different values with different tags.

Sets and records are immutable and hashable so they can nest inside sets.
"""

from __future__ import annotations

__all__ = [
    "Bool",
    "EntityRef",
    "EntityUID",
    "FALSE",
    "Long",
    "Record",
    "SetValue",
    "String",
    "TRUE",
]

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from cedar_acp.values import Value


@dataclass(frozen=True, slots=True)
class EntityUID:
    """Globally unique entity key: (type name, identifier)."""

    type: str
    id: str

    def __str__(self) -> str:
        escaped = self.id.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.type}::"{escaped}"'


@dataclass(frozen=True, slots=True)
class Bool:
    value: bool

    tag: ClassVar[str] = "Bool"

    def __str__(self) -> str:
        return "true" if self.value else "false"


TRUE = Bool(True)
FALSE = Bool(False)


@dataclass(frozen=True, slots=True)
class Long:
    """64-bit signed integer. Range is checked where values are produced."""

    value: int

    tag: ClassVar[str] = "Long"

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class String:
    value: str

    tag: ClassVar[str] = "String"

    def __str__(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Reference to an entity. The entity need not exist in the store."""

    uid: EntityUID

    tag: ClassVar[str] = "Entity"

    def __str__(self) -> str:
        return str(self.uid)


@dataclass(frozen=True, slots=True)
class SetValue:
    """Deduplicated, order-irrelevant collection of values.

    Equality is structural: two sets are equal when they hold the same
    elements, whatever order they were built in.
    """

    elements: frozenset["Value"]

    tag: ClassVar[str] = "Set"

    @classmethod
    def of(cls, items: Iterable["Value"]) -> "SetValue":
        return cls(frozenset(items))

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __contains__(self, item: object) -> bool:
        return item in self.elements

    def __str__(self) -> str:
        return "[" + ", ".join(sorted(str(v) for v in self.elements)) + "]"


@dataclass(frozen=True, slots=True)
class Record:
    """Immutable string-keyed mapping of values.

    Stored as key-sorted pairs so that equal records hash equally.
    """

    fields: tuple[tuple[str, "Value"], ...]

    tag: ClassVar[str] = "Record"

    @classmethod
    def of(cls, mapping: Mapping[str, "Value"] | None = None) -> "Record":
        if not mapping:
            return _EMPTY_RECORD
        return cls(tuple(sorted(mapping.items(), key=lambda kv: kv[0])))

    def get(self, key: str) -> "Value | None":
        for name, value in self.fields:
            if name == key:
                return value
        return None

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def keys(self) -> list[str]:
        return [name for name, _ in self.fields]

    def items(self) -> tuple[tuple[str, "Value"], ...]:
        return self.fields

    def as_dict(self) -> dict[str, "Value"]:
        return dict(self.fields)

    def __str__(self) -> str:
        inner = ", ".join(f'"{k}": {v}' for k, v in self.fields)
        return "{" + inner + "}"


_EMPTY_RECORD = Record(())
