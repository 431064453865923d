"""Entity model - identity, attributes and parent links."""

from __future__ import annotations

__all__ = ["Entity"]

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from cedar_acp.values import EntityUID, Record, Value


@dataclass(frozen=True, slots=True)
class Entity:
    """An entity in the store.

    Attributes:
        uid: Unique (type, id) key.
        attrs: Attribute values, as an immutable Record.
        parents: Direct parents (groups, roles, containers).
    """

    uid: EntityUID
    attrs: Record = field(default_factory=Record.of)
    parents: frozenset[EntityUID] = frozenset()

    @classmethod
    def create(
        cls,
        uid: EntityUID,
        attrs: Mapping[str, Value] | None = None,
        parents: Iterable[EntityUID] = (),
    ) -> "Entity":
        """Build an entity from plain mapping/iterable arguments."""
        return cls(uid=uid, attrs=Record.of(attrs), parents=frozenset(parents))

    def get_attr(self, name: str) -> Value | None:
        return self.attrs.get(name)

    def has_attr(self, name: str) -> bool:
        return name in self.attrs
