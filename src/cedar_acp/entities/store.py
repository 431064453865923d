"""Entity store - flat UID-keyed table with hierarchy queries.

Entities are kept in a table keyed by UID. Parent links are also stored as
integer index lists over a node table, so reachability walks lists of ints
instead of hashing UIDs at every step. Referenced parents that are not
themselves in the store still get a node (with no parents of their own):
`User::"alice" in Group::"admins"` holds when alice lists admins as a parent,
even if the admins entity was never loaded.

Cycles are rejected when the store is built (CyclicHierarchy), so queries
never have to guard against looping.

Ancestor closures are memoized per HierarchyResolver. The authorizer creates
one resolver per call, so no cache outlives the call that filled it.
"""

from __future__ import annotations

__all__ = [
    "EntityStore",
    "HierarchyResolver",
]

import threading
from collections.abc import Iterable, Iterator

from cedar_acp.entities.entity import Entity
from cedar_acp.exceptions import CyclicHierarchy, MalformedEntity
from cedar_acp.values import EntityUID

# DFS node colors for cycle detection
_UNVISITED = 0
_IN_PROGRESS = 1
_DONE = 2


class EntityStore:
    """Read-only snapshot of entities for authorization calls.

    Raises:
        MalformedEntity: If two entities share a UID.
        CyclicHierarchy: If parent links form a cycle.
    """

    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._entities: dict[EntityUID, Entity] = {}
        for entity in entities:
            if entity.uid in self._entities:
                raise MalformedEntity(f"Duplicate entity {entity.uid}")
            self._entities[entity.uid] = entity

        # Node table: every stored entity plus every referenced parent
        self._nodes: list[EntityUID] = []
        self._node_index: dict[EntityUID, int] = {}
        for uid in self._entities:
            self._add_node(uid)
        for entity in self._entities.values():
            for parent in sorted(entity.parents, key=_uid_sort_key):
                self._add_node(parent)

        self._parent_indices: list[tuple[int, ...]] = [() for _ in self._nodes]
        for uid, entity in self._entities.items():
            self._parent_indices[self._node_index[uid]] = tuple(
                self._node_index[parent] for parent in sorted(entity.parents, key=_uid_sort_key)
            )

        self._check_acyclic()

    @classmethod
    def empty(cls) -> "EntityStore":
        return cls(())

    def _add_node(self, uid: EntityUID) -> None:
        if uid not in self._node_index:
            self._node_index[uid] = len(self._nodes)
            self._nodes.append(uid)

    def _check_acyclic(self) -> None:
        """Iterative three-color DFS over parent edges.

        Raises:
            CyclicHierarchy: With the UIDs along the first cycle found.
        """
        color = [_UNVISITED] * len(self._nodes)
        for root in range(len(self._nodes)):
            if color[root] != _UNVISITED:
                continue
            # Stack of (node, next parent position); path mirrors the GRAY nodes
            stack: list[tuple[int, int]] = [(root, 0)]
            path: list[int] = [root]
            color[root] = _IN_PROGRESS
            while stack:
                node, position = stack[-1]
                parents = self._parent_indices[node]
                if position == len(parents):
                    stack.pop()
                    path.pop()
                    color[node] = _DONE
                    continue
                stack[-1] = (node, position + 1)
                parent = parents[position]
                if color[parent] == _IN_PROGRESS:
                    start = path.index(parent)
                    cycle = [self._nodes[i] for i in path[start:]] + [self._nodes[parent]]
                    raise CyclicHierarchy(cycle)
                if color[parent] == _UNVISITED:
                    color[parent] = _IN_PROGRESS
                    stack.append((parent, 0))
                    path.append(parent)

    def get(self, uid: EntityUID) -> Entity | None:
        """Return the entity, or None if it is not in the store."""
        return self._entities.get(uid)

    def __contains__(self, uid: object) -> bool:
        return uid in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def resolver(self) -> "HierarchyResolver":
        """Create a call-scoped resolver with its own memo table."""
        return HierarchyResolver(self)

    def is_ancestor(self, candidate_uid: EntityUID, target_uid: EntityUID) -> bool:
        """Return True iff target_uid is reachable from candidate_uid via parents.

        Reflexive: every UID reaches itself. Uses a fresh resolver, so no
        state is kept between calls.
        """
        return HierarchyResolver(self).is_ancestor(candidate_uid, target_uid)

    def ancestors(self, uid: EntityUID) -> frozenset[EntityUID]:
        """Return all proper ancestors of uid (not including uid itself)."""
        return HierarchyResolver(self).ancestors(uid)


class HierarchyResolver:
    """Memoizing ancestor lookups over one EntityStore.

    Intended lifetime is a single authorization call. Safe to share between
    the worker threads of that call.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store
        self._closures: dict[int, frozenset[int]] = {}
        self._lock = threading.Lock()

    def _closure(self, start: int) -> frozenset[int]:
        """Proper ancestors of a node, by iterative search."""
        cached = self._closures.get(start)
        if cached is not None:
            return cached

        parent_indices = self._store._parent_indices
        seen: set[int] = set()
        pending = list(parent_indices[start])
        while pending:
            node = pending.pop()
            if node in seen:
                continue
            seen.add(node)
            known = self._closures.get(node)
            if known is not None:
                seen.update(known)
                continue
            pending.extend(parent_indices[node])

        closure = frozenset(seen)
        with self._lock:
            self._closures[start] = closure
        return closure

    def is_ancestor(self, candidate_uid: EntityUID, target_uid: EntityUID) -> bool:
        """Return True iff target_uid == candidate_uid or is one of its ancestors."""
        if candidate_uid == target_uid:
            return True
        node_index = self._store._node_index
        candidate = node_index.get(candidate_uid)
        target = node_index.get(target_uid)
        if candidate is None or target is None:
            return False
        return target in self._closure(candidate)

    def ancestors(self, uid: EntityUID) -> frozenset[EntityUID]:
        index = self._store._node_index.get(uid)
        if index is None:
            return frozenset()
        nodes = self._store._nodes
        return frozenset(nodes[i] for i in self._closure(index))


def _uid_sort_key(uid: EntityUID) -> tuple[str, str]:
    return (uid.type, uid.id)
