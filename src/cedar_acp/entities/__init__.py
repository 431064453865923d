"""Entity data model and store.

Structure:
    entity.py   - Entity (uid, attrs, parents)
    store.py    - EntityStore (flat table, cycle check) + HierarchyResolver
"""

from cedar_acp.entities.entity import Entity
from cedar_acp.entities.store import EntityStore, HierarchyResolver
from cedar_acp.values import EntityUID

__all__ = [
    "Entity",
    "EntityStore",
    "EntityUID",
    "HierarchyResolver",
]
