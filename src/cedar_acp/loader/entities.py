"""Entity loader - JSON entity lists to EntityStore.

File format: a JSON list of
    {"uid": {"type": T, "id": I}, "attrs": {...}, "parents": [{"type": T, "id": I}, ...]}

Duplicate UIDs and parent cycles are rejected by EntityStore itself.
"""

from __future__ import annotations

__all__ = [
    "load_entities",
    "parse_entities",
]

from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from cedar_acp.entities import Entity, EntityStore
from cedar_acp.exceptions import MalformedEntity
from cedar_acp.extensions import ExtensionRegistry
from cedar_acp.loader.schemas import EntityModel
from cedar_acp.loader.values import value_from_json
from cedar_acp.utils.file_helpers import format_validation_errors, read_json_file

_ENTITY_LIST = TypeAdapter(list[EntityModel])


def parse_entities(data: Any, registry: ExtensionRegistry | None = None, source: str = "entity list") -> EntityStore:
    """Build an EntityStore from a parsed JSON entity list.

    Raises:
        MalformedEntity: Invalid structure or duplicate UID.
        CyclicHierarchy: Parent links form a cycle.
        MalformedValue: An attribute value cannot be decoded.
    """
    try:
        models = _ENTITY_LIST.validate_python(data)
    except ValidationError as e:
        raise MalformedEntity(f"Invalid entities in {source}:\n{format_validation_errors(e)}") from e

    entities = []
    for index, model in enumerate(models):
        uid = model.uid.to_uid()
        attrs = {
            name: value_from_json(raw, registry=registry, path=f"entities[{index}].attrs.{name}")
            for name, raw in model.attrs.items()
        }
        entities.append(Entity.create(uid, attrs, (parent.to_uid() for parent in model.parents)))
    return EntityStore(entities)


def load_entities(path: Path, registry: ExtensionRegistry | None = None) -> EntityStore:
    """Load an entities file into an EntityStore.

    Raises:
        FileNotFoundError: If the file does not exist.
        LoadError: If anything in the file is malformed.
    """
    data = read_json_file(path, "entities", error_cls=MalformedEntity)
    return parse_entities(data, registry, source=str(path))
