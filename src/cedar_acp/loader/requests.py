"""Request loader - JSON request objects to Request."""

from __future__ import annotations

__all__ = [
    "load_request",
    "parse_request",
]

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cedar_acp.exceptions import MalformedValue
from cedar_acp.extensions import ExtensionRegistry
from cedar_acp.loader.schemas import RequestModel
from cedar_acp.loader.values import value_from_json
from cedar_acp.pdp.request import Request
from cedar_acp.utils.file_helpers import format_validation_errors, read_json_file
from cedar_acp.values import Record


def parse_request(data: Any, registry: ExtensionRegistry | None = None, source: str = "request") -> Request:
    """Build a Request from parsed JSON.

    Raises:
        MalformedValue: Invalid structure or context value.
    """
    try:
        model = RequestModel.model_validate(data)
    except ValidationError as e:
        raise MalformedValue(f"Invalid request in {source}:\n{format_validation_errors(e)}") from e

    context = value_from_json(model.context, registry=registry, path="context")
    if not isinstance(context, Record):
        raise MalformedValue(f"Invalid request in {source}: context must be a record, got {context.tag}")
    return Request(
        principal=model.principal.to_uid(),
        action=model.action.to_uid(),
        resource=model.resource.to_uid(),
        context=context,
    )


def load_request(path: Path, registry: ExtensionRegistry | None = None) -> Request:
    """Load a request file.

    Raises:
        FileNotFoundError: If the file does not exist.
        LoadError: If the file is malformed.
    """
    data = read_json_file(path, "request", error_cls=MalformedValue)
    return parse_request(data, registry, source=str(path))
