"""Policy loader - JSON policy files to PolicySet.

Loading happens in two steps:
1. PolicyDocument validates structure (pydantic) and fills in missing ids
2. to_policy_set() decodes condition expressions and builds the PolicySet,
   which rejects duplicate ids

Every failure is a LoadError, so a bad file never reaches the authorizer.
"""

from __future__ import annotations

__all__ = [
    "document_to_policy_set",
    "load_policies",
    "load_policy_document",
    "parse_policies",
    "parse_policy_document",
]

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cedar_acp.exceptions import MalformedPolicy
from cedar_acp.extensions import ExtensionRegistry
from cedar_acp.loader.expressions import expr_from_json
from cedar_acp.loader.schemas import PolicyDocument, PolicyModel
from cedar_acp.pdp.policy import Condition, ConditionKind, Effect, Policy, PolicySet
from cedar_acp.utils.file_helpers import format_validation_errors, read_json_file


def parse_policy_document(data: Any, source: str = "policy document") -> PolicyDocument:
    """Validate raw JSON as a PolicyDocument.

    Raises:
        MalformedPolicy: If the structure is invalid.
    """
    try:
        return PolicyDocument.model_validate(data)
    except ValidationError as e:
        raise MalformedPolicy(f"Invalid policy configuration in {source}:\n{format_validation_errors(e)}") from e


def _to_policy(model: PolicyModel, index: int, registry: ExtensionRegistry | None) -> Policy:
    assert model.id is not None  # filled in by PolicyDocument
    conditions = tuple(
        Condition(
            ConditionKind(condition.kind),
            expr_from_json(condition.body, registry=registry, path=f"policies[{index}].conditions[{i}].body"),
        )
        for i, condition in enumerate(model.conditions)
    )
    return Policy(
        id=model.id,
        effect=Effect(model.effect),
        principal=model.principal.to_scope(),
        action=model.action.to_scope(),
        resource=model.resource.to_scope(),
        conditions=conditions,
        annotations=tuple(sorted(model.annotations.items())),
    )


def document_to_policy_set(document: PolicyDocument, registry: ExtensionRegistry | None = None) -> PolicySet:
    """Decode every policy of a validated document.

    Raises:
        MalformedPolicy: Bad expression (DuplicatePolicyId for repeated ids).
        MalformedValue: Bad literal inside an expression.
    """
    return PolicySet(_to_policy(model, i, registry) for i, model in enumerate(document.policies))


def parse_policies(data: Any, registry: ExtensionRegistry | None = None) -> PolicySet:
    """Build a PolicySet from parsed policy JSON."""
    return document_to_policy_set(parse_policy_document(data), registry)


def load_policy_document(path: Path) -> PolicyDocument:
    """Read and validate a policy file without decoding expressions.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedPolicy: If the file is not valid JSON or fails validation.
    """
    data = read_json_file(path, "policy", error_cls=MalformedPolicy)
    return parse_policy_document(data, source=str(path))


def load_policies(path: Path, registry: ExtensionRegistry | None = None) -> PolicySet:
    """Load a policy file into a PolicySet.

    Raises:
        FileNotFoundError: If the file does not exist.
        LoadError: If anything in the file is malformed.
    """
    return document_to_policy_set(load_policy_document(path), registry)
