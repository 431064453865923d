"""Loaders for the JSON policy, entity and request formats.

Structure:
    schemas.py      - Pydantic document models (structure only)
    values.py       - JSON value -> runtime value (incl. __entity / __extn)
    expressions.py  - JSON expression tree -> Expr
    policies.py     - policy file -> PolicySet
    entities.py     - entity file -> EntityStore
    requests.py     - request file -> Request

All loaders raise LoadError subclasses for malformed input, before any
decision is attempted.
"""

from cedar_acp.loader.entities import load_entities, parse_entities
from cedar_acp.loader.expressions import expr_from_json
from cedar_acp.loader.policies import (
    document_to_policy_set,
    load_policies,
    load_policy_document,
    parse_policies,
    parse_policy_document,
)
from cedar_acp.loader.requests import load_request, parse_request
from cedar_acp.loader.schemas import PolicyDocument
from cedar_acp.loader.values import uid_from_json, value_from_json

__all__ = [
    "PolicyDocument",
    "document_to_policy_set",
    "expr_from_json",
    "load_entities",
    "load_policies",
    "load_policy_document",
    "load_request",
    "parse_entities",
    "parse_policies",
    "parse_policy_document",
    "parse_request",
    "uid_from_json",
    "value_from_json",
]
