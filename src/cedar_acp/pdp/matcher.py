"""Structural scope matching (policy slicing).

Scope matching decides whether a policy can apply to a request without
evaluating its condition. It only compares entity UIDs and walks the
hierarchy, so it cannot fail. A policy whose scope does not match is
skipped and contributes no diagnostic.

The result must agree with evaluating `Policy.as_expression()`; the tests
check this for every scope kind.
"""

from __future__ import annotations

__all__ = [
    "policy_matches",
    "scope_matches",
]

from typing import TYPE_CHECKING

from cedar_acp.pdp.scope import AnyScope, EqScope, InScope, InSetScope, IsScope, Scope

if TYPE_CHECKING:
    from cedar_acp.entities import HierarchyResolver
    from cedar_acp.pdp.policy import Policy
    from cedar_acp.pdp.request import Request
    from cedar_acp.values import EntityUID


def scope_matches(scope: Scope, uid: "EntityUID", resolver: "HierarchyResolver") -> bool:
    """Check one slot of a request against one scope constraint.

    Args:
        scope: Constraint from the policy.
        uid: The request's principal, action or resource.
        resolver: Call-scoped hierarchy resolver.

    Returns:
        True if the constraint admits uid.
    """
    if isinstance(scope, AnyScope):
        return True
    if isinstance(scope, EqScope):
        return uid == scope.uid
    if isinstance(scope, InScope):
        return resolver.is_ancestor(uid, scope.uid)
    if isinstance(scope, InSetScope):
        return any(resolver.is_ancestor(uid, target) for target in scope.uids)
    if isinstance(scope, IsScope):
        if uid.type != scope.entity_type:
            return False
        return scope.in_uid is None or resolver.is_ancestor(uid, scope.in_uid)
    raise TypeError(f"Not a scope constraint: {type(scope).__name__}")


def policy_matches(policy: "Policy", request: "Request", resolver: "HierarchyResolver") -> bool:
    """Check all three scope slots (AND logic)."""
    return (
        scope_matches(policy.principal, request.principal, resolver)
        and scope_matches(policy.action, request.action, resolver)
        and scope_matches(policy.resource, request.resource, resolver)
    )
