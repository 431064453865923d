"""Policy Decision Point (PDP) - authorization engine.

The PDP is stateless and side-effect free: a call reads an immutable
(request, entity store, policy set) snapshot and returns a Response.

Structure:
    expr.py           - Expression tree nodes
    evaluator.py      - Evaluator (expression -> value) and Deadline
    scope.py          - Scope constraints (Any/Eq/In/InSet/Is)
    policy.py         - Policy, PolicySet, Effect, Condition
    matcher.py        - Structural scope matching
    request.py        - Request
    decision.py       - Decision enum (ALLOW/DENY)
    engine.py         - Authorizer, Response
    protocol.py       - AuthorizerProtocol

Policy/entity file I/O is in cedar_acp.loader.
"""

from cedar_acp.pdp.decision import Decision
from cedar_acp.pdp.engine import Authorizer, PolicyError, Response
from cedar_acp.pdp.evaluator import Deadline, Evaluator
from cedar_acp.pdp.matcher import policy_matches, scope_matches
from cedar_acp.pdp.policy import Condition, ConditionKind, Effect, Policy, PolicySet
from cedar_acp.pdp.protocol import AuthorizerProtocol
from cedar_acp.pdp.request import Request
from cedar_acp.pdp.scope import AnyScope, EqScope, InScope, InSetScope, IsScope, Scope

__all__ = [
    # Decision
    "Decision",
    "PolicyError",
    "Response",
    # Engine
    "Authorizer",
    "AuthorizerProtocol",
    "Deadline",
    "Evaluator",
    "Request",
    # Policy models
    "Condition",
    "ConditionKind",
    "Effect",
    "Policy",
    "PolicySet",
    # Scopes
    "AnyScope",
    "EqScope",
    "InScope",
    "InSetScope",
    "IsScope",
    "Scope",
    "policy_matches",
    "scope_matches",
]
