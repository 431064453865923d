"""Protocol definition for pluggable authorizers.

Hosts (request gateways, the CLI) depend on this protocol rather than on
Authorizer, so an adapter around another engine can be dropped in without
inheriting from our code (structural subtyping).

Example adapter:

    class AllowListAuthorizer:
        def __init__(self, principals: set[EntityUID]) -> None:
            self._principals = principals

        def decide(self, request, store, policies) -> Response:
            if request.principal in self._principals:
                return Response(Decision.ALLOW, ("allow-list",))
            return Response(Decision.DENY)
"""

from __future__ import annotations

__all__ = [
    "AuthorizerProtocol",
]

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cedar_acp.entities import EntityStore
    from cedar_acp.pdp.engine import Response
    from cedar_acp.pdp.policy import Policy, PolicySet
    from cedar_acp.pdp.request import Request


@runtime_checkable
class AuthorizerProtocol(Protocol):
    """Protocol for authorization engines.

    Thread-safety:
    - decide() must be safe for concurrent calls
    - implementations must not keep state between calls that could make a
      decision depend on an earlier one
    """

    def decide(
        self,
        request: "Request",
        store: "EntityStore",
        policies: "PolicySet | Iterable[Policy]",
    ) -> "Response":
        """Authorize one request.

        Args:
            request: Principal, action, resource and context.
            store: Entity snapshot for the call.
            policies: Policies to apply.

        Returns:
            Response with decision, reasons and errors.

        Raises:
            HostError: If no decision could be reached (timeout, resources).
                Callers must treat this as "no decision", never as ALLOW.
        """
        ...
