"""Authorizer - combine per-policy outcomes into one decision.

Evaluation flow:
1. Scope-match every policy against the request (call-scoped resolver)
2. Evaluate the condition of each matching policy
   - Bool(true)  -> satisfied
   - Bool(false) -> not satisfied, no diagnostic
   - EvalError or non-Bool result -> errored (treated as not satisfied)
3. Partition satisfied policies by effect
4. Any satisfied forbid -> DENY; else any satisfied permit -> ALLOW; else DENY

Design principles:
1. Explicit deny overrides every permit
2. Default to DENY if nothing is satisfied (zero trust)
3. An erroring policy is isolated: it is reported in `errors`, never counts
   as a permit or a forbid, and never affects other policies
4. The Response does not depend on policy order or on how many workers ran
   (all id lists are sorted)
5. A timeout aborts the call: no partial Response is ever returned

Policies are independent given the (request, store) snapshot, so with
max_workers > 1 they are fanned out over a thread pool. The workers share
one HierarchyResolver for the call; nothing outlives the call.
"""

from __future__ import annotations

__all__ = [
    "Authorizer",
    "PolicyError",
    "Response",
]

import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

from cedar_acp.exceptions import AuthorizationTimeout, EvalError, ResourceExhausted
from cedar_acp.extensions import ExtensionRegistry
from cedar_acp.pdp.decision import Decision
from cedar_acp.pdp.evaluator import Deadline, Evaluator
from cedar_acp.pdp.matcher import policy_matches
from cedar_acp.pdp.policy import Effect, Policy, PolicySet
from cedar_acp.pdp.request import Request
from cedar_acp.telemetry.system.system_logger import get_system_logger
from cedar_acp.values import Bool, type_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cedar_acp.entities import EntityStore, HierarchyResolver
    from cedar_acp.telemetry.audit.decision_logger import DecisionEventLogger


class PolicyError(NamedTuple):
    """An errored policy and what went wrong."""

    policy_id: str
    message: str


@dataclass(frozen=True, slots=True)
class Response:
    """Result of one authorization call.

    Attributes:
        decision: ALLOW or DENY.
        reasons: Ids of satisfied permits when ALLOW, else empty.
        errors: (policy id, message) for every errored policy.
        satisfied_forbids: Ids of the forbids that caused an explicit DENY.
            Empty for a default DENY. Downstream consumers use these to
            look up the denying policies' annotations.
    """

    decision: Decision
    reasons: tuple[str, ...] = ()
    errors: tuple[PolicyError, ...] = ()
    satisfied_forbids: tuple[str, ...] = ()

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "reasons": list(self.reasons),
            "errors": [{"policy_id": e.policy_id, "message": e.message} for e in self.errors],
            "satisfied_forbids": list(self.satisfied_forbids),
        }


class _Outcome(Enum):
    NOT_APPLICABLE = "not_applicable"
    SATISFIED = "satisfied"
    NOT_SATISFIED = "not_satisfied"
    ERRORED = "errored"


class _PolicyResult(NamedTuple):
    policy: Policy
    outcome: _Outcome
    error: str | None = None


class Authorizer:
    """Decision combinator over a policy set.

    Holds no per-call state, so one instance can serve concurrent calls.

    Args:
        max_workers: Worker threads for per-policy evaluation. 1 evaluates
            sequentially in the calling thread.
        timeout_seconds: Optional wall-clock budget per call. Exceeding it
            raises AuthorizationTimeout.
        decision_logger: Optional audit logger; receives every decision.
        extensions: Extension function registry (built-ins by default).
    """

    def __init__(
        self,
        max_workers: int = 1,
        timeout_seconds: float | None = None,
        decision_logger: "DecisionEventLogger | None" = None,
        extensions: ExtensionRegistry | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        self.max_workers = max_workers
        self.timeout_seconds = timeout_seconds
        self._decision_logger = decision_logger
        self._extensions = extensions

    def decide(self, request: Request, store: "EntityStore", policies: "PolicySet | Iterable[Policy]") -> Response:
        """Authorize one request.

        Args:
            request: The request to decide.
            store: Entity snapshot.
            policies: Policies to apply (a PolicySet or any iterable).

        Returns:
            Response with the decision and diagnostics.

        Raises:
            AuthorizationTimeout: If the call exceeds timeout_seconds.
            ResourceExhausted: If the worker pool cannot be started.
        """
        start = time.perf_counter()
        deadline = Deadline.after(self.timeout_seconds) if self.timeout_seconds is not None else None
        resolver = store.resolver()
        policy_list = list(policies)

        if self.max_workers == 1 or len(policy_list) <= 1:
            results = [self._evaluate_policy(p, request, store, resolver, deadline) for p in policy_list]
        else:
            results = self._evaluate_parallel(policy_list, request, store, resolver, deadline)

        response = self._combine(results)
        eval_ms = (time.perf_counter() - start) * 1000

        if response.errors:
            get_system_logger().warning(
                {
                    "event": "policy_evaluation_errors",
                    "message": f"{len(response.errors)} policy(ies) failed to evaluate for {request.describe()}",
                    "errors": [{"policy_id": e.policy_id, "error": e.message} for e in response.errors],
                }
            )

        if self._decision_logger is not None:
            matched = sum(1 for r in results if r.outcome is not _Outcome.NOT_APPLICABLE)
            self._decision_logger.log(
                request=request,
                response=response,
                policy_count=len(policy_list),
                matched_count=matched,
                policy_eval_ms=eval_ms,
            )

        return response

    def is_authorized(self, request: Request, store: "EntityStore", policies: "PolicySet | Iterable[Policy]") -> bool:
        """Shorthand for `decide(...).allowed`."""
        return self.decide(request, store, policies).allowed

    # =========================================================================
    # Per-policy evaluation
    # =========================================================================

    def _evaluate_policy(
        self,
        policy: Policy,
        request: Request,
        store: "EntityStore",
        resolver: "HierarchyResolver",
        deadline: Deadline | None,
    ) -> _PolicyResult:
        if deadline is not None:
            deadline.check()

        if not policy_matches(policy, request, resolver):
            return _PolicyResult(policy, _Outcome.NOT_APPLICABLE)

        evaluator = Evaluator(request, store, resolver=resolver, extensions=self._extensions, deadline=deadline)
        try:
            value = evaluator.evaluate(policy.condition_expr())
        except EvalError as e:
            return _PolicyResult(policy, _Outcome.ERRORED, e.describe())

        if not isinstance(value, Bool):
            return _PolicyResult(
                policy,
                _Outcome.ERRORED,
                f"TypeMismatch: policy condition evaluated to {type_name(value)}, expected Bool",
            )
        return _PolicyResult(policy, _Outcome.SATISFIED if value.value else _Outcome.NOT_SATISFIED)

    def _evaluate_parallel(
        self,
        policies: list[Policy],
        request: Request,
        store: "EntityStore",
        resolver: "HierarchyResolver",
        deadline: Deadline | None,
    ) -> list[_PolicyResult]:
        try:
            executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="cedar-acp-eval")
        except RuntimeError as e:
            raise ResourceExhausted(f"Could not create worker pool: {e}") from e

        futures: list[Future[_PolicyResult]] = []
        try:
            try:
                for policy in policies:
                    futures.append(
                        executor.submit(self._evaluate_policy, policy, request, store, resolver, deadline)
                    )
            except RuntimeError as e:
                raise ResourceExhausted(f"Could not schedule policy evaluation: {e}") from e

            remaining = None if deadline is None else max(0.0, deadline.expires_at - time.monotonic())
            done, not_done = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)
            if not_done:
                # Either a worker raised (e.g. its own deadline check) or the budget ran out
                for future in done:
                    error = future.exception()
                    if error is not None:
                        raise error
                raise AuthorizationTimeout(deadline.budget_seconds if deadline else 0.0)
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    # =========================================================================
    # Combination
    # =========================================================================

    @staticmethod
    def _combine(results: list[_PolicyResult]) -> Response:
        satisfied_permits: list[str] = []
        satisfied_forbids: list[str] = []
        errors: list[PolicyError] = []

        for result in results:
            if result.outcome is _Outcome.SATISFIED:
                if result.policy.effect is Effect.FORBID:
                    satisfied_forbids.append(result.policy.id)
                else:
                    satisfied_permits.append(result.policy.id)
            elif result.outcome is _Outcome.ERRORED:
                errors.append(PolicyError(result.policy.id, result.error or ""))

        errors.sort()
        if satisfied_forbids:
            return Response(Decision.DENY, (), tuple(errors), tuple(sorted(satisfied_forbids)))
        if satisfied_permits:
            return Response(Decision.ALLOW, tuple(sorted(satisfied_permits)), tuple(errors))
        return Response(Decision.DENY, (), tuple(errors))
