"""Custom exceptions for cedar-acp.

Exceptions are organized into three categories:

Load Errors (rejected before any decision is attempted):
    - LoadError: Base for malformed policy/entity/request input
    - CyclicHierarchy: Entity parent links form a cycle
    - DuplicatePolicyId: Two policies share an id
    - LiteralOutOfRange: Integer literal outside the signed 64-bit range

Evaluation Errors (isolated to one policy, never fatal to the call):
    - EvalError: Base, carries a stable `kind` string for diagnostics
    - TypeMismatch, UnexpectedType, AttributeNotFound, FunctionNotFound,
      ArityMismatch, ArithmeticOverflow, UnresolvedEntity, ExtensionError,
      ExpressionTooDeep

Host Errors (fatal to the call, no decision is returned):
    - HostError: Base, carries exit_code/failure_type like a critical failure
    - AuthorizationTimeout: Call exceeded its wall-clock budget
    - ResourceExhausted: Call could not complete for lack of resources

Usage:
    from cedar_acp.exceptions import EvalError, LoadError
"""

from __future__ import annotations

__all__ = [
    "ArithmeticOverflow",
    "ArityMismatch",
    "AttributeNotFound",
    "AuthorizationTimeout",
    "ConfigurationError",
    "CyclicHierarchy",
    "DuplicatePolicyId",
    "EvalError",
    "ExpressionTooDeep",
    "ExtensionError",
    "FunctionNotFound",
    "HostError",
    "LiteralOutOfRange",
    "LoadError",
    "MalformedEntity",
    "MalformedPolicy",
    "MalformedValue",
    "ResourceExhausted",
    "TypeMismatch",
    "UnexpectedType",
    "UnresolvedEntity",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cedar_acp.values import EntityUID


# =============================================================================
# Load Errors (input rejected, no decision attempted)
# =============================================================================


class LoadError(ValueError):
    """Policy, entity or request input is malformed.

    Subclasses ValueError so callers handling file/schema errors the usual
    way (``except (FileNotFoundError, ValueError)``) also catch these.
    """


class MalformedPolicy(LoadError):
    """A policy or expression does not follow the policy JSON format."""


class MalformedEntity(LoadError):
    """An entity (or the entity list) does not follow the entity JSON format."""


class MalformedValue(LoadError):
    """A JSON value cannot be converted into a runtime value."""


class LiteralOutOfRange(MalformedValue):
    """An integer literal does not fit in a signed 64-bit Long."""


class DuplicatePolicyId(MalformedPolicy):
    """Two policies in one policy set share the same id."""


class CyclicHierarchy(MalformedEntity):
    """Entity parent links contain a cycle.

    Attributes:
        cycle: UIDs along the detected cycle, first element repeated at the end.
    """

    def __init__(self, cycle: list["EntityUID"]) -> None:
        self.cycle = cycle
        path = " -> ".join(str(uid) for uid in cycle)
        super().__init__(f"Entity hierarchy contains a cycle: {path}")


# =============================================================================
# Evaluation Errors (isolated to the offending policy)
# =============================================================================


class EvalError(Exception):
    """Evaluating a policy condition failed.

    The authorizer catches these at the policy boundary and records them as
    diagnostics; they never decide a request on their own.

    Attributes:
        kind: Stable error category name for logs and responses.
        message: Human-readable description.
    """

    kind: str = "EvalError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        """Return ``"<kind>: <message>"`` for diagnostics."""
        return f"{self.kind}: {self.message}"


class TypeMismatch(EvalError):
    """Operand tags are not valid for the operation (no implicit coercion)."""

    kind = "TypeMismatch"

    def __init__(self, message: str, *, expected: tuple[str, ...] = (), actual: str | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class UnexpectedType(TypeMismatch):
    """A single operand has the wrong tag, e.g. attribute access on a Long."""

    kind = "UnexpectedType"


class AttributeNotFound(EvalError):
    """Record key or entity attribute is absent."""

    kind = "AttributeNotFound"

    def __init__(self, message: str, *, attribute: str) -> None:
        super().__init__(message)
        self.attribute = attribute


class UnresolvedEntity(EvalError):
    """An entity reference was dereferenced but is not in the store."""

    kind = "UnresolvedEntity"

    def __init__(self, uid: "EntityUID") -> None:
        super().__init__(f"entity {uid} does not exist")
        self.uid = uid


class FunctionNotFound(EvalError):
    """Extension function name is not registered."""

    kind = "FunctionNotFound"

    def __init__(self, name: str) -> None:
        super().__init__(f"extension function `{name}` does not exist")
        self.name = name


class ArityMismatch(EvalError):
    """Extension function called with the wrong number of arguments."""

    kind = "ArityMismatch"

    def __init__(self, name: str, expected: int, actual: int) -> None:
        super().__init__(f"`{name}` expects {expected} argument(s), got {actual}")
        self.name = name
        self.expected = expected
        self.actual = actual


class ArithmeticOverflow(EvalError):
    """Integer, u256 or datetime arithmetic left its representable range."""

    kind = "ArithmeticOverflow"


class ExtensionError(EvalError):
    """Extension function rejected its (well-typed) input, e.g. a bad IP string."""

    kind = "ExtensionError"

    def __init__(self, extension: str, message: str) -> None:
        super().__init__(f"{extension}: {message}")
        self.extension = extension


class ExpressionTooDeep(EvalError):
    """Expression nesting exceeded what the evaluator can recurse through."""

    kind = "ExpressionTooDeep"


# =============================================================================
# Host Errors (fatal to the call, no decision returned)
# =============================================================================


class HostError(Exception):
    """Base exception for failures that abort a whole authorization call.

    A caller receiving one of these has NO decision and must not treat the
    request as allowed.

    Attributes:
        exit_code: Process exit code used by the CLI.
        failure_type: Category string for logging.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class AuthorizationTimeout(HostError):
    """Authorization call exceeded its wall-clock budget.

    Exit code 3 indicates a timeout.
    """

    exit_code = 3
    failure_type = "timeout"

    def __init__(self, budget_seconds: float) -> None:
        super().__init__(f"Authorization exceeded its budget of {budget_seconds:g}s")
        self.budget_seconds = budget_seconds


class ResourceExhausted(HostError):
    """Authorization could not complete, e.g. worker pool could not start.

    Exit code 4 indicates resource exhaustion.
    """

    exit_code = 4
    failure_type = "resource_exhausted"


class ConfigurationError(Exception):
    """Configuration is invalid or incomplete.

    Raised when:
    - Config file contains invalid JSON
    - Config file fails Pydantic validation

    Exit code 16 indicates configuration failure.
    """

    exit_code = 16
    failure_type = "configuration_failure"
